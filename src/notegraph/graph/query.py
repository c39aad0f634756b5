"""Free-text query expansion over the tag vocabulary.

A query is tokenized the same way note content is, then every token pulls in
its synonyms so "auth bug" also finds notes about login errors.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ..index.tokenizer import tokenize
from .tagstats import DEFAULT_TAG_SYNONYMS, SynonymMap


STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at",
        "to", "for", "of", "with", "by", "from", "is", "was",
        "are", "were", "be", "been", "being", "have", "has", "had",
    }
)


@dataclass(frozen=True)
class ExpandedQuery:
    original: str
    tokens: list[str]
    expanded: list[str]

    @property
    def text(self) -> str:
        return " ".join(self.expanded)


def expand_query(query: str, synonyms: SynonymMap = DEFAULT_TAG_SYNONYMS) -> ExpandedQuery:
    tokens = tokenize(query)
    seen: set[str] = set()
    expanded: list[str] = []
    for tok in tokens:
        for term in (tok, *synonyms.get(tok, ())):
            if term not in seen:
                seen.add(term)
                expanded.append(term)
    return ExpandedQuery(original=query, tokens=tokens, expanded=expanded)


def query_variations(query: str, synonyms: SynonymMap = DEFAULT_TAG_SYNONYMS) -> list[str]:
    """The query itself, then one variation per single-token synonym swap."""
    tokens = tokenize(query)
    out = [query]
    for i, tok in enumerate(tokens):
        for syn in synonyms.get(tok, ()):
            variation = " ".join([*tokens[:i], syn, *tokens[i + 1:]])
            if variation not in out:
                out.append(variation)
    return out


def score_expanded_query_match(content: str, terms: Iterable[str]) -> float:
    """Fraction of ``terms`` found in ``content``.

    A hyphenated term such as "unit-test" matches when all of its word
    pieces occur in the content.
    """
    terms = list(terms)
    if not terms:
        return 0.0
    words = set(tokenize(content))
    matched = 0
    for term in terms:
        pieces = tokenize(term)
        if pieces and all(p in words for p in pieces):
            matched += 1
    return matched / len(terms)


def extract_key_terms(query: str) -> list[str]:
    """Non-stop-word tokens, longest first (stable for equal lengths)."""
    return sorted((t for t in tokenize(query) if t not in STOP_WORDS), key=len, reverse=True)
