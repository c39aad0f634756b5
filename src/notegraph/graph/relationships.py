"""Relationship strength scoring and relation-type classification for node pairs.

Strength is a fixed weighted sum of four factors, each in [0, 1]:

- content_similarity: cosine of the two embeddings (content + tags)
- tag_overlap: Jaccard similarity of the tag sets
- explicit_references: discrete bonus when the nodes point at each other
  (id mention, shared reference token such as ``commit:abcdef0`` or a bare
  commit-like hex id, shared rare tag)
- temporal_proximity: close creation times, discounted by age

Classification is advisory. The caller decides whether to persist an edge.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Iterable, Mapping, Sequence

from ..index.embedder import DEFAULT_DIMENSION, embed_node
from ..index.vector_store import cosine_similarity
from ..model import Node, Relation, parse_timestamp, utcnow


WEIGHTS = {
    "content_similarity": 0.5,
    "tag_overlap": 0.2,
    "explicit_references": 0.2,
    "temporal_proximity": 0.1,
}

EXPLICIT_REFERENCE_BONUS = 1.0
TEMPORAL_HORIZON = timedelta(days=30)
RECENCY_HALF_LIFE = timedelta(days=30)
RELATES_TO_THRESHOLD = 0.5

# Kinds whose values point at one specific artifact. Grouping prefixes such as
# "proj:" or "ws:" are shared by whole projects and only count through the
# rare-tag check.
REFERENCE_KINDS = frozenset({"commit", "sha", "rev", "issue", "bug", "ticket", "pr", "mr", "adr", "jira"})

# "commit:abcdef0", "issue:42", "adr:0003" ...
_KIND_VALUE_RE = re.compile(r"\b([a-z][a-z0-9_-]*):([a-z0-9][a-z0-9._/-]*)", re.IGNORECASE)
# Bare commit-like hex ids need a digit and a letter, so plain words ("defaced")
# and dates or phone numbers ("20250601") don't count.
_HEX_ID_RE = re.compile(r"\b(?=[0-9a-f]*[0-9])(?=[0-9a-f]*[a-f])[0-9a-f]{7,40}\b", re.IGNORECASE)


@dataclass(frozen=True)
class StrengthFactors:
    content_similarity: float
    tag_overlap: float
    explicit_references: float
    temporal_proximity: float


@dataclass(frozen=True)
class RelationshipScore:
    strength: float
    factors: StrengthFactors


@dataclass(frozen=True)
class EdgeSuggestion:
    node_id: str
    relation: Relation
    score: RelationshipScore


def _clamp(x: float) -> float:
    return max(0.0, min(1.0, float(x)))


def tag_overlap(a: Node, b: Node) -> float:
    ta = {t.lower() for t in a.tags}
    tb = {t.lower() for t in b.tags}
    union = ta | tb
    if not union:
        return 0.0
    return len(ta & tb) / len(union)


def reference_tokens(node: Node) -> set[str]:
    """Distinguishing tokens a node carries in its content and tags."""
    out: set[str] = set()
    for text in (node.content, *node.tags):
        for m in _KIND_VALUE_RE.finditer(text):
            if m.group(1).lower() in REFERENCE_KINDS:
                out.add(m.group(0).lower().rstrip("."))
        for m in _HEX_ID_RE.finditer(text):
            out.add(m.group(0).lower())
    return out


def _mentions_id(node: Node, other_id: str) -> bool:
    if not other_id:
        return False
    pat = re.compile(r"(?<![\w-])" + re.escape(other_id) + r"(?![\w-])")
    if pat.search(node.content):
        return True
    return any(pat.search(t) for t in node.tags)


def explicit_references(
    a: Node,
    b: Node,
    *,
    tag_counts: Mapping[str, int] | None = None,
    rare_tag_max: int = 2,
) -> float:
    if _mentions_id(a, b.id) or _mentions_id(b, a.id):
        return EXPLICIT_REFERENCE_BONUS
    if reference_tokens(a) & reference_tokens(b):
        return EXPLICIT_REFERENCE_BONUS
    if tag_counts:
        shared = {t.lower() for t in a.tags} & {t.lower() for t in b.tags}
        if any(0 < tag_counts.get(t, 0) <= rare_tag_max for t in shared):
            return EXPLICIT_REFERENCE_BONUS
    return 0.0


def temporal_proximity(a: Node, b: Node, *, now: datetime | None = None) -> float:
    """Near-in-time pairs score high; the score also halves every 30 days of age."""
    ref = parse_timestamp(now or utcnow())
    gap = abs(a.created_at - b.created_at)
    closeness = max(0.0, 1.0 - gap / TEMPORAL_HORIZON)
    if closeness == 0.0:
        return 0.0

    age_a = max(timedelta(0), ref - a.created_at)
    age_b = max(timedelta(0), ref - b.created_at)
    mean_age = (age_a + age_b) / 2
    recency = 0.5 ** (mean_age / RECENCY_HALF_LIFE)
    return _clamp(closeness * recency)


def compute_factors(
    a: Node,
    b: Node,
    *,
    now: datetime | None = None,
    dimension: int = DEFAULT_DIMENSION,
    tag_counts: Mapping[str, int] | None = None,
) -> StrengthFactors:
    return StrengthFactors(
        content_similarity=_clamp(cosine_similarity(embed_node(a, dimension), embed_node(b, dimension))),
        tag_overlap=tag_overlap(a, b),
        explicit_references=explicit_references(a, b, tag_counts=tag_counts),
        temporal_proximity=temporal_proximity(a, b, now=now),
    )


def combine(factors: StrengthFactors) -> float:
    return _clamp(
        WEIGHTS["content_similarity"] * factors.content_similarity
        + WEIGHTS["tag_overlap"] * factors.tag_overlap
        + WEIGHTS["explicit_references"] * factors.explicit_references
        + WEIGHTS["temporal_proximity"] * factors.temporal_proximity
    )


def score(
    a: Node,
    b: Node,
    *,
    now: datetime | None = None,
    dimension: int = DEFAULT_DIMENSION,
    tag_counts: Mapping[str, int] | None = None,
) -> RelationshipScore:
    factors = compute_factors(a, b, now=now, dimension=dimension, tag_counts=tag_counts)
    return RelationshipScore(strength=combine(factors), factors=factors)


@dataclass(frozen=True)
class PairContext:
    a: Node
    b: Node
    text: str  # lowercased content of both nodes
    factors: StrengthFactors


Rule = tuple[Callable[[PairContext], bool], Relation]


def _cue(*phrases: str) -> Callable[[PairContext], bool]:
    pat = re.compile(r"\b(?:" + "|".join(re.escape(p) for p in phrases) + r")\b")

    def predicate(ctx: PairContext) -> bool:
        return pat.search(ctx.text) is not None

    predicate.__name__ = f"cue_{phrases[0].replace(' ', '_')}"
    return predicate


def _similar_content(ctx: PairContext) -> bool:
    return ctx.factors.content_similarity >= RELATES_TO_THRESHOLD


def _always(ctx: PairContext) -> bool:
    return True


# Evaluated in order; the first matching predicate decides the label.
CLASSIFICATION_RULES: list[Rule] = [
    (_cue("blocked by", "blocks", "blocking"), Relation.BLOCKS),
    (_cue("builds on", "built on", "based on", "derived from", "follows up"), Relation.DERIVED_FROM),
    (_cue("duplicate of", "duplicates"), Relation.DUPLICATES),
    (_similar_content, Relation.RELATES_TO),
    (_always, Relation.REFERENCES),
]


def classify(
    a: Node,
    b: Node,
    *,
    rules: Sequence[Rule] | None = None,
    factors: StrengthFactors | None = None,
    now: datetime | None = None,
    dimension: int = DEFAULT_DIMENSION,
) -> Relation:
    if factors is None:
        factors = compute_factors(a, b, now=now, dimension=dimension)
    ctx = PairContext(a=a, b=b, text=f"{a.content}\n{b.content}".lower(), factors=factors)
    for predicate, relation in rules if rules is not None else CLASSIFICATION_RULES:
        if predicate(ctx):
            return relation
    return Relation.REFERENCES


def infer_relationships(
    node: Node,
    candidates: Iterable[Node],
    *,
    min_strength: float = 0.35,
    limit: int = 5,
    now: datetime | None = None,
    dimension: int = DEFAULT_DIMENSION,
    tag_counts: Mapping[str, int] | None = None,
) -> list[EdgeSuggestion]:
    """Score ``node`` against every candidate and suggest the strongest edges."""
    out: list[EdgeSuggestion] = []
    for other in candidates:
        if other.id == node.id:
            continue
        s = score(node, other, now=now, dimension=dimension, tag_counts=tag_counts)
        if s.strength < min_strength:
            continue
        rel = classify(node, other, factors=s.factors)
        out.append(EdgeSuggestion(node_id=other.id, relation=rel, score=s))

    out.sort(key=lambda e: (-e.score.strength, e.node_id))
    return out[: max(0, int(limit))]
