"""Tag statistics over a corpus plus a small built-in tag vocabulary.

Co-occurrence counts come from the caller's nodes. Synonyms and the
parent/child hierarchy are fixed defaults that callers may replace.
"""

from __future__ import annotations

import re
from collections import Counter, defaultdict
from itertools import permutations
from typing import Iterable, Mapping, Sequence

from ..model import Node


def build_tag_cooccurrence(nodes: Iterable[Node]) -> dict[str, Counter]:
    """Return {tag: Counter(other_tag -> number of nodes carrying both)}; tags are lowercased."""
    co: dict[str, Counter] = defaultdict(Counter)
    for n in nodes:
        tags = sorted({t.lower() for t in n.tags})
        for a, b in permutations(tags, 2):
            co[a][b] += 1
    return dict(co)


def tag_counts(nodes: Iterable[Node]) -> Counter:
    """Number of nodes carrying each (lowercased) tag."""
    counts: Counter = Counter()
    for n in nodes:
        counts.update({t.lower() for t in n.tags})
    return counts


def expand_tags(base_tags: Iterable[str], cooccurrence: dict[str, Counter], limit: int = 5) -> list[str]:
    """Suggest tags that most often appear alongside ``base_tags``."""
    base = [t.lower() for t in base_tags]
    scores: Counter = Counter()
    for t in base:
        for other, count in cooccurrence.get(t, {}).items():
            scores[other] += count

    ranked = sorted(
        ((tag, s) for tag, s in scores.items() if tag not in base),
        key=lambda ts: (-ts[1], ts[0]),
    )
    return [tag for tag, _ in ranked[: max(0, int(limit))]]


# Common developer vocabulary: tag -> tags that mean roughly the same thing.
DEFAULT_TAG_SYNONYMS: dict[str, tuple[str, ...]] = {
    "auth": ("authentication", "login", "signin", "oauth", "jwt"),
    "authentication": ("auth", "login", "signin", "oauth", "jwt"),
    "login": ("auth", "authentication", "signin"),
    "bug": ("issue", "defect", "problem", "error", "fault"),
    "issue": ("bug", "defect", "problem"),
    "error": ("bug", "issue", "exception", "failure"),
    "performance": ("perf", "optimization", "speed", "latency", "slow"),
    "perf": ("performance", "optimization", "speed"),
    "optimization": ("performance", "perf", "optimize"),
    "slow": ("performance", "latency", "speed"),
    "database": ("db", "storage", "persistence", "sql", "data-layer"),
    "db": ("database", "storage", "sql"),
    "storage": ("database", "db", "persistence"),
    "api": ("endpoint", "rest", "service", "backend"),
    "endpoint": ("api", "rest", "route"),
    "rest": ("api", "endpoint", "rest-api"),
    "test": ("testing", "unit-test", "integration-test", "spec"),
    "testing": ("test", "unit-test", "qa"),
    "frontend": ("ui", "ux", "client", "web"),
    "ui": ("frontend", "interface", "ux"),
    "ux": ("ui", "frontend", "user-experience"),
    "backend": ("server", "api", "service"),
    "server": ("backend", "service"),
    "docs": ("documentation", "readme", "guide"),
    "documentation": ("docs", "readme", "guide"),
    "config": ("configuration", "settings", "setup"),
    "configuration": ("config", "settings", "setup"),
    "security": ("vulnerability", "exploit", "cve", "secure"),
    "vulnerability": ("security", "exploit", "vuln"),
}

# parent tag -> child tags; searching a parent also matches its children.
DEFAULT_TAG_HIERARCHY: dict[str, tuple[str, ...]] = {
    "backend": ("api", "database", "server", "auth"),
    "frontend": ("ui", "ux", "component", "styling"),
    "testing": ("unit-test", "integration-test", "e2e-test", "test-fix"),
    "bug-fix": ("hotfix", "patch", "critical-fix"),
    "performance": ("optimization", "caching", "lazy-loading", "bundling"),
    "security": ("auth", "encryption", "vulnerability", "hardening"),
}

SynonymMap = Mapping[str, Sequence[str]]
Hierarchy = Mapping[str, Sequence[str]]


def _dedup(tags: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for t in tags:
        if t not in seen:
            seen.add(t)
            out.append(t)
    return out


def expand_tag_synonyms(tag: str, synonyms: SynonymMap = DEFAULT_TAG_SYNONYMS) -> list[str]:
    """The lowercased tag followed by its synonyms."""
    t = tag.lower()
    return [t, *synonyms.get(t, ())]


def expand_tags_synonyms(tags: Iterable[str], synonyms: SynonymMap = DEFAULT_TAG_SYNONYMS) -> list[str]:
    return _dedup(s for t in tags for s in expand_tag_synonyms(t, synonyms))


def parent_tags(tag: str, hierarchy: Hierarchy = DEFAULT_TAG_HIERARCHY) -> list[str]:
    t = tag.lower()
    return [parent for parent, children in hierarchy.items() if t in children]


def child_tags(tag: str, hierarchy: Hierarchy = DEFAULT_TAG_HIERARCHY) -> list[str]:
    return list(hierarchy.get(tag.lower(), ()))


def expand_tags_hierarchical(tags: Iterable[str], hierarchy: Hierarchy = DEFAULT_TAG_HIERARCHY) -> list[str]:
    """Lowercased tags plus the children of any parent tag among them."""
    base = [t.lower() for t in tags]
    return _dedup([*base, *(c for t in base for c in child_tags(t, hierarchy))])


def expand_tags_full(
    tags: Iterable[str],
    synonyms: SynonymMap = DEFAULT_TAG_SYNONYMS,
    hierarchy: Hierarchy = DEFAULT_TAG_HIERARCHY,
) -> list[str]:
    """Synonyms first, then hierarchy children of everything found so far."""
    return expand_tags_hierarchical(expand_tags_synonyms(tags, synonyms), hierarchy)


def _word_re(term: str) -> re.Pattern[str]:
    return re.compile(r"(?<![a-z0-9])" + re.escape(term) + r"(?![a-z0-9])")


def suggest_tags(
    content: str,
    existing_tags: Iterable[str] = (),
    limit: int = 5,
    synonyms: SynonymMap = DEFAULT_TAG_SYNONYMS,
) -> list[str]:
    """Suggest vocabulary tags for ``content``.

    A tag scores 2 when it appears in the text as a word and 1 for each of its
    synonyms that does. Tags already applied are skipped; ties go by tag name.
    """
    text = content.lower()
    existing = {t.lower() for t in existing_tags}
    scores: dict[str, int] = {}
    for tag, syns in synonyms.items():
        if tag in existing:
            continue
        s = 2 if _word_re(tag).search(text) else 0
        s += sum(1 for syn in syns if _word_re(syn).search(text))
        if s > 0:
            scores[tag] = s

    ranked = sorted(scores.items(), key=lambda ts: (-ts[1], ts[0]))
    return [tag for tag, _ in ranked[: max(0, int(limit))]]
