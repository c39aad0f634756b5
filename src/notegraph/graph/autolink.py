from __future__ import annotations

from typing import Iterable

from ..index.tokenizer import tokenize
from ..model import Node


def find_auto_links(
    nodes: Iterable[Node],
    content: str,
    *,
    limit: int = 5,
    min_score: int = 3,
) -> list[str]:
    """Return ids of nodes that share keywords with ``content``, best first.

    A cheap keyword-overlap heuristic for linking a freshly captured note:
    each matching tag scores 2 and each matching content word scores 1.
    """
    words = set(tokenize(content, min_len=4))
    if not words:
        return []

    matches: list[tuple[int, str]] = []
    for n in nodes:
        s = 0
        for tag in n.tags:
            if tag.lower() in words:
                s += 2
        for tok in tokenize(n.content):
            if tok in words:
                s += 1
        if s >= min_score:
            matches.append((s, n.id))

    matches.sort(key=lambda m: (-m[0], m[1]))
    return [node_id for _, node_id in matches[: max(0, int(limit))]]
