"""Similarity-threshold clustering.

Nodes are embedded, every pair is compared, and any pair at or above the
threshold is merged (union-find). Each connected component is one cluster,
singletons included. All pairs are compared, so callers should bound the
number of nodes they pass in.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..errors import InvalidArgument
from ..index.embedder import DEFAULT_DIMENSION, DEFAULT_TAG_WEIGHT, embed_nodes
from ..model import Node
from .emerging import keyword_frequencies


logger = logging.getLogger(__name__)

# Float noise allowance for the threshold test; identical notes must meet threshold=1.0.
SIMILARITY_EPSILON = 1e-9


@dataclass(frozen=True)
class Cluster:
    members: frozenset[str]

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def first_id(self) -> str:
        return min(self.members)


@dataclass(frozen=True)
class ClusterSummary:
    cluster: Cluster
    name: str
    keywords: list[str]
    center_node: str
    coherence: float


class _UnionFind:
    def __init__(self, n: int):
        self.parent = list(range(n))
        self.rank = [0] * n

    def find(self, x: int) -> int:
        while self.parent[x] != x:
            self.parent[x] = self.parent[self.parent[x]]
            x = self.parent[x]
        return x

    def union(self, a: int, b: int) -> None:
        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return
        if self.rank[ra] < self.rank[rb]:
            ra, rb = rb, ra
        self.parent[rb] = ra
        if self.rank[ra] == self.rank[rb]:
            self.rank[ra] += 1


def similarity_matrix(vectors: np.ndarray) -> np.ndarray:
    """Pairwise cosine similarity of row vectors; zero rows score 0 against everything."""
    v = vectors.astype(np.float64)
    norms = np.linalg.norm(v, axis=1)
    safe = np.where(norms == 0.0, 1.0, norms)
    unit = v / safe[:, None]
    sims = unit @ unit.T
    zero = norms == 0.0
    sims[zero, :] = 0.0
    sims[:, zero] = 0.0
    return np.clip(sims, -1.0, 1.0)


def _check_ids(nodes: Sequence[Node]) -> None:
    seen: set[str] = set()
    for n in nodes:
        if n.id in seen:
            raise InvalidArgument(f"Duplicate node id: {n.id!r}")
        seen.add(n.id)


def cluster(
    nodes: Sequence[Node],
    threshold: float = 0.55,
    *,
    dimension: int = DEFAULT_DIMENSION,
    tag_weight: float = DEFAULT_TAG_WEIGHT,
) -> list[Cluster]:
    """Partition nodes into similarity-connected components, ordered by smallest member id."""
    try:
        threshold = float(threshold)
    except (TypeError, ValueError) as e:
        raise InvalidArgument(f"threshold must be a number, got {threshold!r}") from e
    if math.isnan(threshold) or not 0.0 <= threshold <= 1.0:
        raise InvalidArgument(f"threshold must be within [0, 1], got {threshold!r}")
    nodes = list(nodes)
    if not nodes:
        return []
    _check_ids(nodes)

    ids, vectors = embed_nodes(nodes, dimension, tag_weight=tag_weight)
    sims = similarity_matrix(vectors)

    uf = _UnionFind(len(ids))
    for i, j in np.argwhere(np.triu(sims >= threshold - SIMILARITY_EPSILON, k=1)):
        uf.union(int(i), int(j))

    groups: dict[int, set[str]] = {}
    for i, node_id in enumerate(ids):
        groups.setdefault(uf.find(i), set()).add(node_id)

    out = sorted((Cluster(members=frozenset(g)) for g in groups.values()), key=lambda c: c.first_id)
    logger.debug("Clustered %d nodes into %d clusters (threshold=%.2f)", len(ids), len(out), threshold)
    return out


def summarize_clusters(
    nodes: Sequence[Node],
    clusters: Sequence[Cluster],
    *,
    dimension: int = DEFAULT_DIMENSION,
    tag_weight: float = DEFAULT_TAG_WEIGHT,
    top_keywords: int = 5,
) -> list[ClusterSummary]:
    """Name each cluster and measure how tight it is.

    coherence is the mean pairwise similarity (1.0 for singletons); the center
    node is the member most similar to the rest.
    """
    by_id = {n.id: n for n in nodes}
    summaries: list[ClusterSummary] = []

    for c in clusters:
        members = sorted(c.members)
        missing = [m for m in members if m not in by_id]
        if missing:
            raise InvalidArgument(f"Cluster members not found among nodes: {missing}")

        member_nodes = [by_id[m] for m in members]
        _, vectors = embed_nodes(member_nodes, dimension, tag_weight=tag_weight)
        sims = similarity_matrix(vectors)
        np.fill_diagonal(sims, 0.0)

        n = len(members)
        if n > 1:
            coherence = float(sims.sum()) / (n * (n - 1))
        else:
            coherence = 1.0

        totals = sims.sum(axis=1)
        # argmax takes the first maximum, which is the lowest id since members are sorted.
        center = members[int(np.argmax(totals))]

        freq = keyword_frequencies(member_nodes)
        keywords = [kw for kw, _ in sorted(freq.items(), key=lambda kv: (-kv[1], kv[0]))[:top_keywords]]
        name = " ".join(keywords[:3]) or "cluster"

        summaries.append(
            ClusterSummary(
                cluster=c,
                name=name,
                keywords=keywords,
                center_node=center,
                coherence=coherence,
            )
        )

    summaries.sort(key=lambda s: (-s.coherence, s.cluster.first_id))
    return summaries
