from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Protocol, Union

import numpy as np

from ..errors import InvalidArgument
from .embedder import check_dimension


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VectorEntry:
    id: str
    vector: np.ndarray  # shape [d], float32, L2-normalized


@dataclass(frozen=True)
class NeighborResult:
    node_id: str
    score: float


Corpus = Union[Iterable[VectorEntry], Mapping[str, np.ndarray]]


class NeighborSearch(Protocol):
    """Anything that answers top-k cosine queries over a set of entries."""

    def build(self, entries: Iterable[VectorEntry]) -> None: ...

    def insert(self, entry: VectorEntry) -> None: ...

    def query(self, vector: np.ndarray, k: int) -> list[NeighborResult]: ...

    def __len__(self) -> int: ...


def as_vector(v: np.ndarray | Iterable[float]) -> np.ndarray:
    arr = np.asarray(v, dtype=np.float32)
    if arr.ndim != 1:
        raise InvalidArgument(f"Expected a 1-D vector, got shape {arr.shape}")
    return arr


def as_entries(corpus: Corpus) -> list[VectorEntry]:
    if isinstance(corpus, Mapping):
        return [VectorEntry(id=str(k), vector=as_vector(v)) for k, v in corpus.items()]
    return [VectorEntry(id=e.id, vector=as_vector(e.vector)) for e in corpus]


def cosine_similarity(v1: np.ndarray, v2: np.ndarray) -> float:
    """Cosine of the angle between v1 and v2; 0.0 when either is the zero vector."""
    a = as_vector(v1)
    b = as_vector(v2)
    if a.shape[0] != b.shape[0]:
        raise InvalidArgument(f"Vector length mismatch: {a.shape[0]} != {b.shape[0]}")

    na = float(np.linalg.norm(a))
    nb = float(np.linalg.norm(b))
    if na == 0.0 or nb == 0.0:
        return 0.0
    sim = float(np.dot(a.astype(np.float64), b.astype(np.float64))) / (na * nb)
    return max(-1.0, min(1.0, sim))


def rank(query: np.ndarray, entries: Iterable[VectorEntry], k: int) -> list[NeighborResult]:
    """Exact re-rank: score every entry, best first, ties by lower id."""
    if k <= 0:
        return []
    q = as_vector(query)
    scored = [NeighborResult(node_id=e.id, score=cosine_similarity(q, e.vector)) for e in entries]
    scored.sort(key=lambda r: (-r.score, r.node_id))
    return scored[:k]


class BruteForceSearch:
    """Exact search; always correct, O(n) per query."""

    def __init__(self, dimension: int | None = None):
        self.dimension = check_dimension(dimension) if dimension is not None else None
        self._entries: list[VectorEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def build(self, entries: Iterable[VectorEntry]) -> None:
        self._entries = []
        for e in entries:
            self.insert(e)

    def insert(self, entry: VectorEntry) -> None:
        vec = as_vector(entry.vector)
        if self.dimension is None:
            self.dimension = int(vec.shape[0])
        elif vec.shape[0] != self.dimension:
            raise InvalidArgument(f"Entry {entry.id!r} has dimension {vec.shape[0]}, index expects {self.dimension}")
        self._entries.append(VectorEntry(id=entry.id, vector=vec))

    def query(self, vector: np.ndarray, k: int) -> list[NeighborResult]:
        q = as_vector(vector)
        if self.dimension is not None and q.shape[0] != self.dimension:
            raise InvalidArgument(f"Query has dimension {q.shape[0]}, index expects {self.dimension}")
        return rank(q, self._entries, k)


def find_nearest(
    query: np.ndarray,
    corpus: Corpus,
    k: int = 10,
    *,
    index: NeighborSearch | None = None,
) -> list[NeighborResult]:
    """Return the top-k neighbors of ``query``.

    When ``index`` holds entries the query goes to it (possibly approximate);
    a missing or empty index falls back to a brute-force scan of ``corpus``.
    """
    if index is not None and len(index) > 0:
        return index.query(query, k)

    entries = as_entries(corpus)
    if not entries or k <= 0:
        return []
    if index is not None:
        logger.debug("Neighbor index is empty; scanning %d vectors", len(entries))
    return rank(query, entries, k)


def make_search(
    method: str = "brute",
    dimension: int | None = None,
    *,
    num_planes: int = 8,
    seed: int = 0,
) -> NeighborSearch:
    """Pick a NeighborSearch implementation by name ("brute" or "hyperplane")."""
    m = (method or "").strip().lower()
    if m in ("brute", "exact"):
        return BruteForceSearch(dimension)
    if m in ("hyperplane", "ann", "lsh"):
        from .ann import HyperplaneIndex

        if dimension is None:
            raise InvalidArgument("hyperplane search needs an explicit dimension")
        return HyperplaneIndex(dimension, num_planes=num_planes, seed=seed)
    raise InvalidArgument(f"Unknown neighbor search method: {method!r}")
