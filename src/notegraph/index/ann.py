"""Approximate nearest neighbors with random-hyperplane LSH.

Every vector gets a ``num_planes``-bit signature: bit i is set when the vector
lies on the positive side of hyperplane i. Similar directions tend to share
most bits, so a query only scans its own bucket and the buckets a few bit
flips away, then re-ranks those candidates by exact cosine similarity.

Recall is not guaranteed; use ``BruteForceSearch`` when exact top-k matters.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from itertools import combinations
from typing import Iterable

import numpy as np

from ..errors import InvalidArgument
from .embedder import check_dimension
from .vector_store import NeighborResult, VectorEntry, as_vector, rank


logger = logging.getLogger(__name__)


class HyperplaneIndex:
    def __init__(
        self,
        dimension: int,
        *,
        num_planes: int = 8,
        probe_radius: int = 1,
        max_probe_radius: int = 2,
        seed: int = 0,
    ):
        self.dimension = check_dimension(dimension)
        if num_planes <= 0 or num_planes > 62:
            raise InvalidArgument(f"num_planes must be in 1..62, got {num_planes}")
        if probe_radius < 0 or max_probe_radius < probe_radius:
            raise InvalidArgument("need 0 <= probe_radius <= max_probe_radius")

        self.num_planes = int(num_planes)
        self.probe_radius = int(probe_radius)
        self.max_probe_radius = min(int(max_probe_radius), self.num_planes)

        rng = np.random.default_rng(seed)
        # Gaussian normals, hyperplanes through the origin.
        self._planes = rng.standard_normal((self.num_planes, self.dimension)).astype(np.float32)
        self._buckets: dict[int, list[VectorEntry]] = defaultdict(list)
        self._count = 0

    def __len__(self) -> int:
        return self._count

    @property
    def num_buckets(self) -> int:
        return len(self._buckets)

    def signature(self, vector: np.ndarray) -> int:
        v = self._check(vector)
        bits = (self._planes @ v) >= 0.0
        sig = 0
        for i, b in enumerate(bits):
            if b:
                sig |= 1 << i
        return sig

    def build(self, entries: Iterable[VectorEntry]) -> None:
        self._buckets = defaultdict(list)
        self._count = 0
        for e in entries:
            self.insert(e)
        logger.debug("Built hyperplane index: %d vectors in %d buckets", self._count, self.num_buckets)

    def insert(self, entry: VectorEntry) -> None:
        vec = self._check(entry.vector)
        self._buckets[self.signature(vec)].append(VectorEntry(id=entry.id, vector=vec))
        self._count += 1

    def candidates(self, vector: np.ndarray, radius: int) -> list[VectorEntry]:
        sig = self.signature(vector)
        out: list[VectorEntry] = []
        for r in range(radius + 1):
            for flips in combinations(range(self.num_planes), r):
                probe = sig
                for bit in flips:
                    probe ^= 1 << bit
                out.extend(self._buckets.get(probe, ()))
        return out

    def query(self, vector: np.ndarray, k: int) -> list[NeighborResult]:
        if k <= 0 or self._count == 0:
            return []
        q = self._check(vector)
        if k >= self._count:
            # Every stored entry is wanted anyway.
            return rank(q, [e for bucket in self._buckets.values() for e in bucket], k)

        radius = self.probe_radius
        cands = self.candidates(q, radius)
        while len(cands) < k and radius < self.max_probe_radius:
            radius += 1
            cands = self.candidates(q, radius)

        logger.debug("Hyperplane query scanned %d/%d vectors (radius=%d)", len(cands), self._count, radius)
        return rank(q, cands, k)

    def _check(self, vector: np.ndarray) -> np.ndarray:
        v = as_vector(vector)
        if v.shape[0] != self.dimension:
            raise InvalidArgument(f"Vector has dimension {v.shape[0]}, index expects {self.dimension}")
        return v
