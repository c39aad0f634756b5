"""Feature-hashing embeddings (hashed bag-of-words).

Each token is hashed with 32-bit FNV-1a and folded into ``dimension`` buckets.
Collisions are accepted: ``dimension`` trades discrimination for memory.
The hash function is pinned; changing it silently changes every stored vector.
Vectors built with different dimensions are not comparable.
"""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np

from ..errors import InvalidArgument
from ..model import Node
from .tokenizer import tokenize


DEFAULT_DIMENSION = 256
# Tags are curated, so they count double against a content token.
DEFAULT_TAG_WEIGHT = 2.0

_FNV_OFFSET = 0x811C9DC5
_FNV_PRIME = 0x01000193


def fnv1a_32(token: str) -> int:
    h = _FNV_OFFSET
    for b in token.encode("utf-8"):
        h ^= b
        h = (h * _FNV_PRIME) & 0xFFFFFFFF
    return h


def check_dimension(dimension: int) -> int:
    if isinstance(dimension, bool) or not isinstance(dimension, (int, np.integer)):
        raise InvalidArgument(f"dimension must be an integer, got {dimension!r}")
    if dimension <= 0:
        raise InvalidArgument(f"dimension must be positive, got {dimension}")
    return int(dimension)


def embed(
    content: str,
    tags: Iterable[str] = (),
    dimension: int = DEFAULT_DIMENSION,
    *,
    tag_weight: float = DEFAULT_TAG_WEIGHT,
) -> np.ndarray:
    """Return an L2-normalized float32 vector of length ``dimension``.

    Empty input (no tokens in content or tags) gives the zero vector.
    """
    dim = check_dimension(dimension)
    raw = np.zeros(dim, dtype=np.float64)

    for tok in tokenize(content or ""):
        raw[fnv1a_32(tok) % dim] += 1.0
    for tag in tags:
        for tok in tokenize(tag):
            raw[fnv1a_32(tok) % dim] += float(tag_weight)

    return _l2_normalize(raw).astype(np.float32)


def embed_node(node: Node, dimension: int = DEFAULT_DIMENSION, *, tag_weight: float = DEFAULT_TAG_WEIGHT) -> np.ndarray:
    return embed(node.content, node.tags, dimension, tag_weight=tag_weight)


def embed_nodes(
    nodes: Sequence[Node],
    dimension: int = DEFAULT_DIMENSION,
    *,
    tag_weight: float = DEFAULT_TAG_WEIGHT,
) -> tuple[list[str], np.ndarray]:
    """Embed a batch; returns (ids, matrix of shape [n, dimension])."""
    dim = check_dimension(dimension)
    ids = [n.id for n in nodes]
    if not nodes:
        return ids, np.zeros((0, dim), dtype=np.float32)
    vectors = np.vstack([embed_node(n, dim, tag_weight=tag_weight) for n in nodes])
    return ids, vectors


def _l2_normalize(x: np.ndarray) -> np.ndarray:
    norm = float(np.linalg.norm(x))
    if norm == 0.0:
        return x
    return x / norm
