"""Text vectorization and nearest-neighbor search."""

from .ann import HyperplaneIndex
from .embedder import DEFAULT_DIMENSION, embed, embed_node, embed_nodes
from .tokenizer import tokenize
from .vector_store import (
    BruteForceSearch,
    NeighborResult,
    NeighborSearch,
    VectorEntry,
    cosine_similarity,
    find_nearest,
    make_search,
)

__all__ = [
    "BruteForceSearch",
    "DEFAULT_DIMENSION",
    "HyperplaneIndex",
    "NeighborResult",
    "NeighborSearch",
    "VectorEntry",
    "cosine_similarity",
    "embed",
    "embed_node",
    "embed_nodes",
    "find_nearest",
    "make_search",
    "tokenize",
]
