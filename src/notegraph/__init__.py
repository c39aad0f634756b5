"""notegraph: similarity and relationship inference for a personal knowledge graph."""

from .errors import InvalidArgument, NotegraphError
from .model import Importance, Node, NodeType, Relation

__version__ = "0.1.0"

__all__ = [
    "Importance",
    "InvalidArgument",
    "Node",
    "NodeType",
    "NotegraphError",
    "Relation",
    "__version__",
]
