from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable

from .errors import InvalidArgument


class NodeType(str, Enum):
    IDEA = "idea"
    DECISION = "decision"
    PROGRESS = "progress"
    INSIGHT = "insight"
    QUESTION = "question"


class Importance(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Relation(str, Enum):
    REFERENCES = "references"
    RELATES_TO = "relates_to"
    DERIVED_FROM = "derived_from"
    BLOCKS = "blocks"
    DUPLICATES = "duplicates"


def parse_timestamp(value: datetime | str) -> datetime:
    """Return a timezone-aware datetime; naive values are taken as UTC."""
    if isinstance(value, str):
        raw = value.strip()
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(raw)
        except ValueError as e:
            raise InvalidArgument(f"Invalid ISO timestamp: {value!r}") from e
    if not isinstance(value, datetime):
        raise InvalidArgument(f"Expected datetime or ISO string, got {type(value).__name__}")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _ordered_tags(tags: Iterable[str]) -> tuple[str, ...]:
    out: list[str] = []
    for t in tags:
        t = str(t).strip()
        if t and t not in out:
            out.append(t)
    return tuple(out)


@dataclass(frozen=True)
class Node:
    id: str
    content: str
    created_at: datetime
    tags: tuple[str, ...] = field(default_factory=tuple)
    updated_at: datetime | None = None
    type: NodeType = NodeType.IDEA
    importance: Importance | None = None

    def __post_init__(self) -> None:
        # Frozen: normalize through object.__setattr__.
        created = parse_timestamp(self.created_at)
        object.__setattr__(self, "created_at", created)
        object.__setattr__(
            self,
            "updated_at",
            parse_timestamp(self.updated_at) if self.updated_at is not None else created,
        )
        object.__setattr__(self, "tags", _ordered_tags(self.tags))
        object.__setattr__(self, "type", NodeType(self.type))
        if self.importance is not None:
            object.__setattr__(self, "importance", Importance(self.importance))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Node":
        """Build a node from the store's JSON shape (camelCase keys accepted)."""
        try:
            node_id = str(data["id"])
            created = data.get("createdAt", data.get("created_at"))
            if created is None:
                raise KeyError("createdAt")
            tags = data.get("tags") or ()
            if not isinstance(tags, (list, tuple)):
                raise InvalidArgument(f"Node {node_id!r} tags must be a list, got {type(tags).__name__}")
            return cls(
                id=node_id,
                content=str(data.get("content") or ""),
                created_at=created,
                tags=tuple(str(t) for t in tags),
                updated_at=data.get("updatedAt", data.get("updated_at")),
                type=data.get("type") or NodeType.IDEA,
                importance=data.get("importance"),
            )
        except KeyError as e:
            raise InvalidArgument(f"Node is missing required field {e.args[0]!r}: {data!r}") from e
        except ValueError as e:
            if isinstance(e, InvalidArgument):
                raise
            raise InvalidArgument(f"Invalid node {data.get('id')!r}: {e}") from e


def nodes_from_payload(payload: Any) -> list[Node]:
    """Accept either a list of node dicts or an export payload {"nodes": [...], "edges": [...]}."""
    if isinstance(payload, dict):
        payload = payload.get("nodes")
    if not isinstance(payload, list):
        raise InvalidArgument("Expected a list of nodes or an object with a 'nodes' list")
    nodes = []
    for d in payload:
        if not isinstance(d, dict):
            raise InvalidArgument(f"Expected a node object, got {type(d).__name__}")
        nodes.append(Node.from_dict(d))
    return nodes
