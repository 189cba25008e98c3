"""Data model shared by the partitioner, projector, engine and adapters."""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from group_layout.config import (
    DEFAULT_NODE_HEIGHT,
    DEFAULT_NODE_WIDTH,
    DEFAULT_NODESEP,
    DEFAULT_RANKSEP,
    LayoutOptions,
)
from group_layout.errors import InvalidRequestError

# Record keys understood on caller-supplied node/group/edge mappings.
ID_KEY = "id"
GROUP_KEY = "group"
SOURCE_KEY = "source"
TARGET_KEY = "target"


def id_key(value: Hashable) -> str:
    """Normalise an id for comparison: ``1`` and ``"1"`` name the same entity."""
    return str(value)


# ─── Entities ─────────────────────────────────────────────────────────────────


class EntityKind(Enum):
    NODE = "node"
    GROUP = "group"


@dataclass(frozen=True)
class Entity:
    """A positionable node or group.

    Nodes and groups share every field; ``kind`` tells them apart. ``parent`` is
    the id of the enclosing group (``None`` for top-level entities). Width and
    height are optional size hints handed to the layout adapter.
    """

    id: Hashable
    kind: EntityKind
    parent: Hashable | None = None
    width: float | None = None
    height: float | None = None

    @classmethod
    def node(cls, id: Hashable, parent: Hashable | None = None, **sizes: float) -> Entity:
        return cls(id=id, kind=EntityKind.NODE, parent=parent, **sizes)

    @classmethod
    def group(cls, id: Hashable, parent: Hashable | None = None, **sizes: float) -> Entity:
        return cls(id=id, kind=EntityKind.GROUP, parent=parent, **sizes)

    @classmethod
    def from_record(cls, record: Mapping[str, Any], kind: EntityKind) -> Entity:
        """Read an entity out of a caller record such as ``{"id": "a", "group": "g1"}``."""
        if ID_KEY not in record:
            raise InvalidRequestError(f"{kind.value} record has no {ID_KEY!r}: {dict(record)!r}")
        return cls(
            id=record[ID_KEY],
            kind=kind,
            parent=record.get(GROUP_KEY) or None,
            width=record.get("width"),
            height=record.get("height"),
        )

    @property
    def key(self) -> str:
        return id_key(self.id)

    @property
    def is_top_level(self) -> bool:
        return self.parent is None


@dataclass(frozen=True)
class Edge:
    """A directed relation between two entity ids.

    ``data`` carries every other field of the caller's edge record untouched.
    """

    source: Hashable
    target: Hashable
    data: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Edge:
        if SOURCE_KEY not in record or TARGET_KEY not in record:
            raise InvalidRequestError(f"edge record needs {SOURCE_KEY!r} and {TARGET_KEY!r}: {dict(record)!r}")
        payload = {k: v for k, v in record.items() if k not in (SOURCE_KEY, TARGET_KEY)}
        return cls(source=record[SOURCE_KEY], target=record[TARGET_KEY], data=payload)

    def with_endpoints(self, source: Hashable, target: Hashable) -> Edge:
        return replace(self, source=source, target=target)

    @property
    def endpoints(self) -> tuple[str, str]:
        """String-coerced (source, target) pair used for matching and dedup."""
        return (id_key(self.source), id_key(self.target))


# ─── Positions ────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Position:
    """A top/left coordinate. Also used as the origin (offset) of a sub-layout frame."""

    top: float
    left: float


ORIGIN = Position(top=0, left=0)


@dataclass(frozen=True)
class Placement:
    """One coordinate assignment for one entity, in the global frame."""

    id: Hashable
    kind: EntityKind
    position: Position

    @property
    def top(self) -> float:
        return self.position.top

    @property
    def left(self) -> float:
        return self.position.left


# ─── Requests & Results ───────────────────────────────────────────────────────


@dataclass
class LayoutRequest:
    """The full input to a grouped layout: entities, edges and spacing hints.

    ``ranksep`` and ``nodesep`` are never interpreted here; they are forwarded
    to every adapter call verbatim.
    """

    nodes: list[Entity] = field(default_factory=list)
    groups: list[Entity] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    ranksep: Any = DEFAULT_RANKSEP
    nodesep: Any = DEFAULT_NODESEP

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> LayoutRequest:
        """Build a request from ``{"data": {"nodes", "groups", "edges"}, "ranksep", "nodesep"}``.

        Only reads ``params``; the caller's records are never modified here.
        """
        data = params.get("data")
        if not isinstance(data, Mapping):
            raise InvalidRequestError("layout params need a 'data' mapping with nodes/groups/edges")

        options = LayoutOptions.from_params(params)
        return cls(
            nodes=[Entity.from_record(r, EntityKind.NODE) for r in data.get("nodes") or []],
            groups=[Entity.from_record(r, EntityKind.GROUP) for r in data.get("groups") or []],
            edges=[Edge.from_record(r) for r in data.get("edges") or []],
            ranksep=options.ranksep,
            nodesep=options.nodesep,
        )


@dataclass
class LayoutResult:
    """Flat placement lists, one per entity kind."""

    nodes: list[Placement] = field(default_factory=list)
    groups: list[Placement] = field(default_factory=list)

    def add(self, placement: Placement) -> None:
        if placement.kind is EntityKind.GROUP:
            self.groups.append(placement)
        else:
            self.nodes.append(placement)

    def merge(self, other: LayoutResult) -> LayoutResult:
        """Accumulate ``other`` into this result (never replaces) and return self."""
        self.nodes.extend(other.nodes)
        self.groups.extend(other.groups)
        return self

    def position_of(self, entity_id: Hashable) -> Position | None:
        key = id_key(entity_id)
        for placement in (*self.nodes, *self.groups):
            if id_key(placement.id) == key:
                return placement.position
        return None

    def placements_by_id(self, kind: EntityKind) -> dict[str, Placement]:
        source = self.groups if kind is EntityKind.GROUP else self.nodes
        return {id_key(p.id): p for p in source}


# ─── Adapter Working Copies ───────────────────────────────────────────────────


@dataclass
class LayoutItem:
    """A mutable box handed to a layout adapter, which fills in ``top``/``left``."""

    id: Hashable
    width: float = DEFAULT_NODE_WIDTH
    height: float = DEFAULT_NODE_HEIGHT
    top: float | None = None
    left: float | None = None

    @classmethod
    def for_entity(cls, entity: Entity) -> LayoutItem:
        return cls(
            id=entity.id,
            width=entity.width if entity.width is not None else DEFAULT_NODE_WIDTH,
            height=entity.height if entity.height is not None else DEFAULT_NODE_HEIGHT,
        )

    @property
    def key(self) -> str:
        return id_key(self.id)

    @property
    def position(self) -> Position | None:
        if self.top is None or self.left is None:
            return None
        return Position(top=self.top, left=self.left)


@dataclass
class FlatGraph:
    """A flat (group-free) layout problem: what one adapter call receives."""

    items: list[LayoutItem]
    edges: list[Edge]
    ranksep: Any = DEFAULT_RANKSEP
    nodesep: Any = DEFAULT_NODESEP
