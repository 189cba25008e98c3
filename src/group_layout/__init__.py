"""group_layout — lay out nodes inside nested groups on top of a flat layout engine."""

from __future__ import annotations

from group_layout.adapters import LayoutAdapter, SugiyamaAdapter
from group_layout.api import apply_group_layout, compute_group_layout
from group_layout.compose import compose
from group_layout.engine import layout_group
from group_layout.errors import GroupLayoutError, GroupNestingError, InvalidRequestError
from group_layout.partition import GroupTree, partition
from group_layout.projection import project_edges
from group_layout.types import (
    ORIGIN,
    Edge,
    Entity,
    EntityKind,
    FlatGraph,
    LayoutItem,
    LayoutRequest,
    LayoutResult,
    Placement,
    Position,
)

__all__ = [
    "ORIGIN",
    "Edge",
    "Entity",
    "EntityKind",
    "FlatGraph",
    "GroupLayoutError",
    "GroupNestingError",
    "GroupTree",
    "InvalidRequestError",
    "LayoutAdapter",
    "LayoutItem",
    "LayoutRequest",
    "LayoutResult",
    "Placement",
    "Position",
    "SugiyamaAdapter",
    "apply_group_layout",
    "compose",
    "compute_group_layout",
    "layout_group",
    "partition",
    "project_edges",
]
