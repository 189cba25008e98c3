"""Position composition — move a sub-layout's local coordinates into its parent's frame."""

from __future__ import annotations

from group_layout.types import ORIGIN, Position


def compose(local: Position, offset: Position | None = None) -> Position:
    """Return ``local`` shifted by ``offset`` (the origin of the enclosing frame)."""
    if offset is None:
        offset = ORIGIN
    return Position(top=local.top + offset.top, left=local.left + offset.left)
