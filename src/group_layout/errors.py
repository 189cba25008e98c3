"""Exceptions raised by group_layout."""

from __future__ import annotations


class GroupLayoutError(Exception):
    """Base class for grouped-layout errors."""


class InvalidRequestError(GroupLayoutError):
    """Layout params are missing required structure (``data``, ids, endpoints)."""


class GroupNestingError(GroupLayoutError):
    """Group parent links form a cycle, so no containment tree exists."""

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        chain = " -> ".join(cycle)
        super().__init__(f"group nesting is cyclic: {chain}")
