"""Layout adapter protocol."""

from __future__ import annotations

from typing import Protocol

from group_layout.types import FlatGraph


class LayoutAdapter(Protocol):
    """Protocol that every flat layout engine must implement.

    ``layout`` assigns ``top``/``left`` to every item in ``graph.items`` in
    place, isolated items included, and returns nothing. It knows nothing about
    groups.
    """

    def layout(self, graph: FlatGraph) -> None:
        """Position every item of a flat graph."""
        ...
