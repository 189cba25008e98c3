"""Shared fixtures: a fake flat layout engine that records every call."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from group_layout.types import FlatGraph


@dataclass
class AdapterCall:
    """What one flat layout pass received."""

    ids: list[str]
    edges: list[tuple[str, str]]
    ranksep: object
    nodesep: object


@dataclass
class RecordingAdapter:
    """Places items from a fixed table and records every call.

    Ids missing from ``positions`` get ``(10 * i, 100 * i)`` by their index in
    the call; ids listed in ``skip`` are left unplaced.
    """

    positions: dict[str, tuple[float, float]] = field(default_factory=dict)
    skip: set[str] = field(default_factory=set)
    calls: list[AdapterCall] = field(default_factory=list)

    def layout(self, graph: FlatGraph) -> None:
        self.calls.append(
            AdapterCall(
                ids=[item.key for item in graph.items],
                edges=[edge.endpoints for edge in graph.edges],
                ranksep=graph.ranksep,
                nodesep=graph.nodesep,
            )
        )
        for i, item in enumerate(graph.items):
            if item.key in self.skip:
                continue
            item.top, item.left = self.positions.get(item.key, (10 * i, 100 * i))


@pytest.fixture
def adapter() -> RecordingAdapter:
    return RecordingAdapter()
