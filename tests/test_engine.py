"""Tests for engine.py — nested grouped layout and offset composition."""

from __future__ import annotations

import copy

import pytest

from group_layout.compose import compose
from group_layout.engine import layout_group
from group_layout.errors import GroupNestingError
from group_layout.types import ORIGIN, Edge, Entity, LayoutRequest, Position

# ─── Helpers ──────────────────────────────────────────────────────────────────


def make_request(nodes, groups=(), edges=(), ranksep=50, nodesep=50) -> LayoutRequest:
    """Build a request from (id, parent) pairs and (source, target) pairs."""
    return LayoutRequest(
        nodes=[Entity.node(nid, parent) for nid, parent in nodes],
        groups=[Entity.group(gid, parent) for gid, parent in groups],
        edges=[Edge(src, tgt) for src, tgt in edges],
        ranksep=ranksep,
        nodesep=nodesep,
    )


def single_group_request() -> LayoutRequest:
    """a at top level; b and c inside g1; a → b."""
    return make_request(
        nodes=[("a", None), ("b", "g1"), ("c", "g1")],
        groups=[("g1", None)],
        edges=[("a", "b")],
    )


def nested_request() -> LayoutRequest:
    """a at top level; g2 inside g1; d inside g2; a → d."""
    return make_request(
        nodes=[("a", None), ("d", "g2")],
        groups=[("g1", None), ("g2", "g1")],
        edges=[("a", "d")],
    )


# ─── Compose Tests ────────────────────────────────────────────────────────────


class TestCompose:
    def test_adds_offset(self):
        assert compose(Position(3, 4), Position(10, 20)) == Position(13, 24)

    def test_default_offset_is_identity(self):
        assert compose(Position(3, 4)) == Position(3, 4)
        assert compose(Position(3, 4), ORIGIN) == Position(3, 4)

    def test_negative_offset(self):
        assert compose(Position(5, 5), Position(-5, -10)) == Position(0, -5)


# ─── Single Group Tests ───────────────────────────────────────────────────────


class TestSingleGroup:
    def test_top_level_call_sees_collapsed_edge(self, adapter):
        """The first pass lays out [a, g1] with a → b collapsed to a → g1."""
        layout_group(single_group_request(), adapter=adapter)
        first = adapter.calls[0]
        assert first.ids == ["a", "g1"]
        assert first.edges == [("a", "g1")]

    def test_group_children_laid_out_without_edges(self, adapter):
        """The second pass lays out g1's children [b, c] and no edges."""
        layout_group(single_group_request(), adapter=adapter)
        assert len(adapter.calls) == 2
        second = adapter.calls[1]
        assert second.ids == ["b", "c"]
        assert second.edges == []

    def test_children_offset_by_group_position(self, adapter):
        adapter.positions.update({"a": (0, 0), "g1": (100, 40), "b": (5, 1), "c": (5, 200)})
        result = layout_group(single_group_request(), adapter=adapter)
        assert result.position_of("a") == Position(0, 0)
        assert result.position_of("g1") == Position(100, 40)
        assert result.position_of("b") == Position(105, 41)
        assert result.position_of("c") == Position(105, 240)

    def test_root_offset_applies_everywhere(self, adapter):
        adapter.positions.update({"a": (0, 0), "g1": (100, 40), "b": (5, 1), "c": (5, 200)})
        result = layout_group(single_group_request(), offset=Position(1000, 2000), adapter=adapter)
        assert result.position_of("a") == Position(1000, 2000)
        assert result.position_of("g1") == Position(1100, 2040)
        assert result.position_of("b") == Position(1105, 2041)

    def test_spacing_forwarded_to_every_call(self, adapter):
        request = single_group_request()
        request.ranksep, request.nodesep = 7, 9
        layout_group(request, adapter=adapter)
        assert [(c.ranksep, c.nodesep) for c in adapter.calls] == [(7, 9), (7, 9)]

    def test_internal_edge_kept_inside_group(self, adapter):
        """b → c stays inside g1; at top level it becomes the self-loop g1 → g1."""
        request = make_request(
            nodes=[("b", "g1"), ("c", "g1")],
            groups=[("g1", None)],
            edges=[("b", "c")],
        )
        layout_group(request, adapter=adapter)
        assert adapter.calls[0].edges == [("g1", "g1")]
        assert adapter.calls[1].edges == [("b", "c")]

    def test_results_split_by_kind(self, adapter):
        result = layout_group(single_group_request(), adapter=adapter)
        assert sorted(p.id for p in result.nodes) == ["a", "b", "c"]
        assert [p.id for p in result.groups] == ["g1"]

    def test_empty_group_makes_no_call(self, adapter):
        request = make_request(nodes=[("a", None)], groups=[("g1", None)])
        result = layout_group(request, adapter=adapter)
        assert len(adapter.calls) == 1
        assert result.position_of("g1") is not None


# ─── Nesting Tests ────────────────────────────────────────────────────────────


class TestNestedGroups:
    def test_three_adapter_calls(self, adapter):
        layout_group(nested_request(), adapter=adapter)
        assert [c.ids for c in adapter.calls] == [["a", "g1"], ["g2"], ["d"]]

    def test_edges_collapse_per_level(self, adapter):
        """a → d is a → g1 at the top; it touches nothing inside g1 or g2 on its own."""
        layout_group(nested_request(), adapter=adapter)
        assert adapter.calls[0].edges == [("a", "g1")]
        assert adapter.calls[1].edges == []
        assert adapter.calls[2].edges == []

    def test_offset_accumulates_along_ancestors(self, adapter):
        adapter.positions.update({"a": (0, 0), "g1": (100, 50), "g2": (10, 20), "d": (1, 2)})
        result = layout_group(nested_request(), adapter=adapter)
        assert result.position_of("g1") == Position(100, 50)
        assert result.position_of("g2") == Position(110, 70)
        assert result.position_of("d") == Position(111, 72)

    def test_nested_group_edges_collapse_to_direct_child(self, adapter):
        """Inside g1, an edge from x to d (in g2) collapses to x → g2."""
        request = make_request(
            nodes=[("x", "g1"), ("d", "g2")],
            groups=[("g1", None), ("g2", "g1")],
            edges=[("x", "d")],
        )
        layout_group(request, adapter=adapter)
        assert adapter.calls[0].edges == [("g1", "g1")]
        assert adapter.calls[1].ids == ["x", "g2"]
        assert adapter.calls[1].edges == [("x", "g2")]

    def test_sibling_branches_accumulate(self, adapter):
        """Every nested branch contributes, not only the last one visited."""
        request = make_request(
            nodes=[("n1", "g1a"), ("n2", "g1b"), ("n3", "g2a")],
            groups=[("g1", None), ("g2", None), ("g1a", "g1"), ("g1b", "g1"), ("g2a", "g2")],
        )
        result = layout_group(request, adapter=adapter)
        assert sorted(p.id for p in result.nodes) == ["n1", "n2", "n3"]
        assert sorted(p.id for p in result.groups) == ["g1", "g1a", "g1b", "g2", "g2a"]

    def test_deep_nesting(self, adapter):
        depth = 6
        groups = [(f"g{i}", f"g{i - 1}" if i else None) for i in range(depth)]
        request = make_request(nodes=[("leaf", f"g{depth - 1}")], groups=groups)
        for i in range(depth):
            adapter.positions[f"g{i}"] = (1, 10)
        adapter.positions["leaf"] = (1, 1)
        result = layout_group(request, adapter=adapter)
        assert result.position_of(f"g{depth - 1}") == Position(depth, 10 * depth)
        assert result.position_of("leaf") == Position(depth + 1, 10 * depth + 1)

    def test_nesting_deeper_than_recursion_limit(self, adapter):
        """A 2000-level chain of groups is laid out without exhausting the stack."""
        depth = 2000
        groups = [(f"g{i}", f"g{i - 1}" if i else None) for i in range(depth)]
        request = make_request(nodes=[("leaf", f"g{depth - 1}")], groups=groups)
        for i in range(depth):
            adapter.positions[f"g{i}"] = (1, 2)
        adapter.positions["leaf"] = (1, 1)
        result = layout_group(request, adapter=adapter)
        assert len(adapter.calls) == depth + 1
        assert len(result.groups) == depth
        assert result.position_of("leaf") == Position(depth + 1, 2 * depth + 1)


# ─── Invariant Tests ──────────────────────────────────────────────────────────


class TestInvariants:
    def test_every_entity_placed_exactly_once(self, adapter):
        request = make_request(
            nodes=[("a", None), ("b", "g1"), ("c", "g2"), ("d", "g3"), ("e", "g3")],
            groups=[("g1", None), ("g2", "g1"), ("g3", "g1"), ("g4", None)],
            edges=[("a", "b"), ("b", "c"), ("c", "d"), ("d", "e"), ("e", "a")],
        )
        result = layout_group(request, adapter=adapter)
        node_ids = [p.id for p in result.nodes]
        group_ids = [p.id for p in result.groups]
        assert sorted(node_ids) == ["a", "b", "c", "d", "e"]
        assert sorted(group_ids) == ["g1", "g2", "g3", "g4"]
        assert len(set(node_ids)) == len(node_ids)
        assert len(set(group_ids)) == len(group_ids)

    def test_request_not_mutated(self, adapter):
        request = nested_request()
        before = copy.deepcopy(request)
        layout_group(request, adapter=adapter)
        assert request == before

    def test_empty_request(self, adapter):
        result = layout_group(LayoutRequest(), adapter=adapter)
        assert result.nodes == []
        assert result.groups == []
        assert adapter.calls == []

    def test_unplaced_group_drops_its_contents(self, adapter):
        adapter.skip.add("g1")
        result = layout_group(single_group_request(), adapter=adapter)
        assert result.position_of("g1") is None
        assert result.position_of("b") is None
        assert result.position_of("a") is not None

    def test_unknown_endpoint_passed_through_at_top_level(self, adapter):
        request = make_request(nodes=[("a", None), ("b", "g1")], groups=[("g1", None)], edges=[("a", "ghost")])
        layout_group(request, adapter=adapter)
        assert adapter.calls[0].edges == [("a", "ghost")]

    def test_cyclic_nesting_raises(self, adapter):
        request = make_request(nodes=[("a", "g1")], groups=[("g1", "g2"), ("g2", "g1")])
        with pytest.raises(GroupNestingError):
            layout_group(request, adapter=adapter)
        assert adapter.calls == []

    def test_numeric_and_string_ids_match(self, adapter):
        request = make_request(nodes=[(1, None), (2, "10")], groups=[(10, None)], edges=[("1", 2)])
        adapter.positions.update({"10": (100, 100), "2": (1, 1)})
        result = layout_group(request, adapter=adapter)
        assert adapter.calls[0].edges == [("1", "10")]
        assert result.position_of("2") == Position(101, 101)
