"""Grouped layout, one container at a time.

The flat adapter has no notion of groups, so a grouped graph is laid out one
container at a time:

  1. Lay out the root's direct children (top-level nodes and groups) with every
     edge collapsed onto the outermost group it touches.
  2. For each group, lay out its direct children (nodes and child groups) with
     the edges internal to it, and shift the result by the group's own global
     position.
  3. Repeat, parent before child, until every group has been visited.

Every placement is in the global frame; results from sibling groups are
accumulated, never overwritten.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Sequence

from group_layout.adapters import LayoutAdapter, default_adapter
from group_layout.compose import compose
from group_layout.partition import GroupTree, Scope
from group_layout.projection import edges_for_scope
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

logger = logging.getLogger(__name__)


def layout_group(
    request: LayoutRequest,
    offset: Position = ORIGIN,
    adapter: LayoutAdapter | None = None,
) -> LayoutResult:
    """Place every node and group of ``request``, shifted by ``offset``.

    Does not modify ``request``. Entities the adapter leaves unpositioned, and
    everything inside them, are missing from the result.

    Raises:
        GroupNestingError: if group parent links form a cycle.
    """
    if adapter is None:
        adapter = default_adapter()
    tree = GroupTree.build(request.nodes, request.groups)

    # Each group only needs its parent's placement, so scopes are processed
    # parent-first from a queue rather than by recursion.
    result = LayoutResult()
    pending: deque[tuple[Scope, Position]] = deque([(tree.root, offset)])
    while pending:
        scope, origin = pending.popleft()
        placed = layout_scope(scope, request, origin, adapter)
        result.merge(placed)

        placed_groups = placed.placements_by_id(EntityKind.GROUP)
        for sub in scope.scopes:
            group = placed_groups.get(sub.name)
            if group is not None:
                pending.append((sub, group.position))

    return result


def layout_scope(
    scope: Scope,
    request: LayoutRequest,
    offset: Position,
    adapter: LayoutAdapter,
) -> LayoutResult:
    """Lay out one container's direct children and shift them by ``offset``.

    Child groups are placed but not descended into.
    """
    result = LayoutResult()
    children = scope.children
    if not children:
        return result

    edges = edges_for_scope(request.edges, scope)
    local = run_adapter(adapter, children, edges, request, scope=scope.name)

    for entity in children:
        position = local.get(entity.key)
        if position is None:
            logger.debug("adapter left %s %r unplaced in scope %s", entity.kind.value, entity.id, scope.name)
            continue
        result.add(Placement(id=entity.id, kind=entity.kind, position=compose(position, offset)))

    return result


def run_adapter(
    adapter: LayoutAdapter,
    entities: Sequence[Entity],
    edges: Sequence[Edge],
    request: LayoutRequest,
    scope: str = "<root>",
) -> dict[str, Position]:
    """One flat layout pass over fresh working copies; returns id key → local position."""
    items = [LayoutItem.for_entity(e) for e in entities]
    graph = FlatGraph(items=items, edges=list(edges), ranksep=request.ranksep, nodesep=request.nodesep)
    logger.debug("laying out scope %s: %d entities, %d edges", scope, len(items), len(graph.edges))
    adapter.layout(graph)
    return {item.key: item.position for item in items if item.position is not None}
