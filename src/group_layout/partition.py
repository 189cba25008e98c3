"""Graph partitioning — split a grouped graph into per-container layout problems.

``partition`` answers the flat question (who is top-level, who sits directly in
a given group). ``GroupTree`` builds on it to produce the whole containment
hierarchy once, so the engine can walk it instead of re-filtering the flat
collections at every level.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Hashable, Iterable, Iterator
from dataclasses import dataclass, field

import networkx as nx

from group_layout.errors import GroupNestingError
from group_layout.types import Entity, id_key

logger = logging.getLogger(__name__)

# ─── Partition ────────────────────────────────────────────────────────────────


@dataclass
class Partition:
    """Top-level entities plus direct membership per group id.

    ``members`` and ``subgroups`` are keyed by the string-coerced parent id and
    hold direct children only.
    """

    alone_nodes: list[Entity] = field(default_factory=list)
    alone_groups: list[Entity] = field(default_factory=list)
    members: dict[str, list[Entity]] = field(default_factory=dict)
    subgroups: dict[str, list[Entity]] = field(default_factory=dict)

    def children_of(self, group_id: Hashable) -> list[Entity]:
        """Nodes whose parent is ``group_id`` (not recursive)."""
        return list(self.members.get(id_key(group_id), []))

    def subgroups_of(self, group_id: Hashable) -> list[Entity]:
        """Groups whose parent is ``group_id`` (not recursive)."""
        return list(self.subgroups.get(id_key(group_id), []))


def partition(nodes: Iterable[Entity], groups: Iterable[Entity]) -> Partition:
    """Split nodes and groups by their ``parent`` link. Read-only."""
    result = Partition()
    for node in nodes:
        if node.is_top_level:
            result.alone_nodes.append(node)
        else:
            result.members.setdefault(id_key(node.parent), []).append(node)
    for group in groups:
        if group.is_top_level:
            result.alone_groups.append(group)
        else:
            result.subgroups.setdefault(id_key(group.parent), []).append(group)
    return result


# ─── Containment Tree ─────────────────────────────────────────────────────────


@dataclass(eq=False)
class Scope:
    """One container in the hierarchy: the root, or a single group.

    A scope owns its direct child nodes and the scopes of its direct child
    groups, both in input order. Traversals use an explicit stack, so nesting
    depth is not bounded by the interpreter's recursion limit.
    """

    group: Entity | None
    nodes: list[Entity] = field(default_factory=list)
    scopes: list[Scope] = field(default_factory=list, repr=False)

    @property
    def is_root(self) -> bool:
        return self.group is None

    @property
    def name(self) -> str:
        return "<root>" if self.group is None else self.group.key

    @property
    def child_groups(self) -> list[Entity]:
        return [s.group for s in self.scopes if s.group is not None]

    @property
    def children(self) -> list[Entity]:
        """Direct children laid out together: nodes first, then groups."""
        return [*self.nodes, *self.child_groups]

    def descendants(self) -> Iterator[Entity]:
        """Every entity below this scope, at any depth, in pre-order."""
        yield from self.nodes
        stack = list(reversed(self.scopes))
        while stack:
            sub = stack.pop()
            if sub.group is not None:
                yield sub.group
            yield from sub.nodes
            stack.extend(reversed(sub.scopes))

    def walk(self) -> Iterator[Scope]:
        """This scope and every scope below it, depth-first."""
        stack = [self]
        while stack:
            scope = stack.pop()
            yield scope
            stack.extend(reversed(scope.scopes))


@dataclass
class GroupTree:
    """The group-containment hierarchy, built once from flat input.

    ``orphans`` are entities whose parent names no known group. ``unreachable``
    are entities nested somewhere inside an orphan group. Neither is placed.
    """

    root: Scope
    orphans: list[Entity] = field(default_factory=list)
    unreachable: list[Entity] = field(default_factory=list)

    @classmethod
    def build(cls, nodes: Iterable[Entity], groups: Iterable[Entity]) -> GroupTree:
        """Build the tree, raising ``GroupNestingError`` if parent links loop."""
        nodes = list(nodes)
        groups = list(groups)
        check_nesting(groups)

        parts = partition(nodes, groups)
        group_keys = {g.key for g in groups}
        orphans = [e for e in (*nodes, *groups) if not e.is_top_level and id_key(e.parent) not in group_keys]
        for entity in orphans:
            logger.warning("%s %r names unknown group %r; it will not be placed", entity.kind.value, entity.id, entity.parent)

        # Parents are created before their children, so each scope's child list
        # fills up in input order.
        root = Scope(group=None, nodes=parts.alone_nodes)
        pending = deque((root, g) for g in parts.alone_groups)
        while pending:
            parent, group = pending.popleft()
            scope = Scope(group=group, nodes=parts.children_of(group.id))
            parent.scopes.append(scope)
            pending.extend((scope, g) for g in parts.subgroups_of(group.id))

        reachable = {e.key for e in root.descendants()}
        orphan_keys = {e.key for e in orphans}
        unreachable = [e for e in (*nodes, *groups) if e.key not in reachable and e.key not in orphan_keys]
        for entity in unreachable:
            logger.warning(
                "%s %r is nested inside a group with an unknown parent; it will not be placed",
                entity.kind.value,
                entity.id,
            )

        return cls(root=root, orphans=orphans, unreachable=unreachable)

    def scopes(self) -> Iterator[Scope]:
        return self.root.walk()

    def depth(self) -> int:
        """Nesting depth: 0 when there are no groups."""
        deepest = 0
        pending = deque([(self.root, 0)])
        while pending:
            scope, level = pending.popleft()
            deepest = max(deepest, level)
            pending.extend((sub, level + 1) for sub in scope.scopes)
        return deepest


def check_nesting(groups: Iterable[Entity]) -> None:
    """Raise ``GroupNestingError`` if following ``parent`` links ever loops."""
    containment: nx.DiGraph = nx.DiGraph()
    for group in groups:
        containment.add_node(group.key)
        if not group.is_top_level:
            containment.add_edge(id_key(group.parent), group.key)

    try:
        cycle = nx.find_cycle(containment)
    except nx.NetworkXNoCycle:
        return
    chain = [src for src, _tgt in cycle]
    chain.append(cycle[0][0])
    raise GroupNestingError(chain)
