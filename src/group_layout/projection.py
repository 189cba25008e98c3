"""Edge projection — collapse edge endpoints onto their enclosing container.

An edge touching anything inside a group is rewritten to touch the group
itself, so a flat layout pass never sees an edge that escapes a container.
Projection builds new ``Edge`` records; the input edges are never modified.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable

from group_layout.partition import Scope
from group_layout.types import Edge, id_key

MembershipFn = Callable[[Hashable], Hashable]


def identity_membership(entity_id: Hashable) -> Hashable:
    return entity_id


def project_edges(edges: Iterable[Edge], membership_of: MembershipFn = identity_membership) -> list[Edge]:
    """Redirect both endpoints of every edge through ``membership_of`` and dedupe.

    Two projected edges are duplicates when their string-coerced source and
    target match; the first one seen is kept and input order is preserved.
    This deliberately merges ``Edge(1, 2)`` with ``Edge("1", "2")``, matching
    how ids are compared everywhere else, where a strict equality check on
    the raw values would keep both.
    Self-loops produced by the projection are kept.
    """
    projected: list[Edge] = []
    seen: set[tuple[str, str]] = set()
    for edge in edges:
        moved = edge.with_endpoints(membership_of(edge.source), membership_of(edge.target))
        if moved.endpoints in seen:
            continue
        seen.add(moved.endpoints)
        projected.append(moved)
    return projected


def membership_for(scope: Scope) -> MembershipFn:
    """Membership at one level: descendants of a child group map to that group.

    Direct child nodes, the child groups themselves and any id outside the
    scope map to themselves.
    """
    table: dict[str, Hashable] = {}
    for sub in scope.scopes:
        if sub.group is None:
            continue
        table[sub.group.key] = sub.group.id
        for entity in sub.descendants():
            table[entity.key] = sub.group.id

    def membership_of(entity_id: Hashable) -> Hashable:
        return table.get(id_key(entity_id), entity_id)

    return membership_of


def edges_for_scope(edges: Iterable[Edge], scope: Scope) -> list[Edge]:
    """Projected edges to submit when laying out ``scope``'s direct children.

    At the root every projected edge is kept, unknown endpoints included.
    Inside a group only edges with both endpoints among the group's direct
    children are kept; the rest belong to an enclosing level.
    """
    projected = project_edges(edges, membership_for(scope))
    if scope.is_root:
        return projected

    child_keys = {child.key for child in scope.children}
    return [e for e in projected if e.endpoints[0] in child_keys and e.endpoints[1] in child_keys]
