"""Public API for group_layout.

Usage::

    from group_layout import apply_group_layout

    params = {
        "data": {
            "nodes": [{"id": "a"}, {"id": "b", "group": "g1"}, {"id": "c", "group": "g1"}],
            "groups": [{"id": "g1"}],
            "edges": [{"source": "a", "target": "b"}],
        },
        "ranksep": 50,
        "nodesep": 50,
    }
    apply_group_layout(params)
    params["data"]["nodes"][1]["top"]  # now set

``apply_group_layout`` works in place on the caller's records, the way a flat
layout engine does. ``compute_group_layout`` is the read-only variant.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, MutableMapping
from typing import Any

from group_layout.adapters import LayoutAdapter, default_adapter
from group_layout.engine import layout_group, run_adapter
from group_layout.errors import InvalidRequestError
from group_layout.types import (
    ID_KEY,
    ORIGIN,
    EntityKind,
    LayoutRequest,
    LayoutResult,
    Placement,
    id_key,
)

logger = logging.getLogger(__name__)


def compute_group_layout(params: Mapping[str, Any], adapter: LayoutAdapter | None = None) -> LayoutResult:
    """Lay out ``params`` and return the placements without touching any record."""
    if adapter is None:
        adapter = default_adapter()
    request = LayoutRequest.from_params(params)

    if not request.groups:
        result = LayoutResult()
        local = run_adapter(adapter, request.nodes, request.edges, request)
        for node in request.nodes:
            position = local.get(node.key)
            if position is not None:
                result.add(Placement(id=node.id, kind=EntityKind.NODE, position=position))
        return result

    return layout_group(request, ORIGIN, adapter)


def apply_group_layout(params: Mapping[str, Any], adapter: LayoutAdapter | None = None) -> None:
    """Write ``top``/``left`` onto every node and group record in ``params["data"]``.

    Without groups this is a single flat adapter pass over all nodes and edges.
    Records with no placement are left untouched.

    Group sizes are taken from the ``width``/``height`` of each group record
    (defaults otherwise); they are never computed from the group's contents.
    Size groups to fit their children to avoid overlaps.
    """
    data = params.get("data")
    if not isinstance(data, Mapping):
        raise InvalidRequestError("layout params need a 'data' mapping with nodes/groups/edges")

    result = compute_group_layout(params, adapter)
    written = write_back(data.get("nodes") or [], result.placements_by_id(EntityKind.NODE))
    written += write_back(data.get("groups") or [], result.placements_by_id(EntityKind.GROUP))
    logger.debug("positioned %d record(s)", written)


def write_back(records: Iterable[MutableMapping[str, Any]], placements: Mapping[str, Placement]) -> int:
    """Copy placements onto matching records by string-coerced id; returns how many were written."""
    count = 0
    for record in records:
        placement = placements.get(id_key(record[ID_KEY]))
        if placement is None:
            continue
        record["top"] = placement.top
        record["left"] = placement.left
        count += 1
    return count
