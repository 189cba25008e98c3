"""Sugiyama-style flat layout adapter.

Phases:
  1. Cycle removal  (greedy-FAS approach)
  2. Layer assignment (rank each item)
  3. Dummy node insertion for edges spanning several ranks
  4. Crossing minimization (barycenter heuristic)
  5. Coordinate assignment (top/left in pixels, ``ranksep`` between ranks,
     ``nodesep`` between neighbours)

Ranks run top to bottom. This is the default engine behind
``apply_group_layout``; it has no notion of groups.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import networkx as nx

from group_layout.types import FlatGraph, LayoutItem, id_key

logger = logging.getLogger(__name__)

# ─── Cycle Removal (Greedy-FAS) ───────────────────────────────────────────────


def greedy_fas_ordering(graph: nx.DiGraph) -> list[str]:
    """Compute a node ordering using the greedy-FAS heuristic.

    Returns a list of node ids in an ordering that minimizes back-edges.
    Nodes earlier in the ordering should have outgoing edges going forward.

    Algorithm (Eades, Lin, Smyth 1993):
    - Maintain dynamic in/out degree counters updated as nodes are removed.
    - Repeatedly:
        1. Move all sinks (out_deg == 0) to s2.
        2. Move all sources (in_deg == 0) to s1.
        3. Of remaining nodes in cycles, pick max (out - in) and add to s1.
    - Final ordering: s1 + reversed(s2).

    Candidates are visited in graph insertion order so the result is stable.
    """
    active: dict[str, None] = dict.fromkeys(graph.nodes)

    out_deg: dict[str, int] = {n: graph.out_degree(n) for n in graph.nodes}
    in_deg: dict[str, int] = {n: graph.in_degree(n) for n in graph.nodes}

    s1: list[str] = []
    s2: list[str] = []

    def drop(node: str) -> None:
        del active[node]
        for succ in graph.successors(node):
            if succ in active:
                in_deg[succ] -= 1
        for pred in graph.predecessors(node):
            if pred in active:
                out_deg[pred] -= 1

    while active:
        sinks = [n for n in active if out_deg[n] == 0]
        while sinks:
            for sink in sinks:
                drop(sink)
                s2.append(sink)
            sinks = [n for n in active if out_deg[n] == 0]

        sources = [n for n in active if in_deg[n] == 0]
        while sources:
            for source in sources:
                drop(source)
                s1.append(source)
            sources = [n for n in active if in_deg[n] == 0]

        if active:
            best = max(active, key=lambda n: out_deg[n] - in_deg[n])
            drop(best)
            s1.append(best)

    s2.reverse()
    return s1 + s2


def remove_cycles(graph: nx.DiGraph) -> tuple[nx.DiGraph, set[tuple[str, str]]]:
    """Return an acyclic copy of ``graph`` plus the set of edges that were reversed.

    Back-edges (source after target in the greedy-FAS ordering) are reversed.
    Self-loops count as reversed and are dropped from the copy entirely.
    """
    if graph.number_of_nodes() == 0:
        return graph.copy(), set()

    position = {node: pos for pos, node in enumerate(greedy_fas_ordering(graph))}

    reversed_edges: set[tuple[str, str]] = {
        (src, tgt) for src, tgt in graph.edges() if src == tgt or position[src] > position[tgt]
    }

    dag: nx.DiGraph = nx.DiGraph()
    dag.add_nodes_from(graph.nodes(data=True))
    for src, tgt in graph.edges():
        if src == tgt:
            continue
        if (src, tgt) in reversed_edges:
            dag.add_edge(tgt, src)
        else:
            dag.add_edge(src, tgt)

    return dag, reversed_edges


# ─── Layer Assignment ─────────────────────────────────────────────────────────


def assign_layers(dag: nx.DiGraph) -> dict[str, int]:
    """Longest-path ranking: every edge u→v ends up with rank[v] ≥ rank[u] + 1.

    Isolated nodes sit in rank 0.
    """
    layers: dict[str, int] = {}
    for node in nx.topological_sort(dag):
        preds = list(dag.predecessors(node))
        layers[node] = max((layers[p] + 1 for p in preds), default=0)
    # topological_sort does not keep insertion order; restore it.
    return {node: layers[node] for node in dag.nodes}


# ─── Dummy Node Insertion ─────────────────────────────────────────────────────

DUMMY_PREFIX = "__dummy_"


@dataclass
class AugmentedGraph:
    """A DAG whose every edge joins adjacent ranks.

    Edges that spanned several ranks are replaced by chains of dummy nodes, one
    per intermediate rank.
    """

    graph: nx.DiGraph
    layers: dict[str, int]
    layer_count: int
    dummy_ids: set[str] = field(default_factory=set)


def insert_dummy_nodes(dag: nx.DiGraph, layers: dict[str, int]) -> AugmentedGraph:
    """Split every long edge u → v into u → d₁ → … → dₖ → v."""
    g: nx.DiGraph = nx.DiGraph()
    g.add_nodes_from(dag.nodes)
    layers = dict(layers)
    dummy_ids: set[str] = set()

    for edge_idx, (src, tgt) in enumerate(list(dag.edges())):
        span = layers[tgt] - layers[src]
        if span <= 1:
            g.add_edge(src, tgt)
            continue

        prev = src
        for step in range(1, span):
            dummy = f"{DUMMY_PREFIX}{edge_idx}_{step}"
            g.add_node(dummy)
            layers[dummy] = layers[src] + step
            dummy_ids.add(dummy)
            g.add_edge(prev, dummy)
            prev = dummy
        g.add_edge(prev, tgt)

    layer_count = (max(layers.values()) + 1) if layers else 0
    return AugmentedGraph(graph=g, layers=layers, layer_count=layer_count, dummy_ids=dummy_ids)


# ─── Crossing Minimization (Barycenter) ───────────────────────────────────────

MAX_SWEEPS = 24


def minimise_crossings(aug: AugmentedGraph) -> list[list[str]]:
    """Order each rank to reduce edge crossings using the barycenter heuristic.

    Starts from insertion order, then alternates top-down and bottom-up sweeps
    until the crossing count stops improving.
    """
    ordering: list[list[str]] = [[] for _ in range(aug.layer_count)]
    for node_id, layer in aug.layers.items():
        ordering[layer].append(node_id)

    best = count_crossings(ordering, aug.graph)
    best_ordering = [list(layer) for layer in ordering]

    for _sweep in range(MAX_SWEEPS):
        for layer_idx in range(1, aug.layer_count):
            prev = {nid: float(i) for i, nid in enumerate(ordering[layer_idx - 1])}
            ordering[layer_idx].sort(key=lambda n, p=prev: _barycenter(n, aug.graph, p, "incoming"))

        for layer_idx in range(aug.layer_count - 2, -1, -1):
            nxt = {nid: float(i) for i, nid in enumerate(ordering[layer_idx + 1])}
            ordering[layer_idx].sort(key=lambda n, q=nxt: _barycenter(n, aug.graph, q, "outgoing"))

        crossings = count_crossings(ordering, aug.graph)
        if crossings >= best:
            break
        best = crossings
        best_ordering = [list(layer) for layer in ordering]

    return best_ordering


def _barycenter(node_id: str, graph: nx.DiGraph, neighbor_pos: dict[str, float], direction: str) -> float:
    """Average position of a node's neighbours in the adjacent rank.

    Nodes with no neighbour there sort last (``inf``); ``list.sort`` is stable
    so they keep their relative order.
    """
    neighbors = graph.predecessors(node_id) if direction == "incoming" else graph.successors(node_id)
    positions = [neighbor_pos[nb] for nb in neighbors if nb in neighbor_pos]
    if not positions:
        return float("inf")
    return sum(positions) / len(positions)


def count_crossings(ordering: list[list[str]], graph: nx.DiGraph) -> int:
    """Count edge crossings between consecutive ranks (inversion count)."""
    total = 0
    for l_idx in range(len(ordering) - 1):
        tgt_pos = {nid: i for i, nid in enumerate(ordering[l_idx + 1])}
        edges: list[tuple[int, int]] = []
        for sp, src_id in enumerate(ordering[l_idx]):
            for nb in graph.successors(src_id):
                if nb in tgt_pos:
                    edges.append((sp, tgt_pos[nb]))
        for i in range(len(edges)):
            for j in range(i + 1, len(edges)):
                (a0, a1), (b0, b1) = edges[i], edges[j]
                if (a0 < b0 and a1 > b1) or (a0 > b0 and a1 < b1):
                    total += 1
    return total


# ─── Coordinate Assignment ────────────────────────────────────────────────────

DUMMY_SIZE: float = 1.0


@dataclass
class Box:
    """Working geometry for one node while coordinates are assigned."""

    id: str
    layer: int
    left: float
    top: float
    width: float
    height: float

    @property
    def center(self) -> float:
        return self.left + self.width / 2


def assign_coordinates(
    ordering: list[list[str]],
    aug: AugmentedGraph,
    sizes: dict[str, tuple[float, float]],
    ranksep: float,
    nodesep: float,
) -> dict[str, Box]:
    """Place every node of the augmented graph; returns id → ``Box``.

    ``sizes`` maps real node ids to (width, height); dummy nodes are tiny.
    Each rank is as tall as its tallest node, ranks are ``ranksep`` apart and
    neighbours within a rank ``nodesep`` apart. Ranks are centred on the
    widest one, then nudged towards their neighbours' centres.
    """

    def dims(node_id: str) -> tuple[float, float]:
        return sizes.get(node_id, (DUMMY_SIZE, DUMMY_SIZE))

    rank_tops: list[float] = []
    top = 0.0
    for layer_nodes in ordering:
        rank_tops.append(top)
        top += max((dims(n)[1] for n in layer_nodes), default=0.0) + ranksep

    rank_widths = [
        sum(dims(n)[0] for n in layer_nodes) + max(len(layer_nodes) - 1, 0) * nodesep for layer_nodes in ordering
    ]
    center = max(rank_widths, default=0.0) / 2

    boxes: dict[str, Box] = {}
    for layer_idx, layer_nodes in enumerate(ordering):
        left = center - rank_widths[layer_idx] / 2
        for node_id in layer_nodes:
            width, height = dims(node_id)
            boxes[node_id] = Box(
                id=node_id,
                layer=layer_idx,
                left=left,
                top=rank_tops[layer_idx],
                width=width,
                height=height,
            )
            left += width + nodesep

    for layer_idx in range(1, len(ordering)):
        _align_rank(ordering[layer_idx], boxes, aug, nodesep, direction="incoming")
    for layer_idx in range(len(ordering) - 2, -1, -1):
        _align_rank(ordering[layer_idx], boxes, aug, nodesep, direction="outgoing")

    # Normalize: the leftmost box starts at 0.
    if boxes:
        min_left = min(b.left for b in boxes.values())
        for box in boxes.values():
            box.left -= min_left

    return boxes


def _align_rank(
    layer_nodes: list[str],
    boxes: dict[str, Box],
    aug: AugmentedGraph,
    nodesep: float,
    direction: str,
) -> None:
    """Shift a whole rank so its centres line up with its neighbours' centres.

    Only shifts no larger than ``nodesep`` are applied; anything bigger would
    just trade one misalignment for another.
    """
    own = 0.0
    other = 0.0
    count = 0
    for node_id in layer_nodes:
        box = boxes[node_id]
        if direction == "incoming":
            neighbours = aug.graph.predecessors(node_id)
        else:
            neighbours = aug.graph.successors(node_id)
        for nb in neighbours:
            if nb in aug.dummy_ids:
                continue
            own += box.center
            other += boxes[nb].center
            count += 1

    if count == 0:
        return
    shift = (other - own) / count
    if abs(shift) > nodesep:
        return
    for node_id in layer_nodes:
        boxes[node_id].left += shift


# ─── Adapter ──────────────────────────────────────────────────────────────────


def build_graph(graph: FlatGraph) -> nx.DiGraph:
    """Turn a flat graph into a DiGraph keyed by string-coerced ids.

    Edges whose endpoints are not items of this graph are ignored.
    """
    digraph: nx.DiGraph = nx.DiGraph()
    digraph.add_nodes_from(item.key for item in graph.items)
    for edge in graph.edges:
        src, tgt = edge.endpoints
        if src not in digraph or tgt not in digraph:
            logger.debug("ignoring edge %s -> %s with an endpoint outside the graph", src, tgt)
            continue
        digraph.add_edge(src, tgt)
    return digraph


class SugiyamaAdapter:
    """Layered top-to-bottom layout of a flat graph.

    Every item is sized from its own ``width``/``height``. A group is laid out
    before its contents, so its size is not derived from them: give group
    records a ``width``/``height`` large enough for their children, or the
    children will overlap whatever follows the group.
    """

    def layout(self, graph: FlatGraph) -> None:
        if not graph.items:
            return

        ranksep = float(graph.ranksep)
        nodesep = float(graph.nodesep)

        digraph = build_graph(graph)
        dag, reversed_edges = remove_cycles(digraph)
        if reversed_edges:
            logger.debug("reversed %d edge(s) to break cycles", len(reversed_edges))

        aug = insert_dummy_nodes(dag, assign_layers(dag))
        ordering = minimise_crossings(aug)

        sizes: dict[str, tuple[float, float]] = {item.key: (item.width, item.height) for item in graph.items}
        boxes = assign_coordinates(ordering, aug, sizes, ranksep, nodesep)

        for item in graph.items:
            _place(item, boxes[id_key(item.id)])


def _place(item: LayoutItem, box: Box) -> None:
    item.top = box.top
    item.left = box.left
