"""
Layout Engine — fixed-spacing positions for lanes.

Every lane is a vertical column: its nodes share the x of the topmost
node and sit ``VERTICAL_SPACING`` apart. The lanes of a conditional hang
one row below it, spread symmetrically over ``HORIZONTAL_SPACING``
around the conditional's x with the else lane last.

Functions take a node list and return a new one. Nodes that move are
copied; the input nodes are never modified.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from flowbuilder.workflow.traversal import collect_downstream
from flowbuilder.workflow.workflow_model import (
    ELSE_HANDLE,
    FlowEdge,
    FlowGraph,
    FlowNode,
    NodeKind,
)

VERTICAL_SPACING = 120
HORIZONTAL_SPACING = 200

Positions = Dict[str, Dict[str, float]]


def push_lane_down(
    nodes: List[FlowNode],
    threshold_y: float,
    amount: float,
    lane_id: str,
    excluded_ids: Iterable[str] = (),
) -> List[FlowNode]:
    """Move every node of ``lane_id`` at or below ``threshold_y`` down by ``amount``."""
    excluded = set(excluded_ids)
    result = []
    for node in nodes:
        if (
            node.lane_id == lane_id
            and node.y >= threshold_y
            and node.id not in excluded
        ):
            node = _moved(node, node.x, node.y + amount)
        result.append(node)
    return result


def recalculate_lane(
    nodes: List[FlowNode],
    lane_id: str,
    spacing: float = VERTICAL_SPACING,
) -> List[FlowNode]:
    """Re-space one lane top to bottom from its topmost node.

    Ties in y keep list order, so applying this twice gives the same
    positions as applying it once.
    """
    members = [(i, n) for i, n in enumerate(nodes) if n.lane_id == lane_id]
    if not members:
        return list(nodes)

    ordered = sorted(members, key=lambda pair: (pair[1].y, pair[0]))
    first = ordered[0][1]
    targets = {
        node.id: (first.x, first.y + row * spacing)
        for row, (_, node) in enumerate(ordered)
    }

    result = []
    for node in nodes:
        target = targets.get(node.id)
        if target is not None and (node.x, node.y) != target:
            node = _moved(node, *target)
        result.append(node)
    return result


def lane_offset(index: int, count: int, span: float = HORIZONTAL_SPACING) -> float:
    """Horizontal offset of lane ``index`` out of ``count`` from its conditional."""
    if count <= 1:
        return 0.0
    return -span / 2 + index * (span / (count - 1))


def shift_nodes(
    nodes: List[FlowNode],
    node_ids: Iterable[str],
    dx: float,
    dy: float,
) -> List[FlowNode]:
    ids = set(node_ids)
    if not ids or (dx == 0 and dy == 0):
        return list(nodes)
    return [
        _moved(n, n.x + dx, n.y + dy) if n.id in ids else n
        for n in nodes
    ]


def positions(nodes: Iterable[FlowNode]) -> Positions:
    """Position snapshot used as the ``reference`` of ``settle_lane``."""
    return {n.id: dict(n.position) for n in nodes}


def settle_lane(
    nodes: List[FlowNode],
    edges: List[FlowEdge],
    lane_id: str,
    reference: Optional[Positions] = None,
    spacing: float = VERTICAL_SPACING,
) -> List[FlowNode]:
    """Recalculate a lane and keep conditional sub-lanes attached.

    A conditional in the lane that ended up somewhere other than in
    ``reference`` drags everything downstream of it (its branch and else
    lanes, nested ones included) by the same displacement.
    """
    reference = reference if reference is not None else positions(nodes)
    nodes = recalculate_lane(nodes, lane_id, spacing)

    for conditional in [n for n in nodes if n.lane_id == lane_id and n.is_conditional]:
        before = reference.get(conditional.id)
        if before is None:
            continue
        dx = conditional.x - before.get("x", 0)
        dy = conditional.y - before.get("y", 0)
        if dx == 0 and dy == 0:
            continue
        carried = [
            n.id for n in _downstream(nodes, edges, conditional.id)
            if n.lane_id != lane_id
        ]
        nodes = shift_nodes(nodes, carried, dx, dy)
    return nodes


def place_lanes(
    nodes: List[FlowNode],
    edges: List[FlowEdge],
    conditional_id: str,
    span: float = HORIZONTAL_SPACING,
    spacing: float = VERTICAL_SPACING,
) -> List[FlowNode]:
    """Line up the lanes of a conditional one row below it.

    Each lane (with everything downstream of it) is moved as a block so
    that its root lands on its slot. Slots start from ``lane_offset`` and
    are widened by the horizontal extent of each block, so lanes that
    hold nested conditionals never reach into their neighbours.
    """
    by_id = {n.id: n for n in nodes}
    conditional = by_id.get(conditional_id)
    if conditional is None or conditional.kind != NodeKind.CONDITIONAL:
        return list(nodes)

    lanes = conditional.lane_ids()
    roots = _lane_roots(edges, conditional)
    blocks = []
    for index, lane in enumerate(lanes):
        root = by_id.get(roots.get(lane, ""))
        if root is None:
            continue
        members = [root] + _downstream(nodes, edges, root.id)
        left = min(n.x for n in members) - root.x
        right = max(n.x for n in members) - root.x
        blocks.append((index, root, [n.id for n in members], left, right))
    if not blocks:
        return list(nodes)

    # Extra room between neighbouring blocks, accumulated left to right
    widening = [0.0]
    for previous, current in zip(blocks, blocks[1:]):
        widening.append(widening[-1] + previous[4] - current[3])
    centre = widening[-1] / 2

    for (index, root, block, _, _), extra in zip(blocks, widening):
        dx = conditional.x + lane_offset(index, len(lanes), span) + extra - centre - root.x
        dy = conditional.y + spacing - root.y
        nodes = shift_nodes(nodes, block, dx, dy)
    return nodes


def arrange_lanes(
    nodes: List[FlowNode],
    edges: List[FlowEdge],
    conditional_id: str,
    span: float = HORIZONTAL_SPACING,
    spacing: float = VERTICAL_SPACING,
) -> List[FlowNode]:
    """Place the lanes of a conditional, then of every conditional enclosing it.

    Walking outwards lets a lane that just grew wider push its sibling
    lanes aside at every nesting level.
    """
    seen = set()
    current: Optional[str] = conditional_id
    while current is not None and current not in seen:
        seen.add(current)
        nodes = place_lanes(nodes, edges, current, span, spacing)
        node = next((n for n in nodes if n.id == current), None)
        current = lane_owner(nodes, node.lane_id) if node is not None else None
    return nodes


def lane_owner(nodes: Iterable[FlowNode], lane_id: str) -> Optional[str]:
    """Id of the conditional that spawned ``lane_id``; ``None`` for the main lane."""
    for node in nodes:
        if node.is_conditional and lane_id in node.lane_ids():
            return node.id
    return None


def _lane_roots(edges: List[FlowEdge], conditional: FlowNode) -> Dict[str, str]:
    """Map lane id → root node id for the lanes of a conditional."""
    roots: Dict[str, str] = {}
    for edge in edges:
        if edge.source != conditional.id:
            continue
        if edge.source_handle == ELSE_HANDLE:
            if conditional.else_lane_id:
                roots[conditional.else_lane_id] = edge.target
        elif edge.source_handle:
            roots[edge.source_handle] = edge.target
    return roots


def _downstream(
    nodes: List[FlowNode], edges: List[FlowEdge], start_id: str,
) -> List[FlowNode]:
    graph = FlowGraph(nodes={n.id: n for n in nodes}, edges=edges)
    return [n for n in collect_downstream(graph, start_id).nodes if n.id != start_id]


def _moved(node: FlowNode, x: float, y: float) -> FlowNode:
    copy = node.model_copy(deep=True)
    copy.position = {**node.position, "x": x, "y": y}
    return copy
