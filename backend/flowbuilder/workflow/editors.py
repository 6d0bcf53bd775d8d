"""
Structural Editors — insert and delete operations on a FlowGraph.

Each editor takes the current graph and returns the complete proposed
next graph, or ``None`` when the request names something that no longer
exists. The input graph is never modified; the caller commits the
proposal through ``GraphStore``.

Edges leaving a conditional anchor its lanes, so they are not insertion
points: an insert requested on one is applied to the edge leaving the
lane marker instead, keeping the marker at the top of its lane.
"""

from __future__ import annotations

from logging import getLogger
from typing import Dict, List, Optional, Set, Tuple

from flowbuilder.config.base import get_config
from flowbuilder.config.sub_config.general.editor_config import EditorConfig
from flowbuilder.config.sub_config.general.layout_config import LayoutConfig
from flowbuilder.workflow.branch_sync import synchronize_branches
from flowbuilder.workflow.edge_factory import connect
from flowbuilder.workflow.errors import ReferenceMissing
from flowbuilder.workflow.layout import (
    arrange_lanes,
    lane_offset,
    lane_owner,
    positions,
    push_lane_down,
    settle_lane,
)
from flowbuilder.workflow.traversal import Subgraph, collect_downstream
from flowbuilder.workflow.workflow_model import (
    ELSE_HANDLE,
    Branch,
    FlowEdge,
    FlowGraph,
    FlowNode,
    NodeKind,
)

logger = getLogger(__name__)

_ID_PREFIX = {
    NodeKind.START: "start",
    NodeKind.END: "end",
    NodeKind.ACTION: "node",
    NodeKind.CONDITIONAL: "if",
    NodeKind.BRANCH_LANE: "branch",
    NodeKind.ELSE_LANE: "else",
}

_UNDELETABLE = (NodeKind.START, NodeKind.END, NodeKind.ELSE_LANE)


# ====================================================================
# Insert action
# ====================================================================


def insert_action_on_edge(
    graph: FlowGraph,
    edge_id: str,
    layout: Optional[LayoutConfig] = None,
    labels: Optional[EditorConfig] = None,
) -> Optional[FlowGraph]:
    """Split ``edge_id`` with a new action node one row below its source."""
    layout = layout or get_config("layout")
    labels = labels or get_config("editor")
    proposal = graph.model_copy(deep=True)
    try:
        edge, source, target = _locate_insertion(proposal, edge_id)
    except ReferenceMissing as e:
        logger.warning(f"Insert action ignored: {e}")
        return None

    spacing = layout.vertical_spacing
    reference = positions(proposal.nodes.values())
    new_node = FlowNode(
        id=proposal.ids.next_node_id(_ID_PREFIX[NodeKind.ACTION]),
        kind=NodeKind.ACTION,
        label=labels.action_label,
        lane_id=source.lane_id,
        position={"x": source.x, "y": source.y + spacing},
    )

    nodes = push_lane_down(
        list(proposal.nodes.values()), new_node.y, spacing,
        source.lane_id, excluded_ids=[source.id],
    )
    nodes.append(new_node)
    edges = [e for e in proposal.edges if e.id != edge.id]
    edges.append(connect(proposal, source.id, new_node.id, source_handle=edge.source_handle))
    edges.append(connect(proposal, new_node.id, target.id, target_handle=edge.target_handle))

    nodes = settle_lane(nodes, edges, source.lane_id, reference, spacing)
    logger.debug(f"Action {new_node.id} inserted between {source.id} and {target.id}")
    return _assemble(proposal, nodes, edges)


# ====================================================================
# Insert conditional
# ====================================================================


def insert_conditional_on_edge(
    graph: FlowGraph,
    edge_id: str,
    layout: Optional[LayoutConfig] = None,
    labels: Optional[EditorConfig] = None,
) -> Optional[FlowGraph]:
    """Split ``edge_id`` with an if/else node.

    The continuation (everything reachable from the edge's target) is
    duplicated into the new branch lane and the new else lane, and the
    original continuation is removed from its lane. When the target is a
    dead end, each lane gets a fresh ``end`` marker instead.
    """
    layout = layout or get_config("layout")
    labels = labels or get_config("editor")
    proposal = graph.model_copy(deep=True)
    try:
        edge, source, target = _locate_insertion(proposal, edge_id)
    except ReferenceMissing as e:
        logger.warning(f"Insert conditional ignored: {e}")
        return None

    spacing = layout.vertical_spacing
    span = layout.horizontal_spacing
    ids = proposal.ids
    reference = positions(proposal.nodes.values())
    continuation = collect_downstream(proposal, target.id)

    branch_lane = ids.next_lane_id()
    else_lane = ids.next_lane_id()
    conditional = FlowNode(
        id=ids.next_node_id(_ID_PREFIX[NodeKind.CONDITIONAL]),
        kind=NodeKind.CONDITIONAL,
        label=labels.conditional_label,
        lane_id=source.lane_id,
        position={"x": source.x, "y": source.y + spacing},
        branches=[Branch(lane_id=branch_lane, name=labels.branch_name)],
        else_name=labels.else_name,
        else_lane_id=else_lane,
    )
    markers = [
        FlowNode(
            id=ids.next_node_id(_ID_PREFIX[kind]),
            kind=kind,
            label=name,
            lane_id=lane,
            position={
                "x": conditional.x + lane_offset(index, 2, span),
                "y": conditional.y + spacing,
            },
        )
        for index, (kind, name, lane) in enumerate((
            (NodeKind.BRANCH_LANE, labels.branch_name, branch_lane),
            (NodeKind.ELSE_LANE, labels.else_name, else_lane),
        ))
    ]

    new_nodes: List[FlowNode] = [conditional] + markers
    new_edges: List[FlowEdge] = [
        connect(proposal, source.id, conditional.id, source_handle=edge.source_handle),
        connect(proposal, conditional.id, markers[0].id, source_handle=branch_lane),
        connect(proposal, conditional.id, markers[1].id, source_handle=ELSE_HANDLE),
    ]

    for marker in markers:
        if continuation.is_empty():
            end = FlowNode(
                id=ids.next_node_id(_ID_PREFIX[NodeKind.END]),
                kind=NodeKind.END,
                label=labels.end_label,
                lane_id=marker.lane_id,
                position={"x": marker.x, "y": marker.y + spacing},
            )
            new_nodes.append(end)
            new_edges.append(connect(proposal, marker.id, end.id))
            continue
        dup_nodes, dup_edges, head_id = _duplicate_continuation(
            proposal, continuation, target, marker, spacing,
        )
        new_nodes.extend(dup_nodes)
        new_edges.extend(dup_edges)
        new_edges.append(connect(proposal, marker.id, head_id))

    removed = _absorbed_nodes(proposal, edge, target.id, continuation)
    nodes = [n for n in proposal.nodes.values() if n.id not in removed]
    edges = [
        e for e in proposal.edges
        if e.id != edge.id and e.source not in removed and e.target not in removed
    ]

    nodes = push_lane_down(
        nodes, conditional.y, spacing * layout.conditional_push_rows,
        source.lane_id, excluded_ids=[source.id],
    )
    nodes.extend(new_nodes)
    edges.extend(new_edges)

    reference[conditional.id] = dict(conditional.position)
    nodes = settle_lane(nodes, edges, source.lane_id, reference, spacing)
    for lane in (branch_lane, else_lane):
        nodes = settle_lane(nodes, edges, lane, spacing=spacing)
    nodes = arrange_lanes(nodes, edges, conditional.id, span, spacing)

    logger.debug(
        f"Conditional {conditional.id} inserted after {source.id}: "
        f"{len(continuation.nodes)} continuation nodes duplicated, {len(removed)} removed"
    )
    return _assemble(proposal, nodes, edges)


def _duplicate_continuation(
    graph: FlowGraph,
    continuation: Subgraph,
    head: FlowNode,
    marker: FlowNode,
    spacing: float,
) -> Tuple[List[FlowNode], List[FlowEdge], str]:
    """Copy the continuation under ``marker`` with fresh node, edge and lane ids.

    The head's lane becomes the marker's lane; lanes nested inside the
    continuation get fresh lane ids so the copies diverge independently.
    """
    ids = graph.ids
    lane_map: Dict[str, str] = {head.lane_id: marker.lane_id}
    for node in continuation.nodes:
        for lane in [node.lane_id] + node.lane_ids():
            if lane not in lane_map:
                lane_map[lane] = ids.next_lane_id()

    dx = marker.x - head.x
    dy = marker.y + spacing - head.y
    id_map: Dict[str, str] = {}
    nodes: List[FlowNode] = []
    for node in continuation.nodes:
        new_id = ids.next_node_id(_ID_PREFIX[node.kind])
        id_map[node.id] = new_id
        copy = node.model_copy(deep=True, update={
            "id": new_id,
            "lane_id": lane_map[node.lane_id],
            "position": {**node.position, "x": node.x + dx, "y": node.y + dy},
        })
        if copy.is_conditional:
            copy.branches = [
                Branch(lane_id=lane_map.get(b.lane_id, b.lane_id), name=b.name)
                for b in node.branches
            ]
            copy.else_lane_id = lane_map.get(node.else_lane_id, node.else_lane_id)
        nodes.append(copy)

    edges = [
        connect(
            graph,
            id_map[e.source],
            id_map[e.target],
            source_handle=lane_map.get(e.source_handle, e.source_handle),
            target_handle=e.target_handle,
        )
        for e in continuation.edges
        if e.source in id_map and e.target in id_map
    ]
    return nodes, edges, id_map[head.id]


def _absorbed_nodes(
    graph: FlowGraph,
    replaced: FlowEdge,
    target_id: str,
    continuation: Subgraph,
) -> Set[str]:
    """Originals that are reachable only through the replaced edge.

    A node is removed when every incoming edge is ``replaced`` or comes
    from an already removed node; anything still fed from outside the
    continuation stays in place.
    """
    candidates = continuation.node_ids | {target_id}
    removed: Set[str] = set()
    changed = True
    while changed:
        changed = False
        for node_id in candidates - removed:
            incoming = [e for e in graph.get_edges_to(node_id) if e.id != replaced.id]
            if all(e.source in removed for e in incoming):
                removed.add(node_id)
                changed = True
    return removed


# ====================================================================
# Delete
# ====================================================================


def delete_node(
    graph: FlowGraph,
    node_id: str,
    layout: Optional[LayoutConfig] = None,
    labels: Optional[EditorConfig] = None,
) -> Optional[FlowGraph]:
    """Remove a node and close the gap it leaves.

    * A node with exactly one incoming and one outgoing edge is spliced
      out: its neighbours get joined directly.
    * Any other node just loses its edges; no bridge is drawn.
    * A branch marker removes its whole branch through the synchronizer.
      The last branch of a conditional cannot be removed.
    * A conditional is removed with all of its lanes; its predecessor is
      terminated with a fresh ``end`` marker.
    * ``start``/``end`` markers and else markers cannot be deleted.
    """
    layout = layout or get_config("layout")
    labels = labels or get_config("editor")
    node = graph.get_node(node_id)
    if node is None:
        logger.warning(f"Delete ignored: {ReferenceMissing('node', node_id)}")
        return None
    if node.kind in _UNDELETABLE:
        logger.warning(f"Delete ignored: {node.kind.value} node {node_id} cannot be deleted")
        return None

    if node.kind == NodeKind.BRANCH_LANE:
        anchor = _anchoring_conditional(graph, node)
        if anchor is not None:
            remaining = [b for b in anchor.branches if b.lane_id != node.lane_id]
            if not remaining:
                logger.warning(f"Delete ignored: {node_id} is the last branch of {anchor.id}")
                return None
            return synchronize_branches(
                graph, anchor.id, remaining, anchor.else_name, layout, labels,
            )

    if node.kind == NodeKind.CONDITIONAL:
        return _delete_conditional(graph, node, layout, labels)
    return _splice_out(graph, node, layout)


def _splice_out(graph: FlowGraph, node: FlowNode, layout: LayoutConfig) -> FlowGraph:
    proposal = graph.model_copy(deep=True)
    reference = positions(proposal.nodes.values())
    incoming = proposal.get_edges_to(node.id)
    outgoing = proposal.get_edges_from(node.id)

    edges = [e for e in proposal.edges if e.source != node.id and e.target != node.id]
    if len(incoming) == 1 and len(outgoing) == 1:
        edges.append(connect(
            proposal,
            incoming[0].source,
            outgoing[0].target,
            source_handle=incoming[0].source_handle,
            target_handle=outgoing[0].target_handle,
        ))
    else:
        logger.warning(
            f"Node {node.id} had {len(incoming)} incoming and {len(outgoing)} "
            f"outgoing edges; removed without reconnecting"
        )

    nodes = [n for n in proposal.nodes.values() if n.id != node.id]
    nodes = settle_lane(nodes, edges, node.lane_id, reference, layout.vertical_spacing)
    logger.debug(f"Node {node.id} deleted")
    return _assemble(proposal, nodes, edges)


def _delete_conditional(
    graph: FlowGraph,
    node: FlowNode,
    layout: LayoutConfig,
    labels: EditorConfig,
) -> FlowGraph:
    proposal = graph.model_copy(deep=True)
    reference = positions(proposal.nodes.values())
    doomed = {node.id} | collect_downstream(proposal, node.id).node_ids

    nodes = [n for n in proposal.nodes.values() if n.id not in doomed]
    edges = [
        e for e in proposal.edges
        if e.source not in doomed and e.target not in doomed
    ]

    # Every survivor cut off from all of its successors is terminated,
    # including nodes outside the conditional that fed into its lanes.
    lanes = [node.lane_id]
    for survivor in list(nodes):
        lost = [e for e in proposal.get_edges_from(survivor.id) if e.target in doomed]
        if not lost or any(e.source == survivor.id for e in edges):
            continue
        end = FlowNode(
            id=proposal.ids.next_node_id(_ID_PREFIX[NodeKind.END]),
            kind=NodeKind.END,
            label=labels.end_label,
            lane_id=survivor.lane_id,
            position={"x": survivor.x, "y": survivor.y + layout.vertical_spacing},
        )
        nodes.append(end)
        edges.append(connect(proposal, survivor.id, end.id, source_handle=lost[0].source_handle))
        if survivor.lane_id not in lanes:
            lanes.append(survivor.lane_id)

    for lane in lanes:
        nodes = settle_lane(nodes, edges, lane, reference, layout.vertical_spacing)
    owner = lane_owner(nodes, node.lane_id)
    if owner is not None:
        nodes = arrange_lanes(
            nodes, edges, owner, layout.horizontal_spacing, layout.vertical_spacing,
        )
    logger.debug(f"Conditional {node.id} deleted with {len(doomed) - 1} lane nodes")
    return _assemble(proposal, nodes, edges)


def _anchoring_conditional(graph: FlowGraph, marker: FlowNode) -> Optional[FlowNode]:
    for edge in graph.get_edges_to(marker.id):
        source = graph.get_node(edge.source)
        if source is not None and source.is_conditional and edge.source_handle == marker.lane_id:
            return source
    return None


# ====================================================================
# Field edits
# ====================================================================


def update_node_fields(graph: FlowGraph, node_id: str, label: str) -> Optional[FlowGraph]:
    """Change a node's display label.

    Lane marker labels belong to their conditional's branch list and are
    changed through ``synchronize_branches`` only.
    """
    proposal = graph.model_copy(deep=True)
    node = proposal.get_node(node_id)
    if node is None:
        logger.warning(f"Field edit ignored: {ReferenceMissing('node', node_id)}")
        return None
    if node.kind in (NodeKind.BRANCH_LANE, NodeKind.ELSE_LANE):
        logger.warning(f"Field edit ignored: lane marker {node_id} is not editable")
        return None
    node.label = label
    return proposal


# ====================================================================
# Helpers
# ====================================================================


def _locate_insertion(graph: FlowGraph, edge_id: str) -> Tuple[FlowEdge, FlowNode, FlowNode]:
    """Resolve the edge an insert applies to and its endpoints.

    Raises:
        ReferenceMissing: If the edge or one of its endpoints is gone.
    """
    edge = graph.get_edge(edge_id)
    if edge is None:
        raise ReferenceMissing("edge", edge_id)
    source = graph.get_node(edge.source)
    target = graph.get_node(edge.target)
    if source is None:
        raise ReferenceMissing("node", edge.source)
    if target is None:
        raise ReferenceMissing("node", edge.target)

    if source.is_conditional and target.kind in (NodeKind.BRANCH_LANE, NodeKind.ELSE_LANE):
        below = graph.get_edges_from(target.id)
        if not below:
            raise ReferenceMissing("node", target.id)
        return _locate_insertion(graph, below[0].id)
    return edge, source, target


def _assemble(proposal: FlowGraph, nodes: List[FlowNode], edges: List[FlowEdge]) -> FlowGraph:
    return FlowGraph(nodes={n.id: n for n in nodes}, edges=edges, ids=proposal.ids)
