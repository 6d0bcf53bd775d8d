"""
Branch Synchronizer — keep a conditional's lanes in step with its branch list.

When the branch list of a conditional node is saved, its lanes are
reconciled against it in one pass over a single snapshot:

* lanes that are still declared get the new branch name (the else lane
  gets the new else name),
* declared branches without a lane get a new lane: a branch marker one
  row below the conditional and an ``end`` marker below that,
* lanes that are no longer declared are removed together with everything
  downstream of their marker.

A branch descriptor is matched to a lane by its ``lane_id``. A descriptor
without a known ``lane_id`` takes the lane at the same position, unless
another descriptor claimed that lane by id.
"""

from __future__ import annotations

from logging import getLogger
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple, Union

from flowbuilder.config.base import get_config
from flowbuilder.config.sub_config.general.editor_config import EditorConfig
from flowbuilder.config.sub_config.general.layout_config import LayoutConfig
from flowbuilder.workflow.edge_factory import connect
from flowbuilder.workflow.layout import arrange_lanes
from flowbuilder.workflow.traversal import collect_downstream
from flowbuilder.workflow.workflow_model import (
    ELSE_HANDLE,
    Branch,
    FlowEdge,
    FlowGraph,
    FlowNode,
    NodeKind,
)

logger = getLogger(__name__)

BranchLike = Union[Branch, Dict[str, Any]]


def synchronize_branches(
    graph: FlowGraph,
    conditional_id: str,
    branches: Iterable[BranchLike],
    else_name: Optional[str] = None,
    layout: Optional[LayoutConfig] = None,
    labels: Optional[EditorConfig] = None,
) -> Optional[FlowGraph]:
    """Return the graph with the conditional's lanes matching ``branches``.

    ``None`` means nothing to do: the node is missing, is not a
    conditional, or ``branches`` is empty (a conditional always keeps at
    least one branch).
    """
    layout = layout or get_config("layout")
    labels = labels or get_config("editor")

    proposal = graph.model_copy(deep=True)
    conditional = proposal.get_node(conditional_id)
    if conditional is None or conditional.kind != NodeKind.CONDITIONAL:
        logger.warning(f"Branch sync ignored: {conditional_id} is not a conditional node")
        return None

    wanted = [b if isinstance(b, Branch) else Branch.model_validate(b) for b in branches]
    if not wanted:
        logger.warning(f"Branch sync ignored: empty branch list for {conditional_id}")
        return None
    if else_name is None:
        else_name = conditional.else_name or labels.else_name

    existing = _existing_lanes(proposal, conditional)
    existing_order = [lane for lane, _ in existing]
    roots = {lane: edge.target for lane, edge in existing}
    claims = _claim_lanes(wanted, existing_order)

    # Relabel
    for index, lane in claims.items():
        root = proposal.get_node(roots[lane])
        if root is not None:
            root.label = wanted[index].name
    else_root = _else_root(proposal, conditional)
    if else_root is not None:
        else_root.label = else_name

    # Grow
    final_branches: List[Branch] = []
    for index, branch in enumerate(wanted):
        lane = claims.get(index)
        if lane is None:
            lane = _grow_lane(proposal, conditional, branch.name, layout, labels)
            logger.debug(f"Branch lane {lane} added to {conditional_id}")
        final_branches.append(Branch(lane_id=lane, name=branch.name))

    # Shrink
    dropped = [lane for lane in existing_order if lane not in claims.values()]
    for lane in dropped:
        removed = _drop_lane(graph, proposal, roots[lane])
        logger.debug(
            f"Branch lane {lane} removed from {conditional_id} ({len(removed)} nodes)"
        )

    conditional.branches = final_branches
    conditional.else_name = else_name

    if [b.lane_id for b in final_branches] != existing_order:
        placed = arrange_lanes(
            list(proposal.nodes.values()), proposal.edges, conditional.id,
            span=layout.horizontal_spacing, spacing=layout.vertical_spacing,
        )
        proposal.nodes = {n.id: n for n in placed}

    logger.info(
        f"Branches synchronized for {conditional_id}: "
        f"{len(final_branches)} branch lanes, {len(dropped)} removed"
    )
    return proposal


def _existing_lanes(graph: FlowGraph, conditional: FlowNode) -> List[Tuple[str, FlowEdge]]:
    """Branch lanes attached to a conditional, in declared order."""
    by_handle: Dict[str, FlowEdge] = {}
    for edge in graph.get_edges_from(conditional.id):
        if edge.source_handle and edge.source_handle != ELSE_HANDLE:
            by_handle.setdefault(edge.source_handle, edge)

    ordered: List[Tuple[str, FlowEdge]] = []
    for branch in conditional.branches:
        if branch.lane_id in by_handle:
            ordered.append((branch.lane_id, by_handle.pop(branch.lane_id)))
    ordered.extend(by_handle.items())
    return ordered


def _claim_lanes(wanted: List[Branch], existing: List[str]) -> Dict[int, str]:
    """Map index in ``wanted`` → existing lane id that it keeps."""
    claims: Dict[int, str] = {}
    taken: Set[str] = set()

    for index, branch in enumerate(wanted):
        if branch.lane_id in existing and branch.lane_id not in taken:
            claims[index] = branch.lane_id
            taken.add(branch.lane_id)

    named = {b.lane_id for b in wanted if b.lane_id in existing}
    for index in range(len(wanted)):
        if index in claims or index >= len(existing):
            continue
        positional = existing[index]
        if positional not in taken and positional not in named:
            claims[index] = positional
            taken.add(positional)
    return claims


def _else_root(graph: FlowGraph, conditional: FlowNode) -> Optional[FlowNode]:
    for edge in graph.get_edges_from(conditional.id):
        if edge.source_handle == ELSE_HANDLE:
            return graph.get_node(edge.target)
    return None


def _grow_lane(
    graph: FlowGraph,
    conditional: FlowNode,
    name: str,
    layout: LayoutConfig,
    labels: EditorConfig,
) -> str:
    lane = graph.ids.next_lane_id()
    marker = FlowNode(
        id=graph.ids.next_node_id("branch"),
        kind=NodeKind.BRANCH_LANE,
        label=name,
        lane_id=lane,
        position={"x": conditional.x, "y": conditional.y + layout.vertical_spacing},
    )
    end = FlowNode(
        id=graph.ids.next_node_id("end"),
        kind=NodeKind.END,
        label=labels.end_label,
        lane_id=lane,
        position={"x": marker.x, "y": marker.y + layout.vertical_spacing},
    )
    graph.nodes[marker.id] = marker
    graph.nodes[end.id] = end
    graph.edges.append(connect(graph, conditional.id, marker.id, source_handle=lane))
    graph.edges.append(connect(graph, marker.id, end.id))
    return lane


def _drop_lane(before: FlowGraph, graph: FlowGraph, root_id: str) -> Set[str]:
    """Remove a lane root and its downstream closure from ``graph``.

    The closure is computed on ``before`` so lanes grown in the same
    pass are never reached.
    """
    doomed = {root_id} | collect_downstream(before, root_id).node_ids
    for node_id in doomed:
        graph.nodes.pop(node_id, None)
    graph.edges = [
        e for e in graph.edges
        if e.source not in doomed and e.target not in doomed
    ]
    return doomed
