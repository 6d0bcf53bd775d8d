"""
Workflow Inspector — a structural report of a FlowGraph.

Lanes are not stored; they are derived here from the ``lane_id`` tags
on the nodes and the lanes each conditional declares. The result is a
tree rooted at the main lane: a lane's parent is the lane holding the
conditional that spawned it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from flowbuilder.workflow.workflow_model import MAIN_LANE, FlowGraph, NodeKind


@dataclass
class LaneInfo:
    """One lane of the graph."""
    lane_id: str
    parent_lane: Optional[str] = None
    conditional_id: Optional[str] = None
    node_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lane_id": self.lane_id,
            "parent_lane": self.parent_lane,
            "conditional_id": self.conditional_id,
            "node_ids": list(self.node_ids),
        }


def derive_lanes(graph: FlowGraph) -> Dict[str, LaneInfo]:
    """Group nodes into lanes, main lane first."""
    lanes: Dict[str, LaneInfo] = {MAIN_LANE: LaneInfo(MAIN_LANE)}

    for node in graph.nodes.values():
        if not node.is_conditional:
            continue
        for lane_id in node.lane_ids():
            lanes[lane_id] = LaneInfo(
                lane_id, parent_lane=node.lane_id, conditional_id=node.id,
            )

    for node in sorted(graph.nodes.values(), key=lambda n: n.y):
        lanes.setdefault(node.lane_id, LaneInfo(node.lane_id)).node_ids.append(node.id)
    return lanes


def lane_depth(lanes: Dict[str, LaneInfo], lane_id: str) -> int:
    """Nesting depth of a lane; the main lane is 0."""
    depth = 0
    seen = set()
    current = lanes.get(lane_id)
    while current is not None and current.parent_lane is not None:
        if current.lane_id in seen:
            break
        seen.add(current.lane_id)
        depth += 1
        current = lanes.get(current.parent_lane)
    return depth


def inspect_graph(graph: FlowGraph) -> Dict[str, Any]:
    """Inspect a graph and produce a summary report.

    Returns a dict containing:
        - ``summary``    : counts of nodes per kind, edges and lanes
        - ``lanes``      : per-lane detail list
        - ``validation`` : validation result
    """
    errors = graph.validate_graph()
    lanes = derive_lanes(graph)

    kinds = {kind.value: 0 for kind in NodeKind}
    for node in graph.nodes.values():
        kinds[node.kind.value] += 1

    return {
        "summary": {
            "total_nodes": len(graph.nodes),
            "total_edges": len(graph.edges),
            "nodes_by_kind": kinds,
            "lane_count": len(lanes),
            "max_lane_depth": max((lane_depth(lanes, l) for l in lanes), default=0),
            "is_valid": not errors,
        },
        "lanes": [
            {**info.to_dict(), "depth": lane_depth(lanes, lane_id)}
            for lane_id, info in lanes.items()
        ],
        "validation": {
            "valid": not errors,
            "errors": errors,
        },
    }
