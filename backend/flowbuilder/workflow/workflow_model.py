"""
Workflow Data Models — nodes, edges, branches and the graph aggregate.

These are the structures the view layer renders and the editors
rewrite. A ``FlowGraph`` is only ever replaced as a whole through
``GraphStore.commit``; editors work on deep copies.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from flowbuilder.workflow.id_generator import IdGenerator

MAIN_LANE = "main"
ELSE_HANDLE = "else"


class NodeKind(str, Enum):
    """What a node is. Fixed at creation."""
    START = "start"
    END = "end"
    ACTION = "action"
    CONDITIONAL = "conditional"
    BRANCH_LANE = "branchLane"
    ELSE_LANE = "elseLane"


LANE_MARKERS = (NodeKind.BRANCH_LANE, NodeKind.ELSE_LANE)


class Branch(BaseModel):
    """One declared path of a conditional node.

    ``lane_id`` is ``None`` for a branch the form layer has just added
    and that has no lane yet.
    """

    lane_id: Optional[str] = None
    name: str = "Branch"


class FlowNode(BaseModel):
    """A single node placed on the canvas."""

    id: str
    kind: NodeKind = Field(frozen=True)
    label: str = ""
    position: Dict[str, float] = Field(
        default_factory=lambda: {"x": 0, "y": 0}
    )
    lane_id: str = MAIN_LANE

    # Conditional nodes only
    branches: List[Branch] = Field(default_factory=list)
    else_name: Optional[str] = None
    else_lane_id: Optional[str] = None

    @property
    def x(self) -> float:
        return self.position.get("x", 0)

    @property
    def y(self) -> float:
        return self.position.get("y", 0)

    @property
    def is_conditional(self) -> bool:
        return self.kind == NodeKind.CONDITIONAL

    def lane_ids(self) -> List[str]:
        """Lanes spawned by this conditional, branches first, else last."""
        lanes = [b.lane_id for b in self.branches if b.lane_id]
        if self.else_lane_id:
            lanes.append(self.else_lane_id)
        return lanes


class FlowEdge(BaseModel):
    """A directed edge between two nodes.

    ``source_handle`` distinguishes the outgoing paths of a conditional:
    the branch lane id, or ``ELSE_HANDLE`` for the else path.
    """

    id: str
    source: str
    target: str
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None


class FlowGraph(BaseModel):
    """The node mapping, the ordered edge list and the id counters."""

    nodes: Dict[str, FlowNode] = Field(default_factory=dict)
    edges: List[FlowEdge] = Field(default_factory=list)
    ids: IdGenerator = Field(default_factory=IdGenerator)

    def get_node(self, node_id: str) -> Optional[FlowNode]:
        return self.nodes.get(node_id)

    def get_edge(self, edge_id: str) -> Optional[FlowEdge]:
        for e in self.edges:
            if e.id == edge_id:
                return e
        return None

    def get_edges_from(self, node_id: str) -> List[FlowEdge]:
        """Get all edges originating from a node."""
        return [e for e in self.edges if e.source == node_id]

    def get_edges_to(self, node_id: str) -> List[FlowEdge]:
        """Get all edges pointing to a node."""
        return [e for e in self.edges if e.target == node_id]

    def get_start_node(self) -> Optional[FlowNode]:
        for n in self.nodes.values():
            if n.kind == NodeKind.START:
                return n
        return None

    def get_end_nodes(self) -> List[FlowNode]:
        return [n for n in self.nodes.values() if n.kind == NodeKind.END]

    def lane_nodes(self, lane_id: str) -> List[FlowNode]:
        """Nodes of one lane, top to bottom."""
        members = [n for n in self.nodes.values() if n.lane_id == lane_id]
        return sorted(members, key=lambda n: n.y)

    def validate_graph(self) -> List[str]:
        """Validate the graph structure.

        Returns a list of error messages (empty = valid).
        """
        errors: List[str] = []

        for key, node in self.nodes.items():
            if key != node.id:
                errors.append(f"Node stored under '{key}' has id '{node.id}'.")

        start_nodes = [n for n in self.nodes.values() if n.kind == NodeKind.START]
        if len(start_nodes) != 1:
            errors.append(
                f"Graph must have exactly one start node (found {len(start_nodes)})."
            )

        seen_edges = set()
        for edge in self.edges:
            if edge.id in seen_edges:
                errors.append(f"Duplicate edge id: {edge.id}")
            seen_edges.add(edge.id)
            if edge.source not in self.nodes:
                errors.append(f"Edge {edge.id} references unknown source node: {edge.source}")
            if edge.target not in self.nodes:
                errors.append(f"Edge {edge.id} references unknown target node: {edge.target}")

        for node in self.nodes.values():
            if node.kind != NodeKind.START and not self.get_edges_to(node.id):
                errors.append(f"Node '{node.label or node.kind.value}' ({node.id}) has no incoming edge.")
            if node.kind != NodeKind.END and not self.get_edges_from(node.id):
                errors.append(f"Node '{node.label or node.kind.value}' ({node.id}) has no outgoing edge.")
            if node.is_conditional:
                errors.extend(self._validate_conditional(node))

        return errors

    def _validate_conditional(self, node: FlowNode) -> List[str]:
        errors: List[str] = []
        outgoing = self.get_edges_from(node.id)
        handles = [e.source_handle for e in outgoing]
        expected = [b.lane_id for b in node.branches]

        if not node.branches:
            errors.append(f"Conditional {node.id} declares no branches.")
        for lane_id in expected:
            if lane_id is None:
                errors.append(f"Conditional {node.id} has a branch without a lane.")
            elif handles.count(lane_id) != 1:
                errors.append(
                    f"Conditional {node.id} needs exactly one edge for branch lane {lane_id}."
                )
        if handles.count(ELSE_HANDLE) != 1:
            errors.append(f"Conditional {node.id} needs exactly one else edge.")
        for handle in handles:
            if handle != ELSE_HANDLE and handle not in expected:
                errors.append(f"Conditional {node.id} has an undeclared path '{handle}'.")

        for edge in outgoing:
            target = self.nodes.get(edge.target)
            if target is None:
                continue
            lane = node.else_lane_id if edge.source_handle == ELSE_HANDLE else edge.source_handle
            if target.lane_id != lane:
                errors.append(
                    f"Lane root {target.id} is tagged '{target.lane_id}', expected '{lane}'."
                )
        return errors
