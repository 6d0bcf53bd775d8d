"""
Workflow Engine — graph editing for the visual workflow builder.

Architecture:
    workflow_model     — Nodes, edges, branches and the FlowGraph aggregate
    id_generator       — Monotonic node / edge / lane identifiers
    edge_factory       — Edge construction
    graph_store        — Owner of the canonical graph, commit + notify
    traversal          — Downstream subgraph collection
    layout             — Fixed-spacing lane layout
    branch_sync        — Conditional branch list ↔ lane reconciliation
    editors            — Insert action / insert if-else / delete
    workflow_editor    — Serialized façade used by the view layer
    workflow_executor  — Compiles a FlowGraph → LangGraph StateGraph
    workflow_inspector — Lane tree and structural report
    templates          — Starting graphs
"""

from flowbuilder.workflow.branch_sync import synchronize_branches
from flowbuilder.workflow.edge_factory import connect, create_edge
from flowbuilder.workflow.editors import (
    delete_node,
    insert_action_on_edge,
    insert_conditional_on_edge,
    update_node_fields,
)
from flowbuilder.workflow.errors import (
    FlowGraphError,
    InvariantViolation,
    ReferenceMissing,
)
from flowbuilder.workflow.graph_store import GraphStore
from flowbuilder.workflow.id_generator import IdGenerator
from flowbuilder.workflow.layout import (
    lane_offset,
    push_lane_down,
    recalculate_lane,
)
from flowbuilder.workflow.templates import create_initial_graph
from flowbuilder.workflow.traversal import Subgraph, collect_downstream
from flowbuilder.workflow.workflow_editor import FlowEditor, SelectorRequest
from flowbuilder.workflow.workflow_executor import FlowExecutor, FlowState
from flowbuilder.workflow.workflow_inspector import LaneInfo, derive_lanes, inspect_graph
from flowbuilder.workflow.workflow_model import (
    ELSE_HANDLE,
    MAIN_LANE,
    Branch,
    FlowEdge,
    FlowGraph,
    FlowNode,
    NodeKind,
)

__all__ = [
    "Branch",
    "ELSE_HANDLE",
    "FlowEdge",
    "FlowEditor",
    "FlowExecutor",
    "FlowGraph",
    "FlowGraphError",
    "FlowNode",
    "FlowState",
    "GraphStore",
    "IdGenerator",
    "InvariantViolation",
    "LaneInfo",
    "MAIN_LANE",
    "NodeKind",
    "ReferenceMissing",
    "SelectorRequest",
    "Subgraph",
    "collect_downstream",
    "connect",
    "create_edge",
    "create_initial_graph",
    "delete_node",
    "derive_lanes",
    "insert_action_on_edge",
    "insert_conditional_on_edge",
    "inspect_graph",
    "lane_offset",
    "push_lane_down",
    "recalculate_lane",
    "synchronize_branches",
    "update_node_fields",
]
