"""
Workflow Templates.

Factory functions returning ready-made ``FlowGraph`` objects. Every
editing session begins from ``create_initial_graph``.
"""

from __future__ import annotations

from typing import Optional

from flowbuilder.config.base import get_config
from flowbuilder.config.sub_config.general.editor_config import EditorConfig
from flowbuilder.workflow.edge_factory import create_edge
from flowbuilder.workflow.workflow_model import (
    MAIN_LANE,
    FlowGraph,
    FlowNode,
    NodeKind,
)


def create_initial_graph(labels: Optional[EditorConfig] = None) -> FlowGraph:
    """Build the two-node starting graph.

    Topology::
        start (100, 100) → end (100, 300)

    Both nodes live in the main lane.
    """
    labels = labels or get_config("editor")
    start = FlowNode(
        id="start", kind=NodeKind.START, label=labels.start_label,
        position={"x": 100, "y": 100}, lane_id=MAIN_LANE,
    )
    end = FlowNode(
        id="end", kind=NodeKind.END, label=labels.end_label,
        position={"x": 100, "y": 300}, lane_id=MAIN_LANE,
    )
    return FlowGraph(
        nodes={start.id: start, end.id: end},
        edges=[create_edge("e-start-end", start.id, end.id)],
    )
