"""
Edge Factory — well-formed edge records.
"""

from __future__ import annotations

from typing import Optional

from flowbuilder.workflow.workflow_model import FlowEdge, FlowGraph


def create_edge(
    edge_id: str,
    source: str,
    target: str,
    source_handle: Optional[str] = None,
    target_handle: Optional[str] = None,
) -> FlowEdge:
    """Build an edge; empty handles are normalised to ``None``."""
    return FlowEdge(
        id=edge_id,
        source=source,
        target=target,
        source_handle=source_handle or None,
        target_handle=target_handle or None,
    )


def connect(
    graph: FlowGraph,
    source: str,
    target: str,
    source_handle: Optional[str] = None,
    target_handle: Optional[str] = None,
) -> FlowEdge:
    """Build an edge with a fresh id drawn from ``graph.ids``.

    The edge is returned, not added; callers collect edges and hand the
    whole proposal to the store.
    """
    return create_edge(
        graph.ids.next_edge_id(), source, target, source_handle, target_handle,
    )
