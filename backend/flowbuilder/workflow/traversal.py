"""
Downstream Traversal — the subgraph reachable forward from a node.
"""

from __future__ import annotations

from typing import Dict, List, Set

from pydantic import BaseModel, Field

from flowbuilder.workflow.workflow_model import FlowEdge, FlowGraph, FlowNode


class Subgraph(BaseModel):
    """Nodes and edges induced by a forward walk, in visit order."""

    nodes: List[FlowNode] = Field(default_factory=list)
    edges: List[FlowEdge] = Field(default_factory=list)

    @property
    def node_ids(self) -> Set[str]:
        return {n.id for n in self.nodes}

    @property
    def edge_ids(self) -> Set[str]:
        return {e.id for e in self.edges}

    def is_empty(self) -> bool:
        return not self.nodes


def collect_downstream(graph: FlowGraph, start_node_id: str) -> Subgraph:
    """Depth-first walk along outgoing edges from ``start_node_id``.

    The start node is included. Each edge is recorded once and each node
    visited once, so converging paths and cycles terminate. A start node
    with no outgoing edges (an ``end`` marker) yields an empty subgraph.
    """
    start = graph.get_node(start_node_id)
    if start is None:
        return Subgraph()

    edges_by_source: Dict[str, List[FlowEdge]] = {}
    for edge in graph.edges:
        edges_by_source.setdefault(edge.source, []).append(edge)

    if not edges_by_source.get(start_node_id):
        return Subgraph()

    result = Subgraph()
    visited: Set[str] = set()
    seen_edges: Set[str] = set()
    stack = [start_node_id]

    while stack:
        node_id = stack.pop()
        if node_id in visited:
            continue
        node = graph.get_node(node_id)
        if node is None:
            continue
        visited.add(node_id)
        result.nodes.append(node)

        outgoing = edges_by_source.get(node_id, [])
        for edge in outgoing:
            if edge.id not in seen_edges:
                seen_edges.add(edge.id)
                result.edges.append(edge)
        # Reversed so the first outgoing edge is explored first
        for edge in reversed(outgoing):
            if edge.target not in visited:
                stack.append(edge.target)

    return result
