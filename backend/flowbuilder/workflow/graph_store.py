"""
Graph Store — the single owner of the canonical workflow graph.

Editors never touch the canonical graph. They take a ``snapshot()``,
build a complete proposal and hand it to ``commit``, which checks
referential integrity and swaps the graph in one assignment. Observers
are notified only after the swap.
"""

from __future__ import annotations

from logging import getLogger
from typing import Callable, Iterable, List, Optional, Tuple

from flowbuilder.workflow.errors import InvariantViolation
from flowbuilder.workflow.id_generator import IdGenerator
from flowbuilder.workflow.workflow_model import FlowEdge, FlowGraph, FlowNode

logger = getLogger(__name__)

GraphObserver = Callable[[FlowGraph], None]


class GraphStore:
    """Hold a FlowGraph and apply whole-graph commits."""

    def __init__(self, graph: Optional[FlowGraph] = None) -> None:
        if graph is None:
            from flowbuilder.workflow.templates import create_initial_graph
            graph = create_initial_graph()
        self._graph = graph.model_copy(deep=True)
        self._observers: List[GraphObserver] = []
        self._reserve_ids(self._graph)

    # ── Reads ──

    def find_node(self, node_id: str) -> Optional[FlowNode]:
        return self._graph.get_node(node_id)

    def find_edge(self, edge_id: str) -> Optional[FlowEdge]:
        return self._graph.get_edge(edge_id)

    def edges_from(self, node_id: str) -> List[FlowEdge]:
        return self._graph.get_edges_from(node_id)

    def edges_to(self, node_id: str) -> List[FlowEdge]:
        return self._graph.get_edges_to(node_id)

    @property
    def nodes(self) -> Tuple[FlowNode, ...]:
        """Read-only node list for rendering."""
        return tuple(n.model_copy(deep=True) for n in self._graph.nodes.values())

    @property
    def edges(self) -> Tuple[FlowEdge, ...]:
        """Read-only edge list for rendering."""
        return tuple(e.model_copy() for e in self._graph.edges)

    def snapshot(self) -> FlowGraph:
        """Deep copy of the canonical graph, safe to mutate."""
        return self._graph.model_copy(deep=True)

    # ── Writes ──

    def commit(
        self,
        nodes: Iterable[FlowNode],
        edges: Iterable[FlowEdge],
        ids: Optional[IdGenerator] = None,
    ) -> FlowGraph:
        """Replace the canonical graph with the given nodes and edges.

        Raises:
            InvariantViolation: If an edge points at a missing node or an
                id is used twice. The canonical graph is left untouched.
        """
        node_list = list(nodes)
        edge_list = list(edges)
        errors = _integrity_errors(node_list, edge_list)
        if errors:
            raise InvariantViolation(errors)

        proposal = FlowGraph(
            nodes={n.id: n for n in node_list},
            edges=edge_list,
            ids=(ids or self._graph.ids).model_copy(),
        )
        self._graph = proposal
        logger.info(
            f"Graph committed: {len(node_list)} nodes, {len(edge_list)} edges"
        )
        self._notify()
        return proposal

    def commit_graph(self, proposal: FlowGraph) -> FlowGraph:
        return self.commit(
            proposal.nodes.values(), proposal.edges, proposal.ids,
        )

    def load(self, graph: FlowGraph) -> None:
        """Replace the graph wholesale, e.g. when a saved workflow is opened."""
        errors = _integrity_errors(list(graph.nodes.values()), graph.edges)
        if errors:
            raise InvariantViolation(errors)
        loaded = graph.model_copy(deep=True)
        self._reserve_ids(loaded)
        self._graph = loaded
        logger.info(
            f"Graph loaded: {len(loaded.nodes)} nodes, {len(loaded.edges)} edges"
        )
        self._notify()

    # ── Observers ──

    def subscribe(self, observer: GraphObserver) -> Callable[[], None]:
        """Register ``observer``; returns a function that unregisters it."""
        self._observers.append(observer)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    # ── Internals ──

    def _notify(self) -> None:
        for observer in list(self._observers):
            observer(self.snapshot())

    @staticmethod
    def _reserve_ids(graph: FlowGraph) -> None:
        lane_ids = set()
        for node in graph.nodes.values():
            lane_ids.add(node.lane_id)
            lane_ids.update(node.lane_ids())
        graph.ids.reserve(
            node_ids=graph.nodes.keys(),
            edge_ids=(e.id for e in graph.edges),
            lane_ids=lane_ids,
        )


def _integrity_errors(nodes: List[FlowNode], edges: List[FlowEdge]) -> List[str]:
    errors: List[str] = []
    node_ids = set()
    for node in nodes:
        if node.id in node_ids:
            errors.append(f"Duplicate node id: {node.id}")
        node_ids.add(node.id)

    edge_ids = set()
    for edge in edges:
        if edge.id in edge_ids:
            errors.append(f"Duplicate edge id: {edge.id}")
        edge_ids.add(edge.id)
        if edge.source not in node_ids:
            errors.append(f"Edge {edge.id} has dangling source: {edge.source}")
        if edge.target not in node_ids:
            errors.append(f"Edge {edge.id} has dangling target: {edge.target}")
    return errors
