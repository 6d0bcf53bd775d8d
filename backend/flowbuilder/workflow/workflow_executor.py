"""
Workflow Executor — compile an edited FlowGraph into a LangGraph StateGraph.

The visual graph maps onto LangGraph directly:

* ``start`` is LangGraph's ``START``; every ``end`` marker is ``END``.
* action nodes run the handler registered for their id or label.
* lane markers pass through, recording that their lane was taken.
* a conditional routes through ``add_conditional_edges`` keyed by the
  handles of its outgoing edges; its router answers with a branch name
  (or lane id) and anything unrecognised takes the else lane.

Every visited node id is appended to ``state["path"]``.
"""

from __future__ import annotations

import operator
from logging import getLogger
from typing import Annotated, Any, Callable, Dict, List, Optional, TypedDict

from langgraph.graph import END, START, StateGraph
from langgraph.graph.state import CompiledStateGraph

from flowbuilder.workflow.workflow_model import (
    ELSE_HANDLE,
    FlowEdge,
    FlowGraph,
    FlowNode,
    NodeKind,
)

logger = getLogger(__name__)

ActionHandler = Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]
Router = Callable[[Dict[str, Any]], str]


def _merge_data(left: Optional[Dict[str, Any]], right: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    merged = dict(left or {})
    merged.update(right or {})
    return merged


class FlowState(TypedDict, total=False):
    """State carried through a compiled workflow."""
    input: Any
    path: Annotated[List[str], operator.add]
    data: Annotated[Dict[str, Any], _merge_data]


class FlowExecutor:
    """Compile a FlowGraph → LangGraph CompiledStateGraph.

    ``actions`` and ``routers`` are looked up by node id first, then by
    node label. An action without a handler only records its visit; a
    conditional without a router always takes its else lane.

    Usage::

        executor = FlowExecutor(editor.store.snapshot(), actions={"Fetch": fetch})
        final_state = executor.run({"ticket": 42})
    """

    def __init__(
        self,
        graph: FlowGraph,
        actions: Optional[Dict[str, ActionHandler]] = None,
        routers: Optional[Dict[str, Router]] = None,
    ) -> None:
        self._flow = graph.model_copy(deep=True)
        self._actions = dict(actions or {})
        self._routers = dict(routers or {})
        self._graph: Optional[CompiledStateGraph] = None

    # ========================================================================
    # Compilation
    # ========================================================================

    def compile(self) -> CompiledStateGraph:
        """Compile the workflow into a LangGraph StateGraph.

        Raises:
            ValueError: If validation fails.
        """
        errors = self._flow.validate_graph()
        if errors:
            raise ValueError(
                "Workflow validation failed:\n" + "\n".join(f"  • {e}" for e in errors)
            )

        builder = StateGraph(FlowState)
        for node in self._flow.nodes.values():
            if node.kind in (NodeKind.START, NodeKind.END):
                continue
            builder.add_node(node.id, self._make_node_function(node))

        edges_by_source: Dict[str, List[FlowEdge]] = {}
        for edge in self._flow.edges:
            edges_by_source.setdefault(edge.source, []).append(edge)

        for source_id, edges in edges_by_source.items():
            source = self._flow.nodes[source_id]
            if source.kind == NodeKind.END:
                continue
            origin = START if source.kind == NodeKind.START else source_id

            if source.is_conditional:
                edge_map = {
                    (e.source_handle or ELSE_HANDLE): self._resolve_target(e.target)
                    for e in edges
                }
                builder.add_conditional_edges(
                    origin, self._make_router(source, edge_map), edge_map,
                )
            else:
                for edge in edges:
                    builder.add_edge(origin, self._resolve_target(edge.target))

        self._graph = builder.compile()
        logger.info(
            f"Workflow compiled: {len(self._flow.nodes)} nodes, "
            f"{len(self._flow.edges)} edges"
        )
        return self._graph

    # ========================================================================
    # Execution
    # ========================================================================

    def run(self, input_value: Any = None) -> Dict[str, Any]:
        """Compile (if needed) and execute the workflow.

        Returns:
            Final state dictionary.
        """
        if self._graph is None:
            self.compile()
        final_state = self._graph.invoke({"input": input_value, "path": [], "data": {}})
        return dict(final_state)

    @property
    def graph(self) -> Optional[CompiledStateGraph]:
        return self._graph

    # ========================================================================
    # Internal helpers
    # ========================================================================

    def _lookup(self, table: Dict[str, Any], node: FlowNode) -> Any:
        if node.id in table:
            return table[node.id]
        return table.get(node.label)

    def _make_node_function(self, node: FlowNode):
        handler: Optional[ActionHandler] = None
        if node.kind == NodeKind.ACTION:
            handler = self._lookup(self._actions, node)
        node_id = node.id
        node_label = node.label or node.kind.value

        def _node_fn(state: FlowState) -> Dict[str, Any]:
            update: Dict[str, Any] = {"path": [node_id]}
            if handler is not None:
                try:
                    result = handler(state)
                except Exception as e:
                    logger.error(f"Action '{node_label}' ({node_id}) failed: {e}")
                    raise
                if result:
                    update["data"] = result
            return update

        _node_fn.__name__ = f"node_{node_id}_{node.kind.value}"
        _node_fn.__qualname__ = _node_fn.__name__
        return _node_fn

    def _make_router(self, node: FlowNode, edge_map: Dict[str, str]) -> Router:
        """Translate the router's answer into one of the node's handles."""
        router: Optional[Router] = self._lookup(self._routers, node)
        handles = {b.name: b.lane_id for b in node.branches if b.lane_id}
        if node.else_name:
            handles.setdefault(node.else_name, ELSE_HANDLE)
        node_label = node.label or node.id

        def _route(state: Dict[str, Any]) -> str:
            answer = router(state) if router is not None else ELSE_HANDLE
            handle = answer if answer in edge_map else handles.get(answer, ELSE_HANDLE)
            logger.debug(f"Conditional '{node_label}' routed '{answer}' → {handle}")
            return handle

        return _route

    def _resolve_target(self, target_id: str) -> str:
        """Map ``end`` markers to LangGraph's ``END`` sentinel."""
        node = self._flow.nodes.get(target_id)
        if node is not None and node.kind == NodeKind.END:
            return END
        return target_id
