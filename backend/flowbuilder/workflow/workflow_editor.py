"""
Workflow Editor — the entry point the view layer talks to.

Wraps a ``GraphStore`` and turns view callbacks (edge "+" clicked,
node form saved, node delete requested) into structural edits.

Edits run one at a time. An edit requested while another one is still
running (typically from an observer reacting to a commit) is queued and
runs right after the current edit has committed.

Usage::

    editor = FlowEditor()
    editor.subscribe(lambda graph: redraw(graph))
    editor.on_show_selector("e-start-end", {"x": 40, "y": 180})
    editor.select_node_kind("conditional")
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from logging import getLogger
from typing import Callable, Deque, Dict, Iterable, Optional, Tuple

from flowbuilder.config.base import get_config
from flowbuilder.config.sub_config.general.editor_config import EditorConfig
from flowbuilder.config.sub_config.general.layout_config import LayoutConfig
from flowbuilder.workflow.branch_sync import BranchLike, synchronize_branches
from flowbuilder.workflow.editors import (
    delete_node,
    insert_action_on_edge,
    insert_conditional_on_edge,
    update_node_fields,
)
from flowbuilder.workflow.graph_store import GraphObserver, GraphStore
from flowbuilder.workflow.workflow_model import FlowEdge, FlowGraph, FlowNode, NodeKind

logger = getLogger(__name__)

SELECTABLE_KINDS = (NodeKind.ACTION.value, NodeKind.CONDITIONAL.value)


@dataclass
class SelectorRequest:
    """A pending request to choose the kind of node to insert on an edge."""
    edge_id: str
    screen_position: Dict[str, float] = field(default_factory=dict)


class FlowEditor:
    """Serialized structural editing of one workflow graph."""

    def __init__(
        self,
        store: Optional[GraphStore] = None,
        layout: Optional[LayoutConfig] = None,
        labels: Optional[EditorConfig] = None,
    ) -> None:
        self._labels = labels or get_config("editor")
        self._layout = layout or get_config("layout")
        if store is None:
            from flowbuilder.workflow.templates import create_initial_graph
            store = GraphStore(create_initial_graph(self._labels))
        self._store = store
        self._selector: Optional[SelectorRequest] = None
        self._pending: Deque[Callable[[], bool]] = deque()
        self._editing = False

    # ── Read-only views ──

    @property
    def store(self) -> GraphStore:
        return self._store

    @property
    def nodes(self) -> Tuple[FlowNode, ...]:
        return self._store.nodes

    @property
    def edges(self) -> Tuple[FlowEdge, ...]:
        return self._store.edges

    @property
    def selector(self) -> Optional[SelectorRequest]:
        return self._selector

    def subscribe(self, observer: GraphObserver) -> Callable[[], None]:
        return self._store.subscribe(observer)

    # ── Node selector ──

    def on_show_selector(
        self, edge_id: str, screen_position: Optional[Dict[str, float]] = None,
    ) -> Optional[SelectorRequest]:
        """Remember which edge the user wants to insert on.

        Returns ``None`` when the edge is gone.
        """
        if self._store.find_edge(edge_id) is None:
            logger.warning(f"Selector ignored: unknown edge {edge_id}")
            return None
        self._selector = SelectorRequest(edge_id, dict(screen_position or {}))
        return self._selector

    def close_selector(self) -> None:
        self._selector = None

    def select_node_kind(self, kind: str) -> bool:
        """Insert a node of ``kind`` on the edge of the pending selector."""
        request = self._selector
        self._selector = None
        if request is None:
            logger.warning("Node kind selected with no selector open")
            return False
        if kind not in SELECTABLE_KINDS:
            logger.warning(f"Unsupported node kind for insertion: {kind}")
            return False
        if kind == NodeKind.ACTION.value:
            return self.insert_action(request.edge_id)
        return self.insert_conditional(request.edge_id)

    # ── Structural edits ──

    def insert_action(self, edge_id: str) -> bool:
        return self._run(
            lambda graph: insert_action_on_edge(graph, edge_id, self._layout, self._labels),
        )

    def insert_conditional(self, edge_id: str) -> bool:
        return self._run(
            lambda graph: insert_conditional_on_edge(graph, edge_id, self._layout, self._labels),
        )

    def on_node_delete_requested(self, node_id: str) -> bool:
        return self._run(
            lambda graph: delete_node(graph, node_id, self._layout, self._labels),
        )

    def on_node_fields_edited(
        self,
        node_id: str,
        new_label: str,
        new_branches: Optional[Iterable[BranchLike]] = None,
        new_else_name: Optional[str] = None,
    ) -> bool:
        """Save a node form.

        The label is committed first; when branch data came with it, the
        branch synchronizer runs next against the committed graph, before
        any other edit is accepted.
        """
        branches = list(new_branches) if new_branches is not None else None

        def _edit() -> bool:
            committed = self._commit(update_node_fields(self._store.snapshot(), node_id, new_label))
            node = self._store.find_node(node_id)
            if node is None or not node.is_conditional:
                return committed
            if branches is None and new_else_name is None:
                return committed
            synced = synchronize_branches(
                self._store.snapshot(),
                node_id,
                branches if branches is not None else node.branches,
                new_else_name,
                self._layout,
                self._labels,
            )
            return self._commit(synced) or committed

        return self._serialized(_edit)

    def load(self, graph: FlowGraph) -> None:
        """Replace the whole graph, e.g. with a saved workflow."""
        self._selector = None
        self._store.load(graph)

    # ── Internals ──

    def _run(self, editor: Callable[[FlowGraph], Optional[FlowGraph]]) -> bool:
        return self._serialized(lambda: self._commit(editor(self._store.snapshot())))

    def _commit(self, proposal: Optional[FlowGraph]) -> bool:
        if proposal is None:
            return False
        self._store.commit_graph(proposal)
        return True

    def _serialized(self, edit: Callable[[], bool]) -> bool:
        """Run ``edit`` now, or queue it behind the edit in progress.

        A queued edit reports ``False``; its effect shows up in the
        notification that follows its commit.
        """
        if self._editing:
            self._pending.append(edit)
            logger.debug(f"Edit queued behind running edit ({len(self._pending)} pending)")
            return False

        self._editing = True
        try:
            result = edit()
            while self._pending:
                queued = self._pending.popleft()
                queued()
        finally:
            self._editing = False
            self._pending.clear()
        return result
