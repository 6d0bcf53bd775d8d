"""Tests for the GraphStore commit gate."""

import pytest

from flowbuilder.workflow import (
    FlowEdge,
    FlowGraph,
    FlowNode,
    GraphStore,
    InvariantViolation,
    NodeKind,
)


@pytest.fixture
def store(graph):
    return GraphStore(graph)


class TestReads:
    def test_find_queries(self, store):
        assert store.find_node("start").kind == NodeKind.START
        assert store.find_node("ghost") is None
        assert store.find_edge("e-start-end").source == "start"
        assert [e.id for e in store.edges_from("start")] == ["e-start-end"]
        assert [e.id for e in store.edges_to("end")] == ["e-start-end"]

    def test_default_store_starts_with_initial_graph(self):
        store = GraphStore()
        assert [n.id for n in store.nodes] == ["start", "end"]

    def test_snapshot_is_independent(self, store):
        snap = store.snapshot()
        snap.nodes["start"].label = "changed"
        snap.edges.clear()
        assert store.find_node("start").label == "Start Node"
        assert len(store.edges) == 1

    def test_rendered_nodes_are_copies(self, store):
        store.nodes[0].position["y"] = 999
        assert store.find_node("start").y == 100

    def test_store_does_not_share_the_given_graph(self, graph):
        store = GraphStore(graph)
        graph.nodes["start"].label = "outside"
        assert store.find_node("start").label == "Start Node"


class TestCommit:
    def test_commit_replaces_graph(self, store):
        snap = store.snapshot()
        action = FlowNode(id="node-0", kind=NodeKind.ACTION, position={"x": 100, "y": 220})
        edges = [
            FlowEdge(id="e-0", source="start", target="node-0"),
            FlowEdge(id="e-1", source="node-0", target="end"),
        ]
        store.commit(list(snap.nodes.values()) + [action], edges)
        assert store.find_edge("e-start-end") is None
        assert store.find_node("node-0") is not None
        assert [e.id for e in store.edges] == ["e-0", "e-1"]

    def test_dangling_edge_rejected_and_graph_untouched(self, store):
        before_nodes = [n.model_dump() for n in store.nodes]
        before_edges = [e.model_dump() for e in store.edges]
        bad = [FlowEdge(id="e-0", source="start", target="ghost")]
        with pytest.raises(InvariantViolation) as info:
            store.commit(store.snapshot().nodes.values(), bad)
        assert "ghost" in str(info.value)
        assert [n.model_dump() for n in store.nodes] == before_nodes
        assert [e.model_dump() for e in store.edges] == before_edges

    def test_duplicate_node_ids_rejected(self, store):
        start = store.find_node("start")
        with pytest.raises(InvariantViolation):
            store.commit([start, start], [])

    def test_commit_keeps_counters(self, store):
        proposal = store.snapshot()
        proposal.ids.next_node_id()
        store.commit_graph(proposal)
        assert store.snapshot().ids.next_node_id() == "node-1"


class TestObservers:
    def test_observer_sees_committed_graph(self, store):
        seen = []
        store.subscribe(lambda g: seen.append(sorted(g.nodes)))
        snap = store.snapshot()
        snap.nodes["start"].label = "Begin"
        store.commit_graph(snap)
        assert seen == [["end", "start"]]

    def test_unsubscribe(self, store):
        seen = []
        unsubscribe = store.subscribe(seen.append)
        unsubscribe()
        store.commit_graph(store.snapshot())
        assert seen == []

    def test_failed_commit_does_not_notify(self, store):
        seen = []
        store.subscribe(seen.append)
        with pytest.raises(InvariantViolation):
            store.commit([], [FlowEdge(id="e-0", source="a", target="b")])
        assert seen == []


class TestLoad:
    def test_load_replaces_and_reserves_ids(self, store):
        nodes = {
            "start": FlowNode(id="start", kind=NodeKind.START),
            "node-7": FlowNode(id="node-7", kind=NodeKind.ACTION, position={"x": 0, "y": 120}),
            "end": FlowNode(id="end", kind=NodeKind.END, position={"x": 0, "y": 240}),
        }
        edges = [
            FlowEdge(id="e-4", source="start", target="node-7"),
            FlowEdge(id="e-5", source="node-7", target="end"),
        ]
        store.load(FlowGraph(nodes=nodes, edges=edges))
        ids = store.snapshot().ids
        assert ids.next_node_id() == "node-8"
        assert ids.next_edge_id() == "e-6"

    def test_load_rejects_dangling_edges(self, store):
        broken = FlowGraph(
            nodes={"start": FlowNode(id="start", kind=NodeKind.START)},
            edges=[FlowEdge(id="e-0", source="start", target="end")],
        )
        with pytest.raises(InvariantViolation):
            store.load(broken)
        assert store.find_node("end") is not None
