"""Tests for downstream subgraph collection."""

from flowbuilder.workflow import (
    FlowEdge,
    FlowGraph,
    FlowNode,
    NodeKind,
    collect_downstream,
)


def _graph(node_ids, pairs, end_ids=()):
    nodes = {
        nid: FlowNode(
            id=nid,
            kind=NodeKind.END if nid in end_ids else NodeKind.ACTION,
        )
        for nid in node_ids
    }
    edges = [
        FlowEdge(id=f"e-{i}", source=s, target=t)
        for i, (s, t) in enumerate(pairs)
    ]
    return FlowGraph(nodes=nodes, edges=edges)


class TestCollectDownstream:
    def test_chain_includes_start(self):
        g = _graph(["a", "b", "c", "end"], [("a", "b"), ("b", "c"), ("c", "end")], ["end"])
        sub = collect_downstream(g, "b")
        assert [n.id for n in sub.nodes] == ["b", "c", "end"]
        assert [e.id for e in sub.edges] == ["e-1", "e-2"]

    def test_dead_end_is_empty(self):
        g = _graph(["a", "end"], [("a", "end")], ["end"])
        sub = collect_downstream(g, "end")
        assert sub.is_empty()
        assert sub.edges == []

    def test_missing_start_is_empty(self):
        g = _graph(["a"], [])
        assert collect_downstream(g, "ghost").is_empty()

    def test_diamond_visits_each_node_and_edge_once(self):
        g = _graph(
            ["a", "b", "c", "d", "end"],
            [("a", "b"), ("a", "c"), ("b", "d"), ("c", "d"), ("d", "end")],
            ["end"],
        )
        sub = collect_downstream(g, "a")
        ids = [n.id for n in sub.nodes]
        assert sorted(ids) == ["a", "b", "c", "d", "end"]
        assert len(ids) == len(set(ids))
        assert sorted(e.id for e in sub.edges) == ["e-0", "e-1", "e-2", "e-3", "e-4"]

    def test_depth_first_order(self):
        g = _graph(
            ["a", "b", "c", "b2", "c2"],
            [("a", "b"), ("a", "c"), ("b", "b2"), ("c", "c2")],
        )
        sub = collect_downstream(g, "a")
        assert [n.id for n in sub.nodes] == ["a", "b", "b2", "c", "c2"]

    def test_cycle_terminates(self):
        g = _graph(["a", "b", "c"], [("a", "b"), ("b", "c"), ("c", "a")])
        sub = collect_downstream(g, "a")
        assert sorted(n.id for n in sub.nodes) == ["a", "b", "c"]
        assert len(sub.edges) == 3

    def test_does_not_walk_upstream(self):
        g = _graph(["a", "b", "c"], [("a", "b"), ("b", "c")])
        assert sub_ids(collect_downstream(g, "b")) == {"b", "c"}


def sub_ids(sub):
    return sub.node_ids
