"""Tests for compiling and running a FlowGraph with LangGraph."""

import pytest

from flowbuilder.workflow import (
    FlowExecutor,
    insert_action_on_edge,
    insert_conditional_on_edge,
    update_node_fields,
)


@pytest.fixture
def decision(graph, layout, labels):
    """start → if-0; lane-0: branch-1 → Approve → end; else: else-2 → Reject → end."""
    g = insert_conditional_on_edge(graph, "e-start-end", layout, labels)
    g = insert_action_on_edge(g, "e-1", layout, labels)
    g = insert_action_on_edge(g, "e-2", layout, labels)
    g = update_node_fields(g, "node-5", "Approve")
    return update_node_fields(g, "node-6", "Reject")


@pytest.fixture
def handlers():
    return {
        "Approve": lambda state: {"result": "approved"},
        "Reject": lambda state: {"result": "rejected"},
    }


class TestCompile:
    def test_compile(self, decision):
        executor = FlowExecutor(decision)
        assert executor.graph is None
        compiled = executor.compile()
        assert compiled is not None
        assert executor.graph is compiled

    def test_invalid_graph_rejected(self, graph):
        broken = graph.model_copy(deep=True)
        broken.edges = []
        with pytest.raises(ValueError, match="Workflow validation failed"):
            FlowExecutor(broken).compile()


class TestRun:
    def test_branch_taken(self, decision, handlers):
        executor = FlowExecutor(
            decision,
            actions=handlers,
            routers={"if-0": lambda state: "Branch" if state["input"] > 0 else "Else"},
        )
        state = executor.run(5)
        assert state["path"] == ["if-0", "branch-1", "node-5"]
        assert state["data"] == {"result": "approved"}

    def test_else_taken(self, decision, handlers):
        executor = FlowExecutor(
            decision,
            actions=handlers,
            routers={"if-0": lambda state: "Branch" if state["input"] > 0 else "Else"},
        )
        state = executor.run(-1)
        assert state["path"] == ["if-0", "else-2", "node-6"]
        assert state["data"] == {"result": "rejected"}

    def test_router_may_answer_with_lane_id(self, decision):
        executor = FlowExecutor(decision, routers={"If / Else": lambda state: "lane-0"})
        assert executor.run()["path"] == ["if-0", "branch-1", "node-5"]

    def test_unknown_answer_takes_else(self, decision):
        executor = FlowExecutor(decision, routers={"if-0": lambda state: "nope"})
        assert executor.run()["path"][1] == "else-2"

    def test_no_router_takes_else(self, decision):
        assert FlowExecutor(decision).run()["path"] == ["if-0", "else-2", "node-6"]

    def test_data_merges_across_actions(self, graph, layout, labels):
        g = insert_action_on_edge(graph, "e-start-end", layout, labels)
        g = insert_action_on_edge(g, "e-1", layout, labels)
        executor = FlowExecutor(g, actions={
            "node-0": lambda state: {"a": 1},
            "node-1": lambda state: {"b": state["data"]["a"] + 1},
        })
        state = executor.run("go")
        assert state["input"] == "go"
        assert state["path"] == ["node-0", "node-1"]
        assert state["data"] == {"a": 1, "b": 2}

    def test_handler_error_propagates(self, graph, layout, labels):
        g = insert_action_on_edge(graph, "e-start-end", layout, labels)

        def boom(state):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            FlowExecutor(g, actions={"Action": boom}).run()

    def test_executor_keeps_its_own_copy(self, decision):
        executor = FlowExecutor(decision)
        decision.edges.clear()
        assert executor.run()["path"][0] == "if-0"
