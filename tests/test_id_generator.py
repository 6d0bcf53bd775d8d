"""Tests for the identifier generator."""

from flowbuilder.workflow import IdGenerator


class TestIdGenerator:
    def test_counters_are_monotonic(self):
        ids = IdGenerator()
        assert ids.next_node_id() == "node-0"
        assert ids.next_node_id("if") == "if-1"
        assert ids.next_node_id("branch") == "branch-2"

    def test_counters_are_independent(self):
        ids = IdGenerator()
        ids.next_node_id()
        ids.next_node_id()
        assert ids.next_edge_id() == "e-0"
        assert ids.next_lane_id() == "lane-0"
        assert ids.next_lane_id() == "lane-1"

    def test_reserve_skips_existing_suffixes(self):
        ids = IdGenerator()
        ids.reserve(
            node_ids=["start", "end", "node-7", "if-3"],
            edge_ids=["e-start-end", "e-12"],
            lane_ids=["main", "lane-4"],
        )
        assert ids.next_node_id() == "node-8"
        assert ids.next_edge_id() == "e-13"
        assert ids.next_lane_id() == "lane-5"

    def test_reserve_never_moves_backwards(self):
        ids = IdGenerator(node_seq=20)
        ids.reserve(node_ids=["node-3"])
        assert ids.next_node_id() == "node-20"
