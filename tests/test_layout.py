"""Tests for the fixed-spacing layout engine."""

import pytest

from flowbuilder.workflow import (
    ELSE_HANDLE,
    MAIN_LANE,
    Branch,
    FlowEdge,
    FlowNode,
    NodeKind,
    lane_offset,
    push_lane_down,
    recalculate_lane,
)
from flowbuilder.workflow.layout import place_lanes, positions, shift_nodes


def _n(node_id, x, y, lane=MAIN_LANE, kind=NodeKind.ACTION):
    return FlowNode(id=node_id, kind=kind, position={"x": x, "y": y}, lane_id=lane)


def _pos(nodes):
    return {n.id: (n.x, n.y) for n in nodes}


class TestPushLaneDown:
    def test_moves_lane_nodes_at_or_below_threshold(self):
        nodes = [_n("a", 0, 100), _n("b", 0, 220), _n("c", 0, 340), _n("x", 50, 300, lane="lane-0")]
        pushed = push_lane_down(nodes, 220, 120, MAIN_LANE, excluded_ids=["a"])
        assert _pos(pushed) == {
            "a": (0, 100), "b": (0, 340), "c": (0, 460), "x": (50, 300),
        }

    def test_excluded_nodes_stay(self):
        nodes = [_n("a", 0, 220), _n("b", 0, 220)]
        pushed = push_lane_down(nodes, 220, 120, MAIN_LANE, excluded_ids=["a"])
        assert _pos(pushed) == {"a": (0, 220), "b": (0, 340)}

    def test_input_not_modified(self):
        nodes = [_n("a", 0, 300)]
        push_lane_down(nodes, 0, 120, MAIN_LANE)
        assert nodes[0].y == 300


class TestRecalculateLane:
    def test_respaces_from_topmost_node(self):
        nodes = [_n("c", 40, 900), _n("a", 10, 100), _n("b", 70, 150)]
        result = recalculate_lane(nodes, MAIN_LANE)
        assert _pos(result) == {"a": (10, 100), "b": (10, 220), "c": (10, 340)}

    def test_other_lanes_untouched(self):
        nodes = [_n("a", 0, 100), _n("x", 80, 999, lane="lane-3")]
        result = recalculate_lane(nodes, MAIN_LANE)
        assert result[1] is nodes[1]

    def test_idempotent(self):
        nodes = [_n("a", 0, 100), _n("b", 30, 400), _n("c", 0, 400), _n("d", 5, 150)]
        once = recalculate_lane(nodes, MAIN_LANE)
        twice = recalculate_lane(once, MAIN_LANE)
        assert _pos(once) == _pos(twice)

    def test_ties_keep_list_order(self):
        nodes = [_n("b", 0, 100), _n("a", 0, 100)]
        assert _pos(recalculate_lane(nodes, MAIN_LANE)) == {"b": (0, 100), "a": (0, 220)}

    def test_custom_spacing(self):
        nodes = [_n("a", 0, 0), _n("b", 0, 10)]
        assert _pos(recalculate_lane(nodes, MAIN_LANE, spacing=50))["b"] == (0, 50)

    def test_empty_lane(self):
        nodes = [_n("a", 0, 0)]
        assert _pos(recalculate_lane(nodes, "lane-9")) == {"a": (0, 0)}


class TestLaneOffset:
    @pytest.mark.parametrize(
        "index,count,expected",
        [(0, 1, 0), (0, 2, -100), (1, 2, 100), (1, 3, 0), (2, 5, 0), (3, 4, 100)],
    )
    def test_symmetric_offsets(self, index, count, expected):
        assert lane_offset(index, count) == pytest.approx(expected)

    def test_custom_span(self):
        assert lane_offset(0, 2, span=400) == -200


class TestShiftNodes:
    def test_shift_selected(self):
        nodes = [_n("a", 0, 0), _n("b", 10, 10)]
        result = shift_nodes(nodes, ["b"], 5, -5)
        assert _pos(result) == {"a": (0, 0), "b": (15, 5)}
        assert positions(nodes)["b"] == {"x": 10, "y": 10}


class TestPlaceLanes:
    def _conditional(self, lanes, x=100, y=220):
        return FlowNode(
            id="if", kind=NodeKind.CONDITIONAL, position={"x": x, "y": y},
            branches=[Branch(lane_id=lane) for lane in lanes[:-1]],
            else_lane_id=lanes[-1],
        )

    def test_leaf_lanes_use_lane_offset(self):
        nodes = [
            self._conditional(["l0", "l1"]),
            _n("m0", 0, 0, lane="l0", kind=NodeKind.BRANCH_LANE),
            _n("m1", 0, 0, lane="l1", kind=NodeKind.ELSE_LANE),
        ]
        edges = [
            FlowEdge(id="e-0", source="if", target="m0", source_handle="l0"),
            FlowEdge(id="e-1", source="if", target="m1", source_handle=ELSE_HANDLE),
        ]
        placed = _pos(place_lanes(nodes, edges, "if", span=200, spacing=120))
        assert placed["m0"] == (0, 340)
        assert placed["m1"] == (200, 340)

    def test_wide_lane_pushes_neighbour(self):
        nodes = [
            self._conditional(["l0", "l1"]),
            _n("m0", 0, 340, lane="l0", kind=NodeKind.BRANCH_LANE),
            _n("wide", -150, 460, lane="l9"),
            _n("m1", 200, 340, lane="l1", kind=NodeKind.ELSE_LANE),
        ]
        edges = [
            FlowEdge(id="e-0", source="if", target="m0", source_handle="l0"),
            FlowEdge(id="e-1", source="if", target="m1", source_handle=ELSE_HANDLE),
            FlowEdge(id="e-2", source="m0", target="wide"),
        ]
        placed = _pos(place_lanes(nodes, edges, "if", span=200, spacing=120))
        # l0 spans 150 to the left of its marker and nothing to the right
        assert placed["m0"] == (0, 340)
        assert placed["wide"] == (-150, 460)
        assert placed["m1"] == (200, 340)

    def test_right_extent_widens_gap(self):
        nodes = [
            self._conditional(["l0", "l1"]),
            _n("m0", 0, 340, lane="l0", kind=NodeKind.BRANCH_LANE),
            _n("wide", 80, 460, lane="l9"),
            _n("m1", 200, 340, lane="l1", kind=NodeKind.ELSE_LANE),
        ]
        edges = [
            FlowEdge(id="e-0", source="if", target="m0", source_handle="l0"),
            FlowEdge(id="e-1", source="if", target="m1", source_handle=ELSE_HANDLE),
            FlowEdge(id="e-2", source="m0", target="wide"),
        ]
        placed = _pos(place_lanes(nodes, edges, "if", span=200, spacing=120))
        assert placed["m0"] == (-40, 340)
        assert placed["wide"] == (40, 460)
        assert placed["m1"] == (240, 340)
