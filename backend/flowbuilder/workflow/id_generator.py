"""
Identifier Generator — monotonically increasing ids for nodes, edges and lanes.

The counters live inside the graph itself so that a snapshot taken by an
editor carries them along; committing the proposal commits the advanced
counters too.
"""

from __future__ import annotations

import re
from typing import Iterable

from pydantic import BaseModel

_SUFFIX = re.compile(r"-(\d+)$")


class IdGenerator(BaseModel):
    """Independent counters for node, edge and lane identifiers."""

    node_seq: int = 0
    edge_seq: int = 0
    lane_seq: int = 0

    def next_node_id(self, prefix: str = "node") -> str:
        value = self.node_seq
        self.node_seq += 1
        return f"{prefix}-{value}"

    def next_edge_id(self) -> str:
        value = self.edge_seq
        self.edge_seq += 1
        return f"e-{value}"

    def next_lane_id(self) -> str:
        value = self.lane_seq
        self.lane_seq += 1
        return f"lane-{value}"

    def reserve(
        self,
        node_ids: Iterable[str] = (),
        edge_ids: Iterable[str] = (),
        lane_ids: Iterable[str] = (),
    ) -> None:
        """Advance counters past numeric suffixes already in use.

        Needed when a graph built elsewhere is loaded wholesale: its ids
        may not have come from this generator.
        """
        self.node_seq = max(self.node_seq, _next_free(node_ids))
        self.edge_seq = max(self.edge_seq, _next_free(edge_ids))
        self.lane_seq = max(self.lane_seq, _next_free(lane_ids))


def _next_free(ids: Iterable[str]) -> int:
    highest = -1
    for value in ids:
        match = _SUFFIX.search(value or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return highest + 1
