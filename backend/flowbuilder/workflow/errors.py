"""
Workflow editing errors.

``ReferenceMissing`` is the expected failure of a stale request and is
turned into a no-op at the editor seams. ``InvariantViolation`` means a
proposed graph is broken; it is never caught.
"""

from __future__ import annotations


class FlowGraphError(Exception):
    """Base class for workflow graph errors."""


class ReferenceMissing(FlowGraphError):
    """An edit named a node or edge that is not in the graph."""

    def __init__(self, kind: str, ref_id: str) -> None:
        self.kind = kind
        self.ref_id = ref_id
        super().__init__(f"Unknown {kind}: {ref_id}")


class InvariantViolation(FlowGraphError):
    """A proposed graph would leave dangling edges or duplicate ids."""

    def __init__(self, errors) -> None:
        self.errors = list(errors)
        super().__init__(
            "Graph invariant violated:\n" + "\n".join(f"  • {e}" for e in self.errors)
        )
