"""Shared fixtures for the workflow engine tests."""

import pytest

from flowbuilder.config import EditorConfig, LayoutConfig
from flowbuilder.workflow import FlowEditor, GraphStore, create_initial_graph


@pytest.fixture
def layout():
    """Default spacing, independent of FLOW_* environment variables."""
    return LayoutConfig()


@pytest.fixture
def labels():
    return EditorConfig()


@pytest.fixture
def graph(labels):
    """The two-node start → end graph."""
    return create_initial_graph(labels)


@pytest.fixture
def editor(layout, labels):
    return FlowEditor(GraphStore(create_initial_graph(labels)), layout, labels)
