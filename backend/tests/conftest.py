"""Shared test fixtures for the neuralgraph backend tests."""
import sys
from pathlib import Path

import pytest

# Ensure neuralgraph package is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from neuralgraph.engine.graph import Edge, Graph, Node, NodeKind


def make_graph(kinds: dict[str, NodeKind], edges: list[tuple[str, str, str, float]]) -> Graph:
    """Graph from {node_id: kind} and (edge_id, source, target, weight) tuples."""
    nodes = {}
    for node_id, kind in kinds.items():
        value = 1.0 if kind == NodeKind.BIAS else 0.0
        nodes[node_id] = Node(id=node_id, kind=kind, value=value)
    return Graph(
        nodes=nodes,
        edges={eid: Edge(id=eid, source=s, target=t, weight=w) for eid, s, t, w in edges},
    )


@pytest.fixture(scope="session", autouse=True)
def register_functions():
    """Discover and register all functions once per test session."""
    from neuralgraph.functions.registry import FunctionRegistry
    FunctionRegistry.discover("neuralgraph.functions")


@pytest.fixture
def graph_factory():
    return make_graph


@pytest.fixture
def relu():
    from neuralgraph.functions.registry import FunctionRegistry
    return FunctionRegistry.get_activation("relu", exact_derivative=False)


@pytest.fixture
def sigmoid():
    from neuralgraph.functions.registry import FunctionRegistry
    return FunctionRegistry.get_activation("sigmoid", exact_derivative=False)


@pytest.fixture
def mse():
    from neuralgraph.functions.registry import FunctionRegistry
    return FunctionRegistry.get_cost("mse")


@pytest.fixture
def single_edge_graph():
    """input -(w=1)-> output"""
    return make_graph(
        {"input": NodeKind.INPUT, "output": NodeKind.OUTPUT},
        [("e1", "input", "output", 1.0)],
    )


@pytest.fixture
def input_bias_graph():
    """input and bias both wired straight to output, weights 1."""
    return make_graph(
        {"input": NodeKind.INPUT, "bias": NodeKind.BIAS, "output": NodeKind.OUTPUT},
        [
            ("e1", "input", "output", 1.0),
            ("e2", "bias", "output", 1.0),
        ],
    )


@pytest.fixture
def diamond_graph():
    """input -> h1, h2 -> output, weights 1."""
    return make_graph(
        {
            "input": NodeKind.INPUT,
            "h1": NodeKind.HIDDEN,
            "h2": NodeKind.HIDDEN,
            "output": NodeKind.OUTPUT,
        },
        [
            ("e1", "input", "h1", 1.0),
            ("e2", "input", "h2", 1.0),
            ("e3", "h1", "output", 1.0),
            ("e4", "h2", "output", 1.0),
        ],
    )


@pytest.fixture
def dense_graph():
    """input + bias -> h1, h2 -> output, fully connected, weights 1."""
    return make_graph(
        {
            "input": NodeKind.INPUT,
            "bias": NodeKind.BIAS,
            "h1": NodeKind.HIDDEN,
            "h2": NodeKind.HIDDEN,
            "output": NodeKind.OUTPUT,
        },
        [
            ("e1", "input", "h1", 1.0),
            ("e2", "bias", "h1", 1.0),
            ("e3", "input", "h2", 1.0),
            ("e4", "bias", "h2", 1.0),
            ("e5", "h1", "output", 1.0),
            ("e6", "h2", "output", 1.0),
        ],
    )


@pytest.fixture
def deep_graph():
    """input + bias -> h1, h2 -> h3, h4 -> output, fully connected, weights 1."""
    return make_graph(
        {
            "input": NodeKind.INPUT,
            "bias": NodeKind.BIAS,
            "h1": NodeKind.HIDDEN,
            "h2": NodeKind.HIDDEN,
            "h3": NodeKind.HIDDEN,
            "h4": NodeKind.HIDDEN,
            "output": NodeKind.OUTPUT,
        },
        [
            ("e1", "input", "h1", 1.0),
            ("e2", "bias", "h1", 1.0),
            ("e3", "input", "h2", 1.0),
            ("e4", "bias", "h2", 1.0),
            ("e5", "h1", "h3", 1.0),
            ("e6", "h2", "h3", 1.0),
            ("e7", "h1", "h4", 1.0),
            ("e8", "h2", "h4", 1.0),
            ("e9", "h3", "output", 1.0),
            ("e10", "h4", "output", 1.0),
        ],
    )
