"""Forward evaluation: dependency ordering and node value computation."""
import logging
from typing import Callable

import numpy as np

from .graph import Graph, NodeKind, SOURCE_KINDS
from .validator import GraphCycleError, check_structure

logger = logging.getLogger(__name__)

ActivationFn = Callable[[float], float]


def evaluation_order(graph: Graph, target: str) -> list[str]:
    """Node ids ``target`` depends on, sources first, ending with ``target``.

    Iterative post-order DFS over incoming edges.  Each node appears once no
    matter how many paths lead to it.  INPUT and BIAS nodes are leaves.
    Nodes that cannot reach ``target`` are not included.

    Raises:
        GraphCycleError: a node is reached again while still being expanded.
    """
    order: list[str] = []
    visited: set[str] = set()
    in_progress: set[str] = set()
    stack: list[tuple[str, bool]] = [(target, False)]

    while stack:
        node_id, expanded = stack.pop()
        if expanded:
            in_progress.discard(node_id)
            visited.add(node_id)
            order.append(node_id)
            continue
        if node_id in visited:
            continue
        if node_id in in_progress:
            raise GraphCycleError([f"Graph contains a cycle through node '{node_id}'"])

        in_progress.add(node_id)
        stack.append((node_id, True))
        if graph.nodes[node_id].kind in SOURCE_KINDS:
            continue
        # Reversed so the first incoming edge is expanded first
        for edge, source in reversed(graph.incoming(node_id)):
            if source.id not in visited:
                stack.append((source.id, False))

    return order


def forward(
    graph: Graph,
    input_value: float,
    activation: ActivationFn,
) -> tuple[Graph, float]:
    """Evaluate the graph for one scalar input.

    Returns a clone of ``graph`` with node values populated and the output
    node's value.  INPUT takes ``input_value``, BIAS takes 1, every other node
    the weighted sum of its inputs, passed through ``activation`` except at
    the OUTPUT node, which stays linear.
    """
    check_structure(graph)
    result = graph.copy()
    output = result.output_node

    for node in result.nodes.values():
        if node.kind == NodeKind.INPUT:
            node.value = float(input_value)
        elif node.kind == NodeKind.BIAS:
            node.value = 1.0

    for node_id in evaluation_order(result, output.id):
        node = result.nodes[node_id]
        if node.kind in SOURCE_KINDS:
            continue
        net = sum((edge.weight * source.value for edge, source in result.incoming(node_id)), 0.0)
        node.value = net if node.kind == NodeKind.OUTPUT else activation(net)

    logger.debug("forward x=%s -> %s", input_value, output.value)
    return result, output.value


def predict_curve(
    graph: Graph,
    domain: tuple[float, float],
    activation: ActivationFn,
    steps: int = 100,
) -> list[tuple[float, float]]:
    """Model output at ``steps + 1`` evenly spaced points across ``domain``."""
    if steps < 1:
        raise ValueError("steps must be at least 1")
    low, high = domain
    if low > high:
        raise ValueError(f"Invalid domain [{low}, {high}]")

    points: list[tuple[float, float]] = []
    for x in np.linspace(low, high, steps + 1):
        _, y = forward(graph, float(x), activation)
        points.append((float(x), y))
    return points
