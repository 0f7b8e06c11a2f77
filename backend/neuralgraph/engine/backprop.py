"""Backward pass: per-edge gradients and the gradient-descent weight update."""
import logging
from dataclasses import dataclass, field
from typing import Callable

from .executor import forward
from .graph import Edge, Graph, NodeKind, SOURCE_KINDS
from .validator import GraphCycleError

logger = logging.getLogger(__name__)

CostFn = Callable[[float, float], float]


@dataclass
class BackpropResult:
    graph: Graph
    updated_edges: list[Edge]
    loss: float
    prediction: float
    gradients: dict[str, float] = field(default_factory=dict)  # edge id -> d error / d weight


def _clip(value: float, limit: float | None) -> float:
    if limit is None:
        return value
    if value > limit:
        return limit
    if value < -limit:
        return -limit
    return value


def backward(
    graph: Graph,
    input_value: float,
    target: float,
    activation: Callable[[float], float],
    activation_derivative: Callable[[float], float],
    cost: CostFn,
    cost_derivative: CostFn,
    learning_rate: float = 0.01,
    clip: float | None = None,
) -> BackpropResult:
    """Run one example through the graph and apply a gradient-descent update.

    For an edge ``e`` into node ``t`` the weight gradient is the product of

    * ``d_error_d_out``: the cost derivative if ``t`` is the output node,
      otherwise the sum over edges ``e2`` leaving ``t`` of
      ``d_error_d_out(e2) * d_out_d_net(e2) * w(e2)`` using pre-update weights;
    * ``d_out_d_net``: 1 at the output node, else
      ``activation_derivative(t.value)`` on the stored activated value;
    * ``d_net_d_weight``: the source node's value.

    Resolution starts from the edges leaving INPUT and BIAS nodes and works
    downstream-first, so each edge is resolved exactly once and every sum
    reads from the same memoized downstream terms.

    ``clip`` bounds ``d_error_d_out``, ``d_out_d_net`` and the final gradient
    to ``[-clip, clip]``; ``None`` disables clipping.
    """
    result, prediction = forward(graph, input_value, activation)
    loss = cost(target, prediction)
    output_error = cost_derivative(target, prediction)

    d_error_d_out: dict[str, float] = {}
    d_out_d_net: dict[str, float] = {}
    old_weights: dict[str, float] = {}
    gradients: dict[str, float] = {}
    updated: list[Edge] = []

    def downstream(edge: Edge) -> list[str]:
        if result.nodes[edge.target].kind == NodeKind.OUTPUT:
            return []
        return result.outputs.get(edge.target, [])

    def update(edge: Edge) -> None:
        target_node = result.nodes[edge.target]
        if target_node.kind == NodeKind.OUTPUT:
            error = output_error
            slope = 1.0
        else:
            error = sum(
                (d_error_d_out[e2] * d_out_d_net[e2] * old_weights[e2] for e2 in downstream(edge)),
                0.0,
            )
            slope = activation_derivative(target_node.value)
        error = _clip(error, clip)
        slope = _clip(slope, clip)
        grad = _clip(error * slope * result.nodes[edge.source].value, clip)

        d_error_d_out[edge.id] = error
        d_out_d_net[edge.id] = slope
        gradients[edge.id] = grad
        old_weights[edge.id] = edge.weight
        edge.weight = edge.weight - learning_rate * grad
        updated.append(edge)

    seeds = [
        edge_id
        for node in result.nodes.values() if node.kind in SOURCE_KINDS
        for edge_id in result.outputs.get(node.id, [])
    ]
    pending: set[str] = set()
    stack: list[tuple[str, bool]] = [(edge_id, False) for edge_id in reversed(seeds)]

    while stack:
        edge_id, expanded = stack.pop()
        if edge_id in old_weights:
            continue
        edge = result.edges[edge_id]
        if expanded:
            pending.discard(edge_id)
            update(edge)
            continue
        if edge_id in pending:
            raise GraphCycleError([f"Graph contains a cycle through edge '{edge_id}'"])

        pending.add(edge_id)
        stack.append((edge_id, True))
        for e2 in reversed(downstream(edge)):
            if e2 not in old_weights:
                stack.append((e2, False))

    logger.debug(
        "backward x=%s y=%s prediction=%s loss=%s updated=%d",
        input_value, target, prediction, loss, len(updated),
    )
    return BackpropResult(
        graph=result, updated_edges=updated, loss=loss,
        prediction=prediction, gradients=gradients,
    )
