"""Tests for forward evaluation: ordering, node values, immutability."""
import math

import numpy as np
import pytest

from neuralgraph.engine.executor import evaluation_order, forward, predict_curve
from neuralgraph.engine.graph import NodeKind, layered_graph
from neuralgraph.engine.validator import GraphCycleError, InvalidGraphError


class TestEvaluationOrder:
    def test_sources_before_targets(self, dense_graph):
        order = evaluation_order(dense_graph, "output")
        assert order[-1] == "output"
        for edge in dense_graph.edges.values():
            assert order.index(edge.source) < order.index(edge.target)

    def test_shared_ancestor_listed_once(self, diamond_graph):
        order = evaluation_order(diamond_graph, "output")
        assert order.count("input") == 1
        assert sorted(order) == ["h1", "h2", "input", "output"]

    def test_unreachable_nodes_excluded(self, graph_factory):
        graph = graph_factory(
            {"input": NodeKind.INPUT, "loose": NodeKind.HIDDEN, "output": NodeKind.OUTPUT},
            [("e1", "input", "output", 1.0), ("e2", "input", "loose", 1.0)],
        )
        assert evaluation_order(graph, "output") == ["input", "output"]

    def test_cycle_raises(self, graph_factory):
        graph = graph_factory(
            {"input": NodeKind.INPUT, "a": NodeKind.HIDDEN, "b": NodeKind.HIDDEN, "output": NodeKind.OUTPUT},
            [
                ("e1", "input", "a", 1.0),
                ("e2", "a", "b", 1.0),
                ("e3", "b", "a", 1.0),
                ("e4", "b", "output", 1.0),
            ],
        )
        with pytest.raises(GraphCycleError, match="cycle"):
            evaluation_order(graph, "output")


class TestForwardValues:
    def test_single_edge_is_linear(self, graph_factory, relu):
        graph = graph_factory(
            {"input": NodeKind.INPUT, "output": NodeKind.OUTPUT},
            [("e1", "input", "output", -0.75)],
        )
        for x in (-2.0, 0.0, 3.5):
            _, value = forward(graph, x, relu.fn)
            assert value == pytest.approx(-0.75 * x)

    def test_one_by_one(self, single_edge_graph, relu):
        _, value = forward(single_edge_graph, 1, relu.fn)
        assert value == 1

    def test_input_and_bias(self, input_bias_graph, relu):
        _, value = forward(input_bias_graph, 1, relu.fn)
        assert value == 2

    def test_diamond(self, diamond_graph, relu):
        _, value = forward(diamond_graph, 1, relu.fn)
        assert value == 2

    def test_dense(self, dense_graph, relu):
        result, value = forward(dense_graph, 1, relu.fn)
        assert value == 4
        assert result.nodes["h1"].value == 2
        assert result.nodes["h2"].value == 2

    def test_output_has_no_activation(self, single_edge_graph, relu):
        # relu would clamp this to 0 if it were applied at the output
        _, value = forward(single_edge_graph, -3.0, relu.fn)
        assert value == -3.0

    def test_hidden_activation_applied(self, diamond_graph, sigmoid):
        result, value = forward(diamond_graph, 0.0, sigmoid.fn)
        assert result.nodes["h1"].value == pytest.approx(0.5)
        assert value == pytest.approx(1.0)

    def test_bias_forced_to_one(self, input_bias_graph, relu):
        input_bias_graph.nodes["bias"].value = 5.0
        _, value = forward(input_bias_graph, 0.0, relu.fn)
        assert value == 1.0

    def test_nan_output_overwritten(self, single_edge_graph, relu):
        single_edge_graph.nodes["output"].value = math.nan
        _, value = forward(single_edge_graph, 2.0, relu.fn)
        assert value == 2.0

    def test_nan_input_propagates(self, dense_graph, relu):
        _, value = forward(dense_graph, math.nan, lambda x: x)
        assert math.isnan(value)


class TestForwardContract:
    def test_deterministic(self, relu):
        graph = layered_graph("3x2", rng=np.random.default_rng(3))
        _, first = forward(graph, 0.3, relu.fn)
        _, second = forward(graph, 0.3, relu.fn)
        assert first == second

    def test_does_not_mutate_caller_graph(self, dense_graph, relu):
        before_values = {nid: n.value for nid, n in dense_graph.nodes.items()}
        before_weights = {eid: e.weight for eid, e in dense_graph.edges.items()}
        result, _ = forward(dense_graph, 1.0, relu.fn)
        assert result is not dense_graph
        assert {nid: n.value for nid, n in dense_graph.nodes.items()} == before_values
        assert {eid: e.weight for eid, e in dense_graph.edges.items()} == before_weights

    def test_idempotent_on_result(self, dense_graph, relu):
        result, first = forward(dense_graph, 1.0, relu.fn)
        again, second = forward(result, 1.0, relu.fn)
        assert first == second
        assert {e.id: e.weight for e in again.edges.values()} == {e.id: e.weight for e in dense_graph.edges.values()}

    def test_unreachable_node_keeps_value(self, graph_factory, relu):
        graph = graph_factory(
            {"input": NodeKind.INPUT, "loose": NodeKind.HIDDEN, "output": NodeKind.OUTPUT},
            [("e1", "input", "output", 1.0), ("e2", "input", "loose", 1.0)],
        )
        graph.nodes["loose"].value = -0.5
        result, _ = forward(graph, 4.0, relu.fn)
        assert result.nodes["loose"].value == -0.5

    def test_missing_input_raises(self, graph_factory, relu):
        graph = graph_factory({"output": NodeKind.OUTPUT}, [])
        with pytest.raises(InvalidGraphError, match="no input node"):
            forward(graph, 1.0, relu.fn)

    def test_cycle_raises(self, graph_factory, relu):
        graph = graph_factory(
            {"input": NodeKind.INPUT, "a": NodeKind.HIDDEN, "output": NodeKind.OUTPUT},
            [("e1", "input", "a", 1.0), ("e2", "a", "a", 1.0), ("e3", "a", "output", 1.0)],
        )
        with pytest.raises(GraphCycleError):
            forward(graph, 1.0, relu.fn)


class TestPredictCurve:
    def test_points_cover_domain(self, single_edge_graph, relu):
        points = predict_curve(single_edge_graph, (-1.0, 1.0), relu.fn, steps=4)
        assert [x for x, _ in points] == pytest.approx([-1.0, -0.5, 0.0, 0.5, 1.0])
        assert [y for _, y in points] == pytest.approx([-1.0, -0.5, 0.0, 0.5, 1.0])

    def test_invalid_domain(self, single_edge_graph, relu):
        with pytest.raises(ValueError):
            predict_curve(single_edge_graph, (1.0, -1.0), relu.fn)
