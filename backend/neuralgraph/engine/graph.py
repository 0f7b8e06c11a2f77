"""Graph data structures for the computation engine."""
import copy
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np


class NodeKind(str, Enum):
    INPUT = "INPUT"
    BIAS = "BIAS"
    HIDDEN = "HIDDEN"
    OUTPUT = "OUTPUT"


# Nodes whose value is set directly rather than computed from incoming edges
SOURCE_KINDS = frozenset({NodeKind.INPUT, NodeKind.BIAS})


@dataclass
class Node:
    id: str
    kind: NodeKind = NodeKind.HIDDEN
    value: float = 0.0
    position: dict[str, float] = field(default_factory=dict)


@dataclass
class Edge:
    id: str
    source: str   # node id
    target: str   # node id
    weight: float = 0.0

    @property
    def label(self) -> str:
        return f"{self.weight:.2f}"


@dataclass
class Graph:
    """Nodes and weighted edges, plus adjacency derived from the edge set.

    Adjacency maps a node id to the ids of its incoming (``inputs``) and
    outgoing (``outputs``) edges, in edge insertion order.  It is rebuilt on
    construction; after editing ``edges`` call :meth:`rebuild_adjacency`.
    """

    nodes: dict[str, Node] = field(default_factory=dict)
    edges: dict[str, Edge] = field(default_factory=dict)
    inputs: dict[str, list[str]] = field(default_factory=dict, init=False)
    outputs: dict[str, list[str]] = field(default_factory=dict, init=False)

    def __post_init__(self):
        self.rebuild_adjacency()

    def rebuild_adjacency(self) -> None:
        self.inputs = {nid: [] for nid in self.nodes}
        self.outputs = {nid: [] for nid in self.nodes}
        for edge in self.edges.values():
            # Dangling endpoints are left for the validator to report
            if edge.source in self.outputs:
                self.outputs[edge.source].append(edge.id)
            if edge.target in self.inputs:
                self.inputs[edge.target].append(edge.id)

    def incoming(self, node_id: str) -> list[tuple[Edge, Node]]:
        """(edge, source node) pairs feeding into ``node_id``."""
        pairs = []
        for edge_id in self.inputs.get(node_id, []):
            edge = self.edges[edge_id]
            pairs.append((edge, self.nodes[edge.source]))
        return pairs

    def outgoing(self, node_id: str) -> list[tuple[Edge, Node]]:
        """(edge, target node) pairs leaving ``node_id``."""
        pairs = []
        for edge_id in self.outputs.get(node_id, []):
            edge = self.edges[edge_id]
            pairs.append((edge, self.nodes[edge.target]))
        return pairs

    def nodes_of_kind(self, kind: NodeKind) -> list[Node]:
        return [n for n in self.nodes.values() if n.kind == kind]

    @property
    def input_node(self) -> Node | None:
        found = self.nodes_of_kind(NodeKind.INPUT)
        return found[0] if found else None

    @property
    def output_node(self) -> Node | None:
        found = self.nodes_of_kind(NodeKind.OUTPUT)
        return found[0] if found else None

    @property
    def bias_nodes(self) -> list[Node]:
        return self.nodes_of_kind(NodeKind.BIAS)

    def copy(self) -> "Graph":
        """Deep structural clone; mutating it never touches this graph."""
        return copy.deepcopy(self)


def _field(record: Any, name: str, default: Any = None) -> Any:
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


def _default_value(kind: NodeKind, rng: np.random.Generator) -> float:
    if kind == NodeKind.INPUT:
        return 0.0
    if kind == NodeKind.BIAS:
        return 1.0
    if kind == NodeKind.OUTPUT:
        # Overwritten by the first forward pass
        return math.nan
    return float(rng.uniform(-1.0, 1.0))


def build_graph(
    node_records: Iterable[Any],
    edge_records: Iterable[Any],
    previous: Graph | None = None,
    rng: np.random.Generator | None = None,
) -> Graph:
    """Rebuild a Graph from raw node/edge records.

    Records are mappings or objects (e.g. the API schemas) exposing
    ``id``/``kind``/``value``/``position`` for nodes and
    ``id``/``source``/``target``/``weight`` for edges.

    An edge id already present in ``previous`` keeps its learned weight, so
    topology edits never reset untouched edges.  Otherwise the record's
    weight is used, and failing that a fresh weight is drawn uniformly from
    [-1, 1].  Node values resolve the same way, falling back to a per-kind
    default.

    Raises:
        InvalidGraphError: duplicate ids or an edge endpoint naming an
            unknown node.
    """
    from .validator import InvalidGraphError

    rng = rng if rng is not None else np.random.default_rng()
    errors: list[str] = []

    nodes: dict[str, Node] = {}
    for record in node_records:
        node_id = str(_field(record, "id"))
        if node_id in nodes:
            errors.append(f"Duplicate node id '{node_id}'")
            continue
        kind = _field(record, "kind", NodeKind.HIDDEN)
        kind = NodeKind(kind.upper() if isinstance(kind, str) else kind)

        value = _field(record, "value")
        if value is None and previous is not None and node_id in previous.nodes:
            value = previous.nodes[node_id].value
        if value is None:
            value = _default_value(kind, rng)

        nodes[node_id] = Node(
            id=node_id, kind=kind, value=float(value),
            position=dict(_field(record, "position") or {}),
        )

    edges: dict[str, Edge] = {}
    for record in edge_records:
        edge_id = str(_field(record, "id"))
        source = str(_field(record, "source"))
        target = str(_field(record, "target"))
        if edge_id in edges:
            errors.append(f"Duplicate edge id '{edge_id}'")
            continue
        if source not in nodes or target not in nodes:
            errors.append(f"Edge {edge_id} references missing node")
            continue

        if previous is not None and edge_id in previous.edges:
            weight = previous.edges[edge_id].weight
        elif _field(record, "weight") is not None:
            weight = _field(record, "weight")
        else:
            weight = rng.uniform(-1.0, 1.0)

        edges[edge_id] = Edge(id=edge_id, source=source, target=target, weight=float(weight))

    if errors:
        raise InvalidGraphError(errors)
    return Graph(nodes=nodes, edges=edges)


def default_graph() -> Graph:
    """The starting canvas: input, bias and output nodes with no edges."""
    return Graph(nodes={
        "input": Node(id="input", kind=NodeKind.INPUT, value=0.0),
        "bias": Node(id="bias", kind=NodeKind.BIAS, value=1.0),
        "output": Node(id="output", kind=NodeKind.OUTPUT, value=math.nan),
    })


def parse_layer_spec(spec: str) -> list[int]:
    """Parse hidden layer widths from a string like ``"3x3"``.

    An empty string means no hidden layers.
    """
    spec = spec.strip().lower()
    if not spec:
        return []
    widths: list[int] = []
    for part in spec.split("x"):
        part = part.strip()
        if not part.isdigit() or int(part) < 1:
            raise ValueError(f"Invalid layer spec '{spec}': widths must be positive integers")
        widths.append(int(part))
    return widths


def layered_graph(spec: str = "3x3", rng: np.random.Generator | None = None) -> Graph:
    """Fully connected feed-forward graph with the given hidden layer widths.

    Every hidden node is fed by the bias node and by each node of the
    previous layer (the input node for the first layer); the last layer
    feeds the output.  All weights are drawn uniformly from [-1, 1].
    """
    rng = rng if rng is not None else np.random.default_rng()
    widths = parse_layer_spec(spec)
    graph = default_graph()
    bias = graph.nodes["bias"]

    node_count = 0
    edge_count = 0

    def connect(source: Node, target: Node) -> None:
        nonlocal edge_count
        edge_id = f"e{edge_count}"
        edge_count += 1
        graph.edges[edge_id] = Edge(
            id=edge_id, source=source.id, target=target.id,
            weight=float(rng.uniform(-1.0, 1.0)),
        )

    previous_layer = [graph.nodes["input"]]
    for layer_idx, width in enumerate(widths):
        layer: list[Node] = []
        for row in range(width):
            node_id = f"n{node_count}"
            node_count += 1
            node = Node(
                id=node_id, kind=NodeKind.HIDDEN,
                value=float(rng.uniform(-1.0, 1.0)),
                position={"x": 100.0 * (layer_idx + 1), "y": 100.0 * row},
            )
            graph.nodes[node_id] = node
            connect(bias, node)
            for source in previous_layer:
                connect(source, node)
            layer.append(node)
        previous_layer = layer

    for source in previous_layer:
        connect(source, graph.nodes["output"])

    graph.rebuild_adjacency()
    return graph
