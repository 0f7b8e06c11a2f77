"""Graph validation: structure, cycles, connectivity."""
from collections import deque

from .graph import Graph, NodeKind, SOURCE_KINDS


class InvalidGraphError(Exception):
    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Graph validation failed: {errors}")


class GraphCycleError(InvalidGraphError):
    pass


def structural_errors(graph: Graph) -> list[str]:
    """Problems that make traversal undefined: missing/duplicate terminals, dangling edges."""
    errors: list[str] = []
    for kind in (NodeKind.INPUT, NodeKind.OUTPUT):
        count = len(graph.nodes_of_kind(kind))
        if count == 0:
            errors.append(f"Graph has no {kind.value.lower()} node")
        elif count > 1:
            errors.append(f"Graph has {count} {kind.value.lower()} nodes, expected exactly one")

    for edge in graph.edges.values():
        if edge.source not in graph.nodes or edge.target not in graph.nodes:
            errors.append(f"Edge {edge.id} references missing node")
    return errors


def check_structure(graph: Graph) -> None:
    """Raise InvalidGraphError before any traversal of a malformed graph."""
    errors = structural_errors(graph)
    if errors:
        raise InvalidGraphError(errors)


def validate_graph(graph: Graph) -> list[str]:
    """Validate a graph, returning a list of error messages (empty = valid)."""
    errors = structural_errors(graph)
    if errors:
        # Remaining checks assume both terminals exist and every edge resolves
        return errors
    errors.extend(_check_cycles(graph))
    errors.extend(_check_conventions(graph))
    errors.extend(_check_reachability(graph))
    return errors


def _check_cycles(graph: Graph) -> list[str]:
    """Detect cycles using Kahn's algorithm."""
    in_degree = {nid: len(graph.inputs.get(nid, [])) for nid in graph.nodes}
    queue = deque(nid for nid, deg in in_degree.items() if deg == 0)
    visited = 0
    while queue:
        node_id = queue.popleft()
        visited += 1
        for edge, succ in graph.outgoing(node_id):
            in_degree[succ.id] -= 1
            if in_degree[succ.id] == 0:
                queue.append(succ.id)

    if visited != len(graph.nodes):
        return ["Graph contains a cycle"]
    return []


def _check_conventions(graph: Graph) -> list[str]:
    errors: list[str] = []
    for node in graph.nodes.values():
        if node.kind in SOURCE_KINDS and graph.inputs.get(node.id):
            errors.append(f"Node '{node.id}' ({node.kind.value}) must not have incoming edges")
        if node.kind == NodeKind.OUTPUT and graph.outputs.get(node.id):
            errors.append(f"Node '{node.id}' (OUTPUT) must not have outgoing edges")
    return errors


def _check_reachability(graph: Graph) -> list[str]:
    start = graph.input_node.id
    goal = graph.output_node.id
    seen = {start}
    queue = deque([start])
    while queue:
        node_id = queue.popleft()
        if node_id == goal:
            return []
        for _, succ in graph.outgoing(node_id):
            if succ.id not in seen:
                seen.add(succ.id)
                queue.append(succ.id)
    return [f"Output node '{goal}' is not reachable from input node '{start}'"]
