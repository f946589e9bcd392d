"""Static inspection of a workflow graph.

Everything here walks the graph iteratively with an explicit stack, so a
malformed or cyclic document cannot exhaust the interpreter's recursion limit.
Paths follow only the edges the engine can actually take (the first edge of a
level or action node, the tagged edges of a condition node).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from flowreplay.graph.model import Node, WorkflowGraph
from flowreplay.graph.resolver import followable_edges, start_candidates


DEFAULT_MAX_PATHS = 1000


@dataclass(frozen=True, slots=True)
class WorkflowPath:
    node_ids: tuple[str, ...]
    cyclic: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"nodeIds": list(self.node_ids), "cyclic": self.cyclic}


@dataclass(frozen=True, slots=True)
class NodeConnections:
    node_id: str
    kind: str
    label: str
    incoming: int
    outgoing: int
    connected_from: tuple[str, ...]
    connected_to: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodeId": self.node_id,
            "kind": self.kind,
            "label": self.label,
            "incoming": self.incoming,
            "outgoing": self.outgoing,
            "connectedFrom": list(self.connected_from),
            "connectedTo": list(self.connected_to),
        }


@dataclass(frozen=True, slots=True)
class GraphAnalysis:
    node_count: int
    edge_count: int
    start_node_id: str | None
    start_candidates: tuple[str, ...]
    end_node_ids: tuple[str, ...]
    paths: tuple[WorkflowPath, ...]
    truncated: bool
    connections: tuple[NodeConnections, ...] = field(default=())

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodeCount": self.node_count,
            "edgeCount": self.edge_count,
            "startNodeId": self.start_node_id,
            "startCandidates": list(self.start_candidates),
            "endNodeIds": list(self.end_node_ids),
            "paths": [path.to_dict() for path in self.paths],
            "truncated": self.truncated,
            "connections": [item.to_dict() for item in self.connections],
        }


def end_nodes(graph: WorkflowGraph) -> list[Node]:
    return [node for node in graph.nodes if not graph.outgoing_edges(node.id)]


def enumerate_paths(
    graph: WorkflowGraph,
    *,
    start_node_id: str | None = None,
    max_paths: int = DEFAULT_MAX_PATHS,
) -> tuple[list[WorkflowPath], bool]:
    """All start-to-leaf paths, plus whether ``max_paths`` cut the walk short.

    A path that would revisit one of its own nodes ends there and is flagged
    ``cyclic``. Edges into unknown nodes end the path at the unknown id.
    """
    if start_node_id is None:
        candidates = start_candidates(graph)
        if not candidates:
            return [], False
        start_node_id = candidates[0].id

    paths: list[WorkflowPath] = []
    stack: list[tuple[tuple[str, ...], bool]] = [((start_node_id,), False)]

    while stack:
        if len(paths) >= max_paths:
            return paths, True
        path, cyclic = stack.pop()
        if cyclic:
            paths.append(WorkflowPath(node_ids=path, cyclic=True))
            continue

        node = graph.get_node(path[-1])
        targets = [edge.target for edge in followable_edges(graph, node)] if node is not None else []
        if not targets:
            paths.append(WorkflowPath(node_ids=path))
            continue

        # Reversed so the first edge is explored first.
        for target in reversed(targets):
            stack.append((path + (target,), target in path))

    return paths, False


def is_before(graph: WorkflowGraph, first_id: str, second_id: str) -> bool:
    """True when ``second_id`` can be reached from ``first_id`` along any edge."""
    stack = [first_id]
    visited: set[str] = set()
    while stack:
        current = stack.pop()
        if current == second_id:
            return True
        if current in visited:
            continue
        visited.add(current)
        stack.extend(edge.target for edge in graph.outgoing_edges(current))
    return False


def describe_connections(graph: WorkflowGraph) -> list[NodeConnections]:
    def _label(node_id: str) -> str:
        node = graph.get_node(node_id)
        if node is None:
            return node_id
        return node.data.label or node.id

    report: list[NodeConnections] = []
    for node in graph.nodes:
        incoming = graph.incoming_edges(node.id)
        outgoing = graph.outgoing_edges(node.id)
        report.append(
            NodeConnections(
                node_id=node.id,
                kind=node.kind,
                label=node.data.label or node.id,
                incoming=len(incoming),
                outgoing=len(outgoing),
                connected_from=tuple(_label(edge.source) for edge in incoming),
                connected_to=tuple(_label(edge.target) for edge in outgoing),
            )
        )
    return report


def analyze(graph: WorkflowGraph, *, max_paths: int = DEFAULT_MAX_PATHS) -> GraphAnalysis:
    candidates = tuple(node.id for node in start_candidates(graph))
    start = candidates[0] if candidates else None
    paths, truncated = enumerate_paths(graph, start_node_id=start, max_paths=max_paths) if start else ([], False)
    return GraphAnalysis(
        node_count=len(graph.nodes),
        edge_count=len(graph.edges),
        start_node_id=start,
        start_candidates=candidates,
        end_node_ids=tuple(node.id for node in end_nodes(graph)),
        paths=tuple(paths),
        truncated=truncated,
        connections=tuple(describe_connections(graph)),
    )
