from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from flowreplay.graph.errors import GraphValidationError, NodeNotFoundError
from flowreplay.graph.schema import (
    ActionNode,
    ConditionNode,
    LevelNode,
    WorkflowDocument,
    WorkflowEdge,
    parse_workflow_document,
)


Node = LevelNode | ConditionNode | ActionNode


class WorkflowGraph:
    """Read-only indexed view over a validated workflow document.

    Never mutated after construction, so one instance can back any number of
    concurrent runs.
    """

    def __init__(self, document: WorkflowDocument, *, strict: bool = False) -> None:
        self._document = document
        self._nodes: dict[str, Node] = {node.id: node for node in document.nodes}

        outgoing: dict[str, list[WorkflowEdge]] = {}
        incoming: dict[str, list[WorkflowEdge]] = {}
        for edge in document.edges:
            outgoing.setdefault(edge.source, []).append(edge)
            incoming.setdefault(edge.target, []).append(edge)
        self._outgoing = {key: tuple(value) for key, value in outgoing.items()}
        self._incoming = {key: tuple(value) for key, value in incoming.items()}

        if strict:
            dangling = self.dangling_edges()
            if dangling:
                errors = [
                    f"Edge '{edge.id}' references unknown node '{missing}'."
                    for edge, missing in dangling
                ]
                rendered = "\n".join(f"- {error}" for error in errors)
                raise GraphValidationError(f"Graph validation failed:\n{rendered}", errors)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any], *, strict: bool = False) -> WorkflowGraph:
        return cls(parse_workflow_document(dict(payload)), strict=strict)

    @classmethod
    def from_json(cls, text: str, *, strict: bool = False) -> WorkflowGraph:
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise GraphValidationError(f"Workflow document is not valid JSON: {exc}", [str(exc)]) from exc
        if not isinstance(payload, dict):
            raise GraphValidationError(
                "Workflow document must be an object with 'nodes' and 'edges'.",
                ["Workflow document must be an object with 'nodes' and 'edges'."],
            )
        return cls.from_dict(payload, strict=strict)

    @classmethod
    def coerce(cls, graph: WorkflowGraph | WorkflowDocument | Mapping[str, Any], *, strict: bool = False) -> WorkflowGraph:
        if isinstance(graph, WorkflowGraph):
            return graph
        if isinstance(graph, WorkflowDocument):
            return cls(graph, strict=strict)
        if isinstance(graph, Mapping):
            return cls.from_dict(graph, strict=strict)
        raise GraphValidationError(
            f"Unsupported workflow graph type '{type(graph).__name__}'.",
            [f"Unsupported workflow graph type '{type(graph).__name__}'."],
        )

    @property
    def document(self) -> WorkflowDocument:
        return self._document

    @property
    def nodes(self) -> tuple[Node, ...]:
        return self._document.nodes

    @property
    def edges(self) -> tuple[WorkflowEdge, ...]:
        return self._document.edges

    @property
    def node_ids(self) -> tuple[str, ...]:
        return tuple(node.id for node in self._document.nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: str) -> Node | None:
        return self._nodes.get(node_id)

    def node_by_id(self, node_id: str) -> Node:
        node = self._nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(f"Node '{node_id}' was not found in the workflow.", node_id=node_id)
        return node

    def outgoing_edges(self, node_id: str) -> tuple[WorkflowEdge, ...]:
        return self._outgoing.get(node_id, ())

    def incoming_edges(self, node_id: str) -> tuple[WorkflowEdge, ...]:
        return self._incoming.get(node_id, ())

    def dangling_edges(self) -> list[tuple[WorkflowEdge, str]]:
        dangling: list[tuple[WorkflowEdge, str]] = []
        for edge in self._document.edges:
            if edge.source not in self._nodes:
                dangling.append((edge, edge.source))
            if edge.target not in self._nodes:
                dangling.append((edge, edge.target))
        return dangling

    def to_payload(self) -> dict[str, Any]:
        return self._document.to_payload()
