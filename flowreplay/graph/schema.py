from __future__ import annotations

import copy
import re
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from flowreplay.graph.errors import GraphValidationError


NODE_KINDS = ("level", "condition", "action")
ELSE_TAG = "else"
BRANCH_TAG_RE = re.compile(r"^branch-(\d+)$")

BRANCH_TAG_ALIASES = ("sourceHandle", "source_handle", "branch_tag")


def branch_tag(index: int) -> str:
    return f"branch-{index}"


def parse_branch_tag(tag: str | None) -> int | None:
    if not tag:
        return None
    match = BRANCH_TAG_RE.match(tag)
    if match is None:
        return None
    return int(match.group(1))


class _DocumentModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class _NodeData(_DocumentModel):
    # Editors attach presentation keys (isStart, colors, ...) that are kept but never read.
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    label: str = ""


class LevelData(_NodeData):
    level_name: str | None = Field(default=None, alias="levelName")
    level_type: str | None = Field(default=None, alias="levelType")
    steps: tuple[str, ...] = ()


class ConditionBranch(_DocumentModel):
    name: str = ""
    condition: str = ""


class ConditionData(_NodeData):
    branches: tuple[ConditionBranch, ...] = ()


class ActionItem(_DocumentModel):
    type: str
    title: str = ""
    value: str | None = None

    @field_validator("value", mode="before")
    @classmethod
    def _stringify_value(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        return value


class ActionData(_NodeData):
    actions: tuple[ActionItem, ...] = ()


class LevelNode(_DocumentModel):
    id: str = Field(min_length=1)
    kind: Literal["level"]
    data: LevelData = Field(default_factory=LevelData)


class ConditionNode(_DocumentModel):
    id: str = Field(min_length=1)
    kind: Literal["condition"]
    data: ConditionData = Field(default_factory=ConditionData)


class ActionNode(_DocumentModel):
    id: str = Field(min_length=1)
    kind: Literal["action"]
    data: ActionData = Field(default_factory=ActionData)


WorkflowNode = Annotated[Union[LevelNode, ConditionNode, ActionNode], Field(discriminator="kind")]


class WorkflowEdge(_DocumentModel):
    id: str = Field(min_length=1)
    source: str = Field(min_length=1)
    target: str = Field(min_length=1)
    branch_tag: str | None = Field(default=None, alias="branchTag")


class WorkflowDocument(_DocumentModel):
    nodes: tuple[WorkflowNode, ...] = ()
    edges: tuple[WorkflowEdge, ...] = ()

    @field_validator("nodes")
    @classmethod
    def _unique_node_ids(cls, nodes: tuple[Any, ...]) -> tuple[Any, ...]:
        seen: set[str] = set()
        for node in nodes:
            if node.id in seen:
                raise ValueError(f"Duplicate node id '{node.id}'.")
            seen.add(node.id)
        return nodes

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def canonicalize_payload(payload: dict[str, Any]) -> tuple[dict[str, Any], list[tuple[str, str, str | None]]]:
    """Rewrite editor spellings into the canonical document shape.

    Returns the rewritten copy plus ``(code, message, node_or_edge_id)`` notes,
    one per rewrite applied.
    """
    cloned = copy.deepcopy(payload)
    notes: list[tuple[str, str, str | None]] = []

    nodes = cloned.get("nodes")
    if isinstance(nodes, list):
        normalized_nodes: list[Any] = []
        for node in nodes:
            if not isinstance(node, dict):
                normalized_nodes.append(node)
                continue
            normalized = dict(node)
            node_id = str(normalized.get("id") or "") or None
            if "kind" not in normalized and "type" in normalized:
                normalized["kind"] = normalized.pop("type")
                notes.append(("CANONICAL_KIND_ALIAS", "Canonicalized 'type' to 'kind'.", node_id))
            kind = normalized.get("kind")
            if isinstance(kind, str) and kind != kind.strip().lower():
                normalized["kind"] = kind.strip().lower()
                notes.append(("CANONICAL_KIND_CASE", f"Lowercased node kind '{kind}'.", node_id))
            normalized_nodes.append(normalized)
        cloned["nodes"] = normalized_nodes

    edges = cloned.get("edges")
    if isinstance(edges, list):
        normalized_edges: list[Any] = []
        taken_ids = {str(edge.get("id")) for edge in edges if isinstance(edge, dict) and edge.get("id")}
        for edge in edges:
            if not isinstance(edge, dict):
                normalized_edges.append(edge)
                continue
            normalized = dict(edge)
            if not normalized.get("id"):
                base = f"{normalized.get('source')}->{normalized.get('target')}"
                generated = base
                suffix = 2
                while generated in taken_ids:
                    generated = f"{base}#{suffix}"
                    suffix += 1
                taken_ids.add(generated)
                normalized["id"] = generated
                notes.append(("CANONICAL_EDGE_ID", f"Generated edge id '{generated}'.", generated))
            if "branchTag" not in normalized:
                for alias in BRANCH_TAG_ALIASES:
                    if alias in normalized:
                        normalized["branchTag"] = normalized.pop(alias)
                        notes.append(
                            (
                                "CANONICAL_BRANCH_TAG_ALIAS",
                                f"Canonicalized '{alias}' to 'branchTag'.",
                                str(normalized["id"]),
                            )
                        )
                        break
            normalized_edges.append(normalized)
        cloned["edges"] = normalized_edges

    return cloned, notes


def validate_graph_definition(payload: Any) -> list[str]:
    if isinstance(payload, WorkflowDocument):
        return []
    if not isinstance(payload, dict):
        return ["Workflow document must be an object with 'nodes' and 'edges'."]

    canonical, _ = canonicalize_payload(payload)
    try:
        WorkflowDocument.model_validate(canonical)
    except ValidationError as exc:
        return [_format_error(error, canonical) for error in exc.errors()]
    return []


def parse_workflow_document(payload: Any) -> WorkflowDocument:
    if isinstance(payload, WorkflowDocument):
        return payload
    if not isinstance(payload, dict):
        raise GraphValidationError(
            "Workflow document must be an object with 'nodes' and 'edges'.",
            ["Workflow document must be an object with 'nodes' and 'edges'."],
        )

    canonical, _ = canonicalize_payload(payload)
    try:
        return WorkflowDocument.model_validate(canonical)
    except ValidationError as exc:
        errors = [_format_error(error, canonical) for error in exc.errors()]
        rendered = "\n".join(f"- {error}" for error in errors)
        raise GraphValidationError(f"Graph validation failed:\n{rendered}", errors) from exc


def _format_error(error: dict[str, Any], payload: dict[str, Any]) -> str:
    loc = list(error.get("loc") or ())
    message = str(error.get("msg") or "invalid value")

    if len(loc) >= 2 and loc[0] in {"nodes", "edges"} and isinstance(loc[1], int):
        collection, index = loc[0], loc[1]
        # Discriminated unions add the tag name to the location.
        rest = [str(part) for part in loc[2:] if part not in NODE_KINDS]
        items = payload.get(collection)
        item_id = None
        if isinstance(items, list) and index < len(items) and isinstance(items[index], dict):
            item_id = items[index].get("id")
        prefix = f"{collection}[{index}]"
        if item_id:
            prefix += f" '{item_id}'"
        if rest:
            return f"{prefix}.{'.'.join(rest)}: {message}"
        return f"{prefix}: {message}"

    if loc:
        return f"{'.'.join(str(part) for part in loc)}: {message}"
    return message
