from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from flowreplay.graph.conditions import evaluate_condition
from flowreplay.graph.errors import NoStartNodeError
from flowreplay.graph.model import Node, WorkflowGraph
from flowreplay.graph.schema import ELSE_TAG, ConditionNode, WorkflowEdge, branch_tag


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BranchDecision:
    target_id: str
    edge: WorkflowEdge
    branch_name: str | None = None
    condition: str | None = None


def start_candidates(graph: WorkflowGraph) -> list[Node]:
    targets = {edge.target for edge in graph.edges}
    return [node for node in graph.nodes if node.id not in targets]


def find_start_node(graph: WorkflowGraph) -> Node:
    candidates = start_candidates(graph)
    if not candidates:
        raise NoStartNodeError("No start node found (every node has an incoming edge).")
    if len(candidates) > 1:
        LOGGER.warning(
            "Workflow has %d nodes without incoming edges (%s); starting at '%s'.",
            len(candidates),
            ", ".join(node.id for node in candidates),
            candidates[0].id,
        )
    return candidates[0]


def followable_edges(graph: WorkflowGraph, node: Node) -> list[WorkflowEdge]:
    """Edges that some context could make the engine follow out of ``node``."""
    edges = graph.outgoing_edges(node.id)
    if not isinstance(node, ConditionNode):
        return list(edges[:1])

    followable: list[WorkflowEdge] = []
    tags = [branch_tag(index) for index in range(len(node.data.branches))] + [ELSE_TAG]
    for tag in tags:
        edge = next((item for item in edges if item.branch_tag == tag), None)
        if edge is not None:
            followable.append(edge)
    return followable


def resolve_next(graph: WorkflowGraph, node: Node, context: Mapping[str, object]) -> BranchDecision | None:
    """Pick the single edge to follow out of ``node``.

    ``None`` means the node is terminal: it has no outgoing edge, or it is a
    condition whose branches all failed and that has no ``else`` edge.
    """
    edges = graph.outgoing_edges(node.id)
    if isinstance(node, ConditionNode):
        return _resolve_condition(node, edges, context)

    if not edges:
        return None
    if len(edges) > 1:
        LOGGER.warning(
            "Node '%s' has %d outgoing edges; following the first one ('%s').",
            node.id,
            len(edges),
            edges[0].id,
        )
    return BranchDecision(target_id=edges[0].target, edge=edges[0])


def _resolve_condition(
    node: ConditionNode,
    edges: tuple[WorkflowEdge, ...],
    context: Mapping[str, object],
) -> BranchDecision | None:
    for index, branch in enumerate(node.data.branches):
        LOGGER.debug("Node '%s' evaluating branch %d: %s", node.id, index, branch.condition)
        if not evaluate_condition(branch.condition, context):
            continue

        tag = branch_tag(index)
        edge = next((item for item in edges if item.branch_tag == tag), None)
        if edge is None:
            # A matching branch with no wired edge falls through to the next branch, not to else.
            LOGGER.warning(
                "Node '%s' branch '%s' matched but has no '%s' edge; trying the next branch.",
                node.id,
                branch.name,
                tag,
            )
            continue
        return BranchDecision(
            target_id=edge.target,
            edge=edge,
            branch_name=branch.name,
            condition=branch.condition,
        )

    else_edge = next((item for item in edges if item.branch_tag == ELSE_TAG), None)
    if else_edge is not None:
        return BranchDecision(target_id=else_edge.target, edge=else_edge, branch_name=ELSE_TAG)

    LOGGER.warning("Node '%s': no branch matched and no else edge is defined.", node.id)
    return None
