from __future__ import annotations

from collections import Counter

from flowreplay.graph.compiler.models import CompileDiagnostic
from flowreplay.graph.conditions import parse_condition
from flowreplay.graph.model import WorkflowGraph
from flowreplay.graph.schema import ELSE_TAG, ConditionNode, branch_tag, parse_branch_tag


def run_edge_pass(graph: WorkflowGraph) -> list[CompileDiagnostic]:
    diagnostics: list[CompileDiagnostic] = []

    for edge in graph.edges:
        if edge.source not in graph:
            diagnostics.append(
                CompileDiagnostic(
                    code="EDGE_UNKNOWN_SOURCE",
                    severity="error",
                    message=f"Edge '{edge.id}' starts at unknown node '{edge.source}'.",
                    path=f"edges['{edge.id}'].source",
                    hint="Remove the edge or add the missing node.",
                )
            )
        if edge.target not in graph:
            diagnostics.append(
                CompileDiagnostic(
                    code="EDGE_UNKNOWN_TARGET",
                    severity="error",
                    message=f"Edge '{edge.id}' points to unknown node '{edge.target}'.",
                    path=f"edges['{edge.id}'].target",
                    hint="Runs that follow this edge fail with NODE_NOT_FOUND.",
                )
            )

    for node in graph.nodes:
        if isinstance(node, ConditionNode):
            diagnostics.extend(_check_condition_node(graph, node))
            continue

        edges = graph.outgoing_edges(node.id)
        for edge in edges:
            if edge.branch_tag:
                diagnostics.append(
                    CompileDiagnostic(
                        code="EDGE_TAG_IGNORED",
                        severity="info",
                        message=f"Branch tag '{edge.branch_tag}' on edge '{edge.id}' is ignored for {node.kind} nodes.",
                        node_id=node.id,
                        path=f"edges['{edge.id}'].branchTag",
                    )
                )
        if len(edges) > 1:
            diagnostics.append(
                CompileDiagnostic(
                    code="NODE_MULTIPLE_OUTGOING",
                    severity="warning",
                    message=(
                        f"Node '{node.id}' has {len(edges)} outgoing edges; "
                        f"only the first ('{edges[0].id}') is ever followed."
                    ),
                    node_id=node.id,
                    hint="Use a condition node to branch.",
                )
            )

    return diagnostics


def _check_condition_node(graph: WorkflowGraph, node: ConditionNode) -> list[CompileDiagnostic]:
    diagnostics: list[CompileDiagnostic] = []
    edges = graph.outgoing_edges(node.id)
    branch_count = len(node.data.branches)

    for edge in edges:
        tag = edge.branch_tag
        if not tag:
            diagnostics.append(
                CompileDiagnostic(
                    code="EDGE_BRANCH_TAG_MISSING",
                    severity="warning",
                    message=f"Edge '{edge.id}' leaves condition node '{node.id}' without a branch tag and is never followed.",
                    node_id=node.id,
                    path=f"edges['{edge.id}'].branchTag",
                    hint="Tag it 'branch-<index>' or 'else'.",
                )
            )
            continue
        index = parse_branch_tag(tag)
        if tag != ELSE_TAG and (index is None or index >= branch_count):
            diagnostics.append(
                CompileDiagnostic(
                    code="EDGE_BRANCH_TAG_INVALID",
                    severity="error",
                    message=f"Edge '{edge.id}' has branch tag '{tag}' which matches no branch of '{node.id}'.",
                    node_id=node.id,
                    path=f"edges['{edge.id}'].branchTag",
                    hint=f"Use 'else' or 'branch-0' .. 'branch-{max(branch_count - 1, 0)}'.",
                )
            )

    tag_counts = Counter(edge.branch_tag for edge in edges if edge.branch_tag)
    for tag, count in tag_counts.items():
        if count > 1:
            diagnostics.append(
                CompileDiagnostic(
                    code="EDGE_DUPLICATE_BRANCH_TAG",
                    severity="warning",
                    message=f"Condition node '{node.id}' has {count} edges tagged '{tag}'; the first one wins.",
                    node_id=node.id,
                )
            )

    for index, branch in enumerate(node.data.branches):
        if parse_condition(branch.condition) is None:
            diagnostics.append(
                CompileDiagnostic(
                    code="CONDITION_UNPARSABLE",
                    severity="warning",
                    message=f"Branch '{branch.name}' condition '{branch.condition}' cannot be parsed and always evaluates false.",
                    node_id=node.id,
                    path=f"data.branches[{index}].condition",
                    hint="Use '<field> equals <value>' or '<field> <op> <value>' with op in >=, <=, >, <, ==, !=.",
                )
            )
        if tag_counts.get(branch_tag(index), 0) == 0:
            diagnostics.append(
                CompileDiagnostic(
                    code="BRANCH_WITHOUT_EDGE",
                    severity="warning",
                    message=(
                        f"Branch '{branch.name}' of '{node.id}' has no '{branch_tag(index)}' edge; "
                        "when it matches, evaluation continues with the next branch."
                    ),
                    node_id=node.id,
                    path=f"data.branches[{index}]",
                )
            )

    if tag_counts.get(ELSE_TAG, 0) == 0:
        diagnostics.append(
            CompileDiagnostic(
                code="CONDITION_NO_ELSE",
                severity="info",
                message=f"Condition node '{node.id}' has no else edge; runs end there when no branch matches.",
                node_id=node.id,
            )
        )

    return diagnostics
