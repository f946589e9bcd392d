from __future__ import annotations

from dataclasses import dataclass

from flowreplay.graph.compiler.models import CompileDiagnostic
from flowreplay.graph.model import WorkflowGraph
from flowreplay.graph.resolver import followable_edges, start_candidates


@dataclass(slots=True)
class CFGAnalysis:
    adjacency: dict[str, list[str]]
    start_node_id: str | None
    start_candidates: list[str]
    reachable: set[str]
    cycle: list[str] | None


def run_cfg_pass(graph: WorkflowGraph) -> tuple[CFGAnalysis, list[CompileDiagnostic]]:
    diagnostics: list[CompileDiagnostic] = []

    adjacency: dict[str, list[str]] = {
        node.id: [edge.target for edge in followable_edges(graph, node)] for node in graph.nodes
    }

    candidates = [node.id for node in start_candidates(graph)]
    start = candidates[0] if candidates else None
    if not graph.nodes:
        diagnostics.append(
            CompileDiagnostic(
                code="NO_START_NODE",
                severity="error",
                message="Workflow has no nodes.",
                path="nodes",
                hint="Add at least one level, condition or action node.",
            )
        )
    elif start is None:
        diagnostics.append(
            CompileDiagnostic(
                code="NO_START_NODE",
                severity="error",
                message="Every node has an incoming edge, so there is no start node.",
                hint="Remove the edge that points back into the first step.",
            )
        )
    elif len(candidates) > 1:
        diagnostics.append(
            CompileDiagnostic(
                code="MULTIPLE_START_NODES",
                severity="warning",
                message=(
                    f"Nodes without incoming edges: {', '.join(candidates)}. "
                    f"Runs start at '{start}' (first in declaration order)."
                ),
                node_id=start,
                hint="Connect or remove the extra entry nodes.",
            )
        )

    reachable: set[str] = set()
    if start is not None:
        _dfs_reachable(start, adjacency, reachable)
        for node in graph.nodes:
            if node.id not in reachable:
                diagnostics.append(
                    CompileDiagnostic(
                        code="CFG_UNREACHABLE_NODE",
                        severity="warning",
                        message=f"Node '{node.id}' is not reachable from start node '{start}'.",
                        node_id=node.id,
                        hint="Remove it or connect it with a valid edge.",
                    )
                )

    cycle = _find_cycle(list(adjacency), adjacency)
    if cycle:
        diagnostics.append(
            CompileDiagnostic(
                code="CFG_LOOP_DETECTED",
                severity="warning",
                message=f"Workflow contains a cycle: {' -> '.join(cycle)}.",
                node_id=cycle[0],
                hint="Runs that reach this cycle fail with CYCLE_DETECTED.",
            )
        )

    return (
        CFGAnalysis(
            adjacency=adjacency,
            start_node_id=start,
            start_candidates=candidates,
            reachable=reachable,
            cycle=cycle,
        ),
        diagnostics,
    )


def _dfs_reachable(start: str, adjacency: dict[str, list[str]], reachable: set[str]) -> None:
    stack = [start]
    while stack:
        node_id = stack.pop()
        if node_id in reachable:
            continue
        reachable.add(node_id)
        for target in adjacency.get(node_id, []):
            if target not in reachable:
                stack.append(target)


def _find_cycle(order: list[str], adjacency: dict[str, list[str]]) -> list[str] | None:
    done: set[str] = set()

    for root in order:
        if root in done:
            continue
        path: list[str] = [root]
        on_path: set[str] = {root}
        iterators = [iter(adjacency.get(root, []))]

        while iterators:
            target = next(iterators[-1], None)
            if target is None:
                finished = path.pop()
                on_path.discard(finished)
                done.add(finished)
                iterators.pop()
                continue
            if target in on_path:
                return path[path.index(target):] + [target]
            if target in done or target not in adjacency:
                continue
            path.append(target)
            on_path.add(target)
            iterators.append(iter(adjacency.get(target, [])))

    return None
