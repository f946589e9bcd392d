from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Awaitable, Callable

from flowreplay.graph.errors import (
    CycleDetectedError,
    StepLimitExceededError,
    WorkflowExecutionError,
)
from flowreplay.graph.model import Node, WorkflowGraph
from flowreplay.graph.resolver import BranchDecision, find_start_node, resolve_next
from flowreplay.graph.schema import ActionNode, ConditionNode, LevelNode, WorkflowDocument
from flowreplay.graph.trace import (
    ActionOutcome,
    ActionResult,
    ConditionOutcome,
    ErrorDescriptor,
    ExecutionStep,
    ExecutionTrace,
    LevelOutcome,
    NodeOutcome,
    build_summary,
)
from flowreplay.settings import EngineSettings


LOGGER = logging.getLogger(__name__)

TERMINATED_COMPLETED = "completed"
TERMINATED_NO_MATCHING_BRANCH = "no_matching_branch"

StepCallback = Callable[[ExecutionStep], object | Awaitable[object]]
Clock = Callable[[], datetime]
GraphInput = WorkflowGraph | WorkflowDocument | Mapping[str, Any]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WorkflowExecutor:
    """Replays a workflow graph against a context and records the single path it takes.

    Nodes are simulated, never executed for real: levels report their steps as
    completed, conditions only pick the outgoing edge, and actions record what
    would have been triggered.
    """

    def __init__(
        self,
        *,
        settings: EngineSettings | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._settings = settings or EngineSettings()
        self._clock = clock or _utc_now

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    async def aexecute(
        self,
        graph: GraphInput,
        context: Mapping[str, object] | None = None,
        *,
        max_steps: int | None = None,
        on_step: StepCallback | None = None,
    ) -> ExecutionTrace:
        limit = self._settings.max_steps if max_steps is None else int(max_steps)
        if limit < 1:
            raise ValueError(f"max_steps must be at least 1, got {limit}.")

        workflow = WorkflowGraph.coerce(graph, strict=self._settings.strict_edges)
        run_context: Mapping[str, object] = MappingProxyType(dict(context or {}))

        steps: list[ExecutionStep] = []
        visited: set[str] = set()
        terminated_by = TERMINATED_COMPLETED
        error: ErrorDescriptor | None = None

        LOGGER.info(
            "Starting workflow run (%d nodes, %d edges, max_steps=%d).",
            len(workflow.nodes),
            len(workflow.edges),
            limit,
        )

        try:
            current_node_id = find_start_node(workflow).id

            while True:
                if current_node_id in visited:
                    raise CycleDetectedError(
                        f"Cycle detected at node '{current_node_id}'.",
                        node_id=current_node_id,
                    )
                if len(steps) >= limit:
                    raise StepLimitExceededError(
                        f"Workflow exceeded maximum steps ({limit}). Possible infinite loop.",
                        node_id=current_node_id,
                        max_steps=limit,
                    )
                visited.add(current_node_id)
                node = workflow.node_by_id(current_node_id)

                timestamp = self._now()
                outcome = self._execute_node(node)
                decision = resolve_next(workflow, node, run_context)

                step = ExecutionStep(
                    step_index=len(steps) + 1,
                    node_id=node.id,
                    node_kind=node.kind,
                    label=node.data.label or node.id,
                    outcome=outcome,
                    timestamp=timestamp,
                    taken_branch=decision.branch_name if decision else None,
                    next_node_id=decision.target_id if decision else None,
                )
                steps.append(step)
                self._log_step(step, decision)

                if on_step is not None:
                    result = on_step(step)
                    if inspect.isawaitable(result):
                        await result

                if decision is None:
                    if isinstance(node, ConditionNode) and workflow.outgoing_edges(node.id):
                        terminated_by = TERMINATED_NO_MATCHING_BRANCH
                    break

                current_node_id = decision.target_id

        except WorkflowExecutionError as exc:
            error = ErrorDescriptor.from_exception(exc)
            terminated_by = exc.code.lower()
            LOGGER.warning("Workflow run failed after %d step(s): %s", len(steps), exc)
        else:
            LOGGER.info("Workflow completed successfully in %d step(s).", len(steps))

        return ExecutionTrace(
            success=error is None,
            steps=tuple(steps),
            context=run_context,
            summary=build_summary(steps, terminated_by=terminated_by),
            error=error,
            max_steps=limit,
        )

    def execute(
        self,
        graph: GraphInput,
        context: Mapping[str, object] | None = None,
        **kwargs: Any,
    ) -> ExecutionTrace:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop and loop.is_running():
            raise RuntimeError(
                "WorkflowExecutor.execute() cannot be called inside an active event loop. Use await aexecute()."
            )
        return asyncio.run(self.aexecute(graph, context, **kwargs))

    def _execute_node(self, node: Node) -> NodeOutcome:
        if isinstance(node, LevelNode):
            return LevelOutcome(
                level_name=node.data.level_name,
                level_type=node.data.level_type,
                steps_completed=tuple(node.data.steps),
            )

        if isinstance(node, ConditionNode):
            # Branch selection happens in resolve_next; this only records what was evaluated.
            return ConditionOutcome(branches=tuple(node.data.branches))

        if isinstance(node, ActionNode):
            return ActionOutcome(
                actions=tuple(
                    ActionResult(
                        action_type=action.type,
                        title=action.title,
                        value=action.value,
                        timestamp=self._now(),
                    )
                    for action in node.data.actions
                )
            )

        raise WorkflowExecutionError(
            f"Unsupported node kind '{getattr(node, 'kind', None)}' in node '{node.id}'.",
            node_id=node.id,
        )

    def _log_step(self, step: ExecutionStep, decision: BranchDecision | None) -> None:
        LOGGER.debug("[Step %d] %s (%s)", step.step_index, step.label, step.node_kind)
        if decision is None:
            LOGGER.debug("Node '%s' is terminal.", step.node_id)
        elif decision.branch_name:
            LOGGER.debug("Taking branch '%s' to '%s'.", decision.branch_name, decision.target_id)
        else:
            LOGGER.debug("Moving to '%s'.", decision.target_id)

    def _now(self) -> str:
        return self._clock().isoformat()


async def aexecute(
    graph: GraphInput,
    context: Mapping[str, object] | None = None,
    *,
    max_steps: int | None = None,
    on_step: StepCallback | None = None,
    settings: EngineSettings | None = None,
) -> ExecutionTrace:
    executor = WorkflowExecutor(settings=settings)
    return await executor.aexecute(graph, context, max_steps=max_steps, on_step=on_step)


def execute(
    graph: GraphInput,
    context: Mapping[str, object] | None = None,
    *,
    max_steps: int | None = None,
    on_step: StepCallback | None = None,
    settings: EngineSettings | None = None,
) -> ExecutionTrace:
    executor = WorkflowExecutor(settings=settings)
    return executor.execute(graph, context, max_steps=max_steps, on_step=on_step)
