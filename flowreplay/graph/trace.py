from __future__ import annotations

from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Union

from flowreplay.graph.errors import ERRORS_BY_CODE, WorkflowExecutionError
from flowreplay.graph.schema import ConditionBranch


@dataclass(frozen=True, slots=True)
class LevelOutcome:
    level_name: str | None
    level_type: str | None
    steps_completed: tuple[str, ...]
    status: str = "completed"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "nodeKind": "level",
            "levelName": self.level_name,
            "levelType": self.level_type,
            "stepsCompleted": list(self.steps_completed),
        }


@dataclass(frozen=True, slots=True)
class ConditionOutcome:
    branches: tuple[ConditionBranch, ...]
    status: str = "evaluated"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "nodeKind": "condition",
            "branches": [{"name": branch.name, "condition": branch.condition} for branch in self.branches],
        }


@dataclass(frozen=True, slots=True)
class ActionResult:
    action_type: str
    title: str
    value: str | None
    timestamp: str
    status: str = "completed"

    def to_dict(self) -> dict[str, Any]:
        return {
            "actionType": self.action_type,
            "title": self.title,
            "value": self.value,
            "status": self.status,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True, slots=True)
class ActionOutcome:
    actions: tuple[ActionResult, ...]
    status: str = "completed"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "nodeKind": "action",
            "actions": [item.to_dict() for item in self.actions],
        }


NodeOutcome = Union[LevelOutcome, ConditionOutcome, ActionOutcome]


@dataclass(frozen=True, slots=True)
class ExecutionStep:
    step_index: int
    node_id: str
    node_kind: str
    label: str
    outcome: NodeOutcome
    timestamp: str
    taken_branch: str | None = None
    next_node_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "stepIndex": self.step_index,
            "nodeId": self.node_id,
            "nodeKind": self.node_kind,
            "label": self.label,
            "outcome": self.outcome.to_dict(),
            "timestamp": self.timestamp,
        }
        if self.taken_branch is not None:
            payload["takenBranch"] = self.taken_branch
        if self.next_node_id is not None:
            payload["nextNodeId"] = self.next_node_id
        return payload


@dataclass(frozen=True, slots=True)
class ErrorDescriptor:
    code: str
    message: str
    node_id: str | None = None

    @classmethod
    def from_exception(cls, exc: WorkflowExecutionError) -> ErrorDescriptor:
        return cls(code=exc.code, message=str(exc), node_id=exc.node_id)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.node_id is not None:
            payload["nodeId"] = self.node_id
        return payload


@dataclass(frozen=True, slots=True)
class ExecutionSummary:
    total_steps: int
    node_kind_counts: Mapping[str, int]
    execution_path: tuple[str, ...]
    node_path: tuple[str, ...]
    branches_taken: tuple[tuple[str, str], ...]
    terminated_by: str
    start_time: str | None = None
    end_time: str | None = None
    duration_ms: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalSteps": self.total_steps,
            "nodeKindCount": dict(self.node_kind_counts),
            "executionPath": list(self.execution_path),
            "nodePath": list(self.node_path),
            "branchesTaken": {node_id: branch for node_id, branch in self.branches_taken},
            "terminatedBy": self.terminated_by,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "durationMs": self.duration_ms,
        }


@dataclass(frozen=True, slots=True)
class ExecutionTrace:
    success: bool
    steps: tuple[ExecutionStep, ...]
    context: Mapping[str, object]
    summary: ExecutionSummary
    error: ErrorDescriptor | None = None
    max_steps: int | None = field(default=None, compare=False)

    @property
    def step_count(self) -> int:
        return len(self.steps)

    @property
    def path(self) -> list[str]:
        return [step.node_id for step in self.steps]

    def raise_for_error(self) -> None:
        if self.error is None:
            return
        error_cls = ERRORS_BY_CODE.get(self.error.code, WorkflowExecutionError)
        exc = error_cls(self.error.message, node_id=self.error.node_id)
        exc.trace = self
        raise exc

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.success,
            "stepCount": self.step_count,
            "steps": [step.to_dict() for step in self.steps],
            "context": dict(self.context),
            "summary": self.summary.to_dict(),
        }
        if self.error is not None:
            payload["error"] = self.error.to_dict()
        return payload


def build_summary(steps: Sequence[ExecutionStep], *, terminated_by: str) -> ExecutionSummary:
    kind_counts = Counter(step.node_kind for step in steps)
    start_time = steps[0].timestamp if steps else None
    end_time = steps[-1].timestamp if steps else None

    return ExecutionSummary(
        total_steps=len(steps),
        node_kind_counts=MappingProxyType(dict(kind_counts)),
        execution_path=tuple(step.label for step in steps),
        node_path=tuple(step.node_id for step in steps),
        branches_taken=tuple(
            (step.node_id, step.taken_branch) for step in steps if step.taken_branch is not None
        ),
        terminated_by=terminated_by,
        start_time=start_time,
        end_time=end_time,
        duration_ms=_duration_ms(start_time, end_time),
    )


def _duration_ms(start_time: str | None, end_time: str | None) -> float | None:
    if start_time is None or end_time is None:
        return None
    try:
        started = datetime.fromisoformat(start_time)
        finished = datetime.fromisoformat(end_time)
    except ValueError:
        return None
    return round((finished - started).total_seconds() * 1000, 3)
