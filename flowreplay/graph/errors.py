from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from flowreplay.graph.trace import ExecutionTrace


NO_START_NODE = "NO_START_NODE"
NODE_NOT_FOUND = "NODE_NOT_FOUND"
CYCLE_DETECTED = "CYCLE_DETECTED"
STEP_LIMIT_EXCEEDED = "STEP_LIMIT_EXCEEDED"
NO_MATCHING_BRANCH = "NO_MATCHING_BRANCH"

FATAL_ERROR_CODES = frozenset({NO_START_NODE, NODE_NOT_FOUND, CYCLE_DETECTED, STEP_LIMIT_EXCEEDED})


class WorkflowError(Exception):
    """Base class for every error raised by flowreplay."""


class GraphValidationError(WorkflowError, ValueError):
    """Raised when a workflow document fails validation."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])


class WorkflowExecutionError(WorkflowError, RuntimeError):
    """Raised when a workflow run aborts."""

    code = "EXECUTION_FAILED"

    def __init__(self, message: str, *, node_id: str | None = None) -> None:
        super().__init__(message)
        self.node_id = node_id
        self.trace: ExecutionTrace | None = None


class NoStartNodeError(WorkflowExecutionError):
    code = NO_START_NODE


class NodeNotFoundError(WorkflowExecutionError):
    code = NODE_NOT_FOUND


class CycleDetectedError(WorkflowExecutionError):
    code = CYCLE_DETECTED


class StepLimitExceededError(WorkflowExecutionError):
    code = STEP_LIMIT_EXCEEDED

    def __init__(self, message: str, *, node_id: str | None = None, max_steps: int | None = None) -> None:
        super().__init__(message, node_id=node_id)
        self.max_steps = max_steps


ERRORS_BY_CODE: dict[str, type[WorkflowExecutionError]] = {
    NO_START_NODE: NoStartNodeError,
    NODE_NOT_FOUND: NodeNotFoundError,
    CYCLE_DETECTED: CycleDetectedError,
    STEP_LIMIT_EXCEEDED: StepLimitExceededError,
}
