from flowreplay.graph.analysis import GraphAnalysis, WorkflowPath, analyze, end_nodes, enumerate_paths, is_before
from flowreplay.graph.conditions import ParsedCondition, evaluate_condition, parse_condition
from flowreplay.graph.errors import (
    CycleDetectedError,
    GraphValidationError,
    NodeNotFoundError,
    NoStartNodeError,
    StepLimitExceededError,
    WorkflowError,
    WorkflowExecutionError,
)
from flowreplay.graph.executor import WorkflowExecutor, aexecute, execute
from flowreplay.graph.model import WorkflowGraph
from flowreplay.graph.resolver import BranchDecision, find_start_node, resolve_next
from flowreplay.graph.schema import (
    ActionNode,
    ConditionNode,
    LevelNode,
    WorkflowDocument,
    WorkflowEdge,
    parse_workflow_document,
    validate_graph_definition,
)
from flowreplay.graph.trace import ErrorDescriptor, ExecutionStep, ExecutionSummary, ExecutionTrace

__all__ = [
    "ActionNode",
    "BranchDecision",
    "ConditionNode",
    "CycleDetectedError",
    "ErrorDescriptor",
    "ExecutionStep",
    "ExecutionSummary",
    "ExecutionTrace",
    "GraphAnalysis",
    "GraphValidationError",
    "LevelNode",
    "NoStartNodeError",
    "NodeNotFoundError",
    "ParsedCondition",
    "StepLimitExceededError",
    "WorkflowDocument",
    "WorkflowEdge",
    "WorkflowError",
    "WorkflowExecutionError",
    "WorkflowExecutor",
    "WorkflowGraph",
    "WorkflowPath",
    "aexecute",
    "analyze",
    "end_nodes",
    "enumerate_paths",
    "evaluate_condition",
    "execute",
    "find_start_node",
    "is_before",
    "parse_condition",
    "parse_workflow_document",
    "resolve_next",
    "validate_graph_definition",
]
