from __future__ import annotations

import re
from typing import Any

from flowreplay.graph.compiler.models import CompileDiagnostic
from flowreplay.graph.errors import GraphValidationError
from flowreplay.graph.schema import WorkflowDocument, parse_workflow_document


NODE_ID_PATTERNS = [
    re.compile(r"^nodes\[\d+\] '([^']+)'"),
    re.compile(r"Duplicate node id '([^']+)"),
]


def run_schema_pass(graph: dict[str, Any]) -> tuple[WorkflowDocument | None, list[CompileDiagnostic]]:
    try:
        document = parse_workflow_document(graph)
    except GraphValidationError as exc:
        diagnostics = [
            CompileDiagnostic(
                code="SCHEMA_VALIDATION_FAILED",
                severity="error",
                message=error,
                node_id=_extract_node_id(error),
                path=error.split(":", 1)[0] if ":" in error else None,
                hint="Fix schema issues before execution.",
            )
            for error in (exc.errors or [str(exc)])
        ]
        return None, diagnostics
    return document, []


def _extract_node_id(message: str) -> str | None:
    for pattern in NODE_ID_PATTERNS:
        match = pattern.search(message)
        if match:
            return match.group(1)
    return None
