from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from flowreplay.graph.model import WorkflowGraph


DiagnosticSeverity = Literal["error", "warning", "info"]


@dataclass(slots=True)
class CompileDiagnostic:
    code: str
    severity: DiagnosticSeverity
    message: str
    node_id: str | None = None
    path: str | None = None
    hint: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "severity": self.severity,
            "message": self.message,
            "nodeId": self.node_id,
            "path": self.path,
            "hint": self.hint,
        }


@dataclass(slots=True)
class CompileResult:
    ok: bool
    diagnostics: list[CompileDiagnostic]
    rewritten_graph: dict[str, Any] | None = None
    graph: WorkflowGraph | None = None
    compile_hash: str | None = None
    start_node_id: str | None = None
    reachable: set[str] = field(default_factory=set)

    @property
    def errors(self) -> list[CompileDiagnostic]:
        return [item for item in self.diagnostics if item.severity == "error"]

    @property
    def warnings(self) -> list[CompileDiagnostic]:
        return [item for item in self.diagnostics if item.severity in {"warning", "info"}]
