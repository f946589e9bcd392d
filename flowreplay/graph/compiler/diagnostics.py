from __future__ import annotations

from flowreplay.graph.compiler.models import CompileDiagnostic


SEVERITY_ORDER = {"error": 0, "warning": 1, "info": 2}


def render_diagnostic(diagnostic: CompileDiagnostic) -> str:
    location_bits: list[str] = []
    if diagnostic.node_id:
        location_bits.append(f"node={diagnostic.node_id}")
    if diagnostic.path:
        location_bits.append(f"path={diagnostic.path}")

    location = f" ({', '.join(location_bits)})" if location_bits else ""
    hint = f" Hint: {diagnostic.hint}" if diagnostic.hint else ""
    message = diagnostic.message.rstrip(".")
    return f"[{diagnostic.severity.upper()}] {diagnostic.code}: {message}{location}.{hint}".rstrip()


def sort_diagnostics(diagnostics: list[CompileDiagnostic]) -> list[CompileDiagnostic]:
    return sorted(
        diagnostics,
        key=lambda item: (SEVERITY_ORDER.get(item.severity, 9), item.code, item.node_id or ""),
    )


def render_diagnostics(diagnostics: list[CompileDiagnostic], *, include_info: bool = True) -> str:
    items = [item for item in diagnostics if include_info or item.severity != "info"]
    if not items:
        return ""
    return "\n".join(f"- {render_diagnostic(item)}" for item in sort_diagnostics(items))
