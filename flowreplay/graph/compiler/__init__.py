from flowreplay.graph.compiler.compiler import GraphCompiler
from flowreplay.graph.compiler.diagnostics import render_diagnostic, render_diagnostics
from flowreplay.graph.compiler.models import CompileDiagnostic, CompileResult

__all__ = [
    "CompileDiagnostic",
    "CompileResult",
    "GraphCompiler",
    "render_diagnostic",
    "render_diagnostics",
]
