from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from flowreplay.graph.compiler.models import CompileDiagnostic, CompileResult
from flowreplay.graph.compiler.passes import (
    run_canonicalize_pass,
    run_cfg_pass,
    run_edge_pass,
    run_finalize_pass,
    run_schema_pass,
)
from flowreplay.graph.model import WorkflowGraph


LOGGER = logging.getLogger(__name__)


class GraphCompiler:
    """Deterministic validator that normalizes workflow documents and reports diagnostics."""

    VERSION = "0.1.0"

    def compile(self, graph: Mapping[str, Any]) -> CompileResult:
        diagnostics: list[CompileDiagnostic] = []

        if not isinstance(graph, Mapping):
            diagnostics.append(
                CompileDiagnostic(
                    code="SCHEMA_VALIDATION_FAILED",
                    severity="error",
                    message="Workflow document must be an object with 'nodes' and 'edges'.",
                )
            )
            return CompileResult(ok=False, diagnostics=diagnostics)

        rewritten, canonical_diags = run_canonicalize_pass(dict(graph))
        diagnostics.extend(canonical_diags)

        document, schema_diags = run_schema_pass(rewritten)
        diagnostics.extend(schema_diags)
        if document is None:
            LOGGER.debug("Schema validation failed with %d error(s).", len(schema_diags))
            return CompileResult(ok=False, diagnostics=diagnostics, rewritten_graph=rewritten)

        workflow = WorkflowGraph(document)
        diagnostics.extend(run_edge_pass(workflow))

        cfg, cfg_diags = run_cfg_pass(workflow)
        diagnostics.extend(cfg_diags)

        ok = not any(item.severity == "error" for item in diagnostics)
        return CompileResult(
            ok=ok,
            diagnostics=diagnostics,
            rewritten_graph=rewritten,
            graph=workflow if ok else None,
            compile_hash=run_finalize_pass(graph=workflow, compiler_version=self.VERSION),
            start_node_id=cfg.start_node_id,
            reachable=cfg.reachable,
        )
