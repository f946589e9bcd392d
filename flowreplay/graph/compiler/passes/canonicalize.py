from __future__ import annotations

from typing import Any

from flowreplay.graph.compiler.models import CompileDiagnostic
from flowreplay.graph.schema import canonicalize_payload


NODE_REWRITES = {
    "CANONICAL_KIND_ALIAS": "type",
    "CANONICAL_KIND_CASE": "kind",
}
EDGE_REWRITES = {
    "CANONICAL_BRANCH_TAG_ALIAS": "branchTag",
    "CANONICAL_EDGE_ID": "id",
}


def run_canonicalize_pass(graph: dict[str, Any]) -> tuple[dict[str, Any], list[CompileDiagnostic]]:
    rewritten, notes = canonicalize_payload(graph)
    diagnostics: list[CompileDiagnostic] = []
    for code, message, item_id in notes:
        if code in NODE_REWRITES:
            diagnostics.append(
                CompileDiagnostic(
                    code=code,
                    severity="info",
                    message=message,
                    node_id=item_id,
                    path=NODE_REWRITES[code],
                )
            )
        else:
            diagnostics.append(
                CompileDiagnostic(
                    code=code,
                    severity="info",
                    message=message,
                    path=f"edges['{item_id}'].{EDGE_REWRITES.get(code, 'id')}",
                )
            )
    return rewritten, diagnostics
