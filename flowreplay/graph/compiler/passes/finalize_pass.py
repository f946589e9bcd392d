from __future__ import annotations

import hashlib
import json

from flowreplay.graph.model import WorkflowGraph


HASH_LENGTH = 16


def run_finalize_pass(*, graph: WorkflowGraph, compiler_version: str) -> str:
    """Content hash of the canonical document; equal graphs hash equally."""
    payload = {
        "compiler_version": compiler_version,
        "graph": graph.to_payload(),
    }
    serialized = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()[:HASH_LENGTH]
