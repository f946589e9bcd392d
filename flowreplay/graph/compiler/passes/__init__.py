from flowreplay.graph.compiler.passes.canonicalize import run_canonicalize_pass
from flowreplay.graph.compiler.passes.cfg_pass import CFGAnalysis, run_cfg_pass
from flowreplay.graph.compiler.passes.edge_pass import run_edge_pass
from flowreplay.graph.compiler.passes.finalize_pass import run_finalize_pass
from flowreplay.graph.compiler.passes.schema_pass import run_schema_pass

__all__ = [
    "CFGAnalysis",
    "run_canonicalize_pass",
    "run_cfg_pass",
    "run_edge_pass",
    "run_finalize_pass",
    "run_schema_pass",
]
