from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Sequence

from rich.console import Console
from rich.table import Table

from flowreplay.graph.analysis import GraphAnalysis, analyze
from flowreplay.graph.compiler import GraphCompiler, render_diagnostics
from flowreplay.graph.errors import GraphValidationError
from flowreplay.graph.executor import WorkflowExecutor
from flowreplay.graph.model import WorkflowGraph
from flowreplay.graph.trace import ActionOutcome, ExecutionStep, ExecutionTrace, LevelOutcome
from flowreplay.logging_utils import configure_logging
from flowreplay.settings import EngineSettings, load_settings
from flowreplay.templates import get_template, list_templates


LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INVALID_INPUT = 2


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got '{value}'") from None
    if parsed < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {parsed}")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flowreplay",
        description="Replay KYC-style workflow graphs against a context and inspect the path taken.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    run_parser = commands.add_parser("run", help="Execute a workflow and print its trace.")
    source = run_parser.add_mutually_exclusive_group(required=True)
    source.add_argument("graph", nargs="?", help="Path to a workflow JSON document.")
    source.add_argument("--template", help="Run a built-in template instead of a file.")
    context = run_parser.add_mutually_exclusive_group()
    context.add_argument("--context", help="Execution context as a JSON object.")
    context.add_argument("--context-file", help="Path to a JSON file holding the execution context.")
    run_parser.add_argument("--max-steps", type=_positive_int, help="Step ceiling for this run.")
    run_parser.add_argument("--json", action="store_true", help="Print the trace as JSON.")
    run_parser.add_argument("--live", action="store_true", help="Print each step as it is executed.")

    validate_parser = commands.add_parser("validate", help="Check a workflow document and list diagnostics.")
    validate_parser.add_argument("graph", help="Path to a workflow JSON document.")
    validate_parser.add_argument("--json", action="store_true", help="Print diagnostics as JSON.")

    analyze_parser = commands.add_parser("analyze", help="Show start node, end nodes, paths and connections.")
    analyze_parser.add_argument("graph", help="Path to a workflow JSON document.")
    analyze_parser.add_argument("--json", action="store_true", help="Print the analysis as JSON.")

    templates_parser = commands.add_parser("templates", help="List built-in templates.")
    templates_parser.add_argument("--show", metavar="ID", help="Print one template as a workflow document.")

    return parser


def _read_json_object(path: str, what: str) -> dict[str, Any]:
    try:
        text = Path(path).expanduser().read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Cannot read {what} '{path}': {exc.strerror or exc}") from exc
    return _parse_json_object(text, f"{what} '{path}'")


def _parse_json_object(text: str, what: str) -> dict[str, Any]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"{what} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError(f"{what} must be a JSON object.")
    return payload


class FlowReplayCLI:
    def __init__(self, *, console: Console | None = None, settings: EngineSettings | None = None) -> None:
        self.console = console or Console(highlight=False, markup=False)
        self.settings = settings or load_settings()

    def main(self, argv: Sequence[str] | None = None) -> int:
        args = build_parser().parse_args(argv)
        handlers = {
            "run": self._cmd_run,
            "validate": self._cmd_validate,
            "analyze": self._cmd_analyze,
            "templates": self._cmd_templates,
        }
        try:
            return handlers[args.command](args)
        except GraphValidationError as exc:
            self.console.print("Invalid workflow document:")
            for error in exc.errors or [str(exc)]:
                self.console.print(f"- {error}")
            return EXIT_INVALID_INPUT
        except (KeyError, ValueError) as exc:
            message = exc.args[0] if isinstance(exc, KeyError) and exc.args else exc
            self.console.print(f"Error: {message}")
            return EXIT_INVALID_INPUT

    # run

    def _cmd_run(self, args: argparse.Namespace) -> int:
        if args.template:
            template = get_template(args.template)
            graph = template.graph(strict=self.settings.strict_edges)
            default_context = dict(template.sample_contexts[0]) if template.sample_contexts else {}
        else:
            payload = _read_json_object(args.graph, "workflow file")
            graph = WorkflowGraph.from_dict(payload, strict=self.settings.strict_edges)
            default_context = {}

        if args.context is not None:
            context = _parse_json_object(args.context, "--context")
        elif args.context_file is not None:
            context = _read_json_object(args.context_file, "context file")
        else:
            context = default_context

        executor = WorkflowExecutor(settings=self.settings)
        on_step = self._live_step if args.live else None
        trace = asyncio.run(executor.aexecute(graph, context, max_steps=args.max_steps, on_step=on_step))

        if args.json:
            self._print_json(trace.to_dict())
        else:
            self._print_trace(trace)
        return EXIT_OK if trace.success else EXIT_FAILED

    async def _live_step(self, step: ExecutionStep) -> None:
        self.console.print(f"[{step.step_index}] {step.label} ({step.node_kind})")
        if self.settings.step_delay_seconds > 0:
            await asyncio.sleep(self.settings.step_delay_seconds)

    def _print_trace(self, trace: ExecutionTrace) -> None:
        table = Table(title="Execution Trace")
        table.add_column("#", justify="right")
        table.add_column("Node", style="bold")
        table.add_column("Kind")
        table.add_column("Detail")
        table.add_column("Next")
        for step in trace.steps:
            table.add_row(
                str(step.step_index),
                step.label,
                step.node_kind,
                self._step_detail(step),
                step.next_node_id or "-",
            )
        self.console.print(table)

        summary = trace.summary
        rows = [
            ("status", "success" if trace.success else "failed"),
            ("steps", str(summary.total_steps)),
            ("path", " -> ".join(summary.execution_path) or "(empty)"),
            ("terminated by", summary.terminated_by),
        ]
        if summary.duration_ms is not None:
            rows.append(("duration", f"{summary.duration_ms} ms"))
        self._print_kv_lines("Summary", rows)

        if trace.error is not None:
            location = f" at node '{trace.error.node_id}'" if trace.error.node_id else ""
            self.console.print(f"Run failed{location}: [{trace.error.code}] {trace.error.message}")

    @staticmethod
    def _step_detail(step: ExecutionStep) -> str:
        outcome = step.outcome
        if isinstance(outcome, LevelOutcome):
            return ", ".join(outcome.steps_completed) or "-"
        if isinstance(outcome, ActionOutcome):
            return "; ".join(f"{item.action_type}: {item.title}" for item in outcome.actions) or "-"
        if step.taken_branch is not None:
            return f"branch: {step.taken_branch}"
        return "no branch matched"

    # validate / analyze

    def _cmd_validate(self, args: argparse.Namespace) -> int:
        payload = _read_json_object(args.graph, "workflow file")
        result = GraphCompiler().compile(payload)

        if args.json:
            self._print_json(
                {
                    "ok": result.ok,
                    "compileHash": result.compile_hash,
                    "startNodeId": result.start_node_id,
                    "diagnostics": [item.to_dict() for item in result.diagnostics],
                }
            )
        else:
            rendered = render_diagnostics(result.diagnostics)
            if rendered:
                self.console.print(rendered)
            if result.ok:
                self.console.print(f"Workflow is valid (start: {result.start_node_id}, hash: {result.compile_hash}).")
            else:
                self.console.print(f"Workflow has {len(result.errors)} error(s).")
        return EXIT_OK if result.ok else EXIT_FAILED

    def _cmd_analyze(self, args: argparse.Namespace) -> int:
        payload = _read_json_object(args.graph, "workflow file")
        report = analyze(WorkflowGraph.from_dict(payload))
        if args.json:
            self._print_json(report.to_dict())
        else:
            self._print_analysis(report)
        return EXIT_OK

    def _print_analysis(self, report: GraphAnalysis) -> None:
        self._print_kv_lines(
            "Workflow Analysis",
            [
                ("nodes", str(report.node_count)),
                ("edges", str(report.edge_count)),
                ("start node", report.start_node_id or "(none)"),
            ],
        )
        self._print_list("End Nodes", list(report.end_node_ids))

        paths = [
            " -> ".join(path.node_ids) + (" (cycle)" if path.cyclic else "")
            for path in report.paths
        ]
        if report.truncated:
            paths.append("... (truncated)")
        self._print_list("Paths", paths)

        table = Table(title="Connections")
        table.add_column("Node", style="bold")
        table.add_column("Kind")
        table.add_column("In", justify="right")
        table.add_column("Out", justify="right")
        table.add_column("Connected To")
        for item in report.connections:
            table.add_row(
                item.label,
                item.kind,
                str(item.incoming),
                str(item.outgoing),
                ", ".join(item.connected_to) or "-",
            )
        self.console.print(table)

    # templates

    def _cmd_templates(self, args: argparse.Namespace) -> int:
        if args.show:
            self._print_json(get_template(args.show).document())
            return EXIT_OK

        table = Table(title="Templates")
        table.add_column("ID", style="bold")
        table.add_column("Name")
        table.add_column("Description")
        for template in list_templates():
            table.add_row(template.id, template.name, template.description)
        self.console.print(table)
        return EXIT_OK

    # output helpers

    def _print_json(self, payload: Any) -> None:
        self.console.print(json.dumps(payload, indent=2), soft_wrap=True, markup=False, emoji=False, highlight=False)

    def _print_kv_lines(self, title: str, rows: list[tuple[str, str]]) -> None:
        self.console.print(title)
        for key, value in rows:
            self.console.print(f"- {key}: {value}")
        self.console.print()

    def _print_list(self, title: str, items: list[str]) -> None:
        self.console.print(title)
        if not items:
            self.console.print("- (none)")
        else:
            for item in items:
                self.console.print(f"- {item}")
        self.console.print()


def main(argv: Sequence[str] | None = None, *, console: Console | None = None) -> int:
    return FlowReplayCLI(console=console).main(argv)


def run() -> None:
    configure_logging()
    try:
        raise SystemExit(main())
    except KeyboardInterrupt:
        LOGGER.info("Interrupted.")
        raise SystemExit(130) from None
