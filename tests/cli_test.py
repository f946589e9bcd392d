from __future__ import annotations

import io
import json
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from rich.console import Console

from flowreplay.cli import EXIT_FAILED, EXIT_INVALID_INPUT, EXIT_OK, FlowReplayCLI
from flowreplay.settings import EngineSettings


CYCLIC_GRAPH = {
    "nodes": [{"id": "s", "kind": "level"}, {"id": "a", "kind": "level"}, {"id": "b", "kind": "level"}],
    "edges": [
        {"id": "e1", "source": "s", "target": "a"},
        {"id": "e2", "source": "a", "target": "b"},
        {"id": "e3", "source": "b", "target": "a"},
    ],
}

CHAIN_GRAPH = {
    "nodes": [{"id": f"n{index}", "kind": "level", "data": {"label": f"Step {index}"}} for index in range(1, 5)],
    "edges": [{"id": f"e{index}", "source": f"n{index}", "target": f"n{index + 1}"} for index in range(1, 4)],
}


class CLITests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = TemporaryDirectory()
        self.tmp_path = Path(self._tmp.name)
        self.output = io.StringIO()
        console = Console(file=self.output, width=200, markup=False, highlight=False, no_color=True)
        self.cli = FlowReplayCLI(console=console, settings=EngineSettings())

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def write_json(self, name: str, payload: object) -> str:
        path = self.tmp_path / name
        path.write_text(json.dumps(payload), encoding="utf-8")
        return str(path)

    def test_templates_list_and_show(self) -> None:
        self.assertEqual(self.cli.main(["templates"]), EXIT_OK)
        self.assertIn("risk-assessment", self.output.getvalue())

        self.output.seek(0)
        self.output.truncate()
        self.assertEqual(self.cli.main(["templates", "--show", "age-check"]), EXIT_OK)
        document = json.loads(self.output.getvalue())
        self.assertEqual(len(document["nodes"]), 4)

    def test_run_template_uses_first_sample_context(self) -> None:
        code = self.cli.main(["run", "--template", "age-check", "--json"])

        self.assertEqual(code, EXIT_OK)
        trace = json.loads(self.output.getvalue())
        self.assertTrue(trace["success"])
        self.assertEqual(trace["summary"]["nodePath"], ["collect", "age-check", "approve"])

    def test_run_with_inline_context_prints_table(self) -> None:
        code = self.cli.main(["run", "--template", "age-check", "--context", '{"age": 10}'])

        self.assertEqual(code, EXIT_OK)
        text = self.output.getvalue()
        self.assertIn("Execution Trace", text)
        self.assertIn("Reject", text)
        self.assertIn("branch: else", text)
        self.assertIn("terminated by: completed", text)

    def test_run_file_with_context_file(self) -> None:
        graph = self.write_json("chain.json", CHAIN_GRAPH)
        context = self.write_json("context.json", {"ignored": True})

        self.assertEqual(self.cli.main(["run", graph, "--context-file", context, "--json"]), EXIT_OK)
        self.assertEqual(json.loads(self.output.getvalue())["stepCount"], 4)

    def test_failed_run_exits_with_one(self) -> None:
        graph = self.write_json("cycle.json", CYCLIC_GRAPH)

        self.assertEqual(self.cli.main(["run", graph]), EXIT_FAILED)
        self.assertIn("[CYCLE_DETECTED]", self.output.getvalue())

    def test_max_steps_flag(self) -> None:
        graph = self.write_json("chain.json", CHAIN_GRAPH)

        self.assertEqual(self.cli.main(["run", graph, "--max-steps", "2", "--json"]), EXIT_FAILED)
        trace = json.loads(self.output.getvalue())
        self.assertEqual(trace["error"]["code"], "STEP_LIMIT_EXCEEDED")
        self.assertEqual(trace["stepCount"], 2)

    def test_live_mode_prints_each_step(self) -> None:
        graph = self.write_json("chain.json", CHAIN_GRAPH)

        self.assertEqual(self.cli.main(["run", graph, "--live"]), EXIT_OK)
        text = self.output.getvalue()
        self.assertIn("[1] Step 1 (level)", text)
        self.assertIn("[4] Step 4 (level)", text)

    def test_invalid_inputs_exit_with_two(self) -> None:
        bad_document = self.write_json("bad.json", {"nodes": [{"id": "x", "kind": "webhook"}], "edges": []})
        cases = [
            ["run", str(self.tmp_path / "missing.json")],
            ["run", "--template", "nope"],
            ["run", "--template", "age-check", "--context", "[1, 2]"],
            ["run", "--template", "age-check", "--context", "{broken"],
            ["run", bad_document],
        ]
        for argv in cases:
            with self.subTest(argv=argv):
                self.assertEqual(self.cli.main(argv), EXIT_INVALID_INPUT)

        text = self.output.getvalue()
        self.assertIn("Unknown template 'nope'", text)
        self.assertIn("Invalid workflow document:", text)

    def test_argument_errors_exit_through_argparse(self) -> None:
        with self.assertRaises(SystemExit):
            self.cli.main(["run", "--max-steps", "0", "--template", "age-check"])
        with self.assertRaises(SystemExit):
            self.cli.main([])

    def test_validate(self) -> None:
        good = self.write_json("good.json", CHAIN_GRAPH)
        self.assertEqual(self.cli.main(["validate", good]), EXIT_OK)
        self.assertIn("Workflow is valid", self.output.getvalue())

        broken = dict(CHAIN_GRAPH, edges=CHAIN_GRAPH["edges"] + [{"id": "x", "source": "n4", "target": "ghost"}])
        path = self.write_json("broken.json", broken)
        self.output.seek(0)
        self.output.truncate()
        self.assertEqual(self.cli.main(["validate", path, "--json"]), EXIT_FAILED)
        report = json.loads(self.output.getvalue())
        self.assertFalse(report["ok"])
        self.assertIn("EDGE_UNKNOWN_TARGET", [item["code"] for item in report["diagnostics"]])

    def test_analyze(self) -> None:
        graph = self.write_json("cycle.json", CYCLIC_GRAPH)

        self.assertEqual(self.cli.main(["analyze", graph]), EXIT_OK)
        text = self.output.getvalue()
        self.assertIn("start node: s", text)
        self.assertIn("s -> a -> b -> a (cycle)", text)
        self.assertIn("Connections", text)


if __name__ == "__main__":
    unittest.main()
