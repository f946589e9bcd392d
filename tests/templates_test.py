from __future__ import annotations

import unittest

from flowreplay.graph import execute
from flowreplay.graph.compiler import GraphCompiler
from flowreplay.templates import get_template, list_templates


class TemplateTests(unittest.TestCase):
    def test_catalog(self) -> None:
        ids = [template.id for template in list_templates()]
        self.assertEqual(ids, ["simple-linear", "age-check", "country-kyc", "risk-assessment", "multi-branch"])

    def test_unknown_template_lists_known_ids(self) -> None:
        with self.assertRaises(KeyError) as ctx:
            get_template("nope")
        self.assertIn("simple-linear", ctx.exception.args[0])

    def test_every_template_compiles_without_errors(self) -> None:
        compiler = GraphCompiler()
        for template in list_templates():
            with self.subTest(template=template.id):
                result = compiler.compile(template.document())
                self.assertTrue(result.ok, [item.message for item in result.errors])
                self.assertEqual(result.reachable, set(result.graph.node_ids))

    def test_every_sample_context_runs_to_completion(self) -> None:
        for template in list_templates():
            for context in template.sample_contexts:
                with self.subTest(template=template.id, context=context):
                    trace = execute(template.graph(), context)
                    self.assertTrue(trace.success)
                    self.assertEqual(trace.summary.terminated_by, "completed")

    def test_document_is_a_copy(self) -> None:
        template = get_template("simple-linear")
        document = template.document()
        document["nodes"].clear()
        self.assertEqual(len(template.document()["nodes"]), 3)

    def test_risk_assessment_routes_by_score(self) -> None:
        graph = get_template("risk-assessment").graph()
        self.assertEqual(execute(graph, {"riskScore": 85}).path[-1], "manual-review")
        self.assertEqual(execute(graph, {"riskScore": 50}).path[-2:], ["standard-kyc", "auto-approve"])
        self.assertEqual(execute(graph, {"riskScore": 10}).path[-2:], ["basic-kyc", "auto-approve"])

    def test_multi_branch_has_two_decisions(self) -> None:
        graph = get_template("multi-branch").graph()
        trace = execute(graph, {"docType": "passport", "qualityScore": 92})
        self.assertEqual(trace.path, ["level-collect", "condition-doctype", "condition-quality", "action-approve"])
        self.assertEqual(dict(trace.summary.branches_taken), {"condition-doctype": "Passport", "condition-quality": "Good Quality"})

        trace = execute(graph, {"docType": "ID_CARD", "qualityScore": 40})
        self.assertEqual(trace.path[-1], "action-retry")


if __name__ == "__main__":
    unittest.main()
