from __future__ import annotations

import unittest

from flowreplay.graph import NoStartNodeError, WorkflowGraph, find_start_node, resolve_next
from flowreplay.graph.resolver import followable_edges, start_candidates


def condition_graph(edges: list[dict], branches: list[tuple[str, str]] | None = None) -> WorkflowGraph:
    branches = branches or [("High", "score >= 70"), ("Medium", "score >= 30")]
    return WorkflowGraph.from_dict(
        {
            "nodes": [
                {
                    "id": "check",
                    "kind": "condition",
                    "data": {"branches": [{"name": name, "condition": text} for name, text in branches]},
                },
                {"id": "high", "kind": "action"},
                {"id": "medium", "kind": "action"},
                {"id": "low", "kind": "action"},
            ],
            "edges": edges,
        }
    )


class StartNodeTests(unittest.TestCase):
    def test_node_without_incoming_edge_is_start(self) -> None:
        graph = WorkflowGraph.from_dict(
            {
                "nodes": [{"id": "b", "kind": "level"}, {"id": "a", "kind": "level"}],
                "edges": [{"id": "e", "source": "a", "target": "b"}],
            }
        )
        self.assertEqual(find_start_node(graph).id, "a")

    def test_first_candidate_wins_and_warns(self) -> None:
        graph = WorkflowGraph.from_dict(
            {"nodes": [{"id": "one", "kind": "level"}, {"id": "two", "kind": "level"}], "edges": []}
        )
        with self.assertLogs("flowreplay.graph.resolver", level="WARNING") as captured:
            self.assertEqual(find_start_node(graph).id, "one")
        self.assertTrue(any("starting at 'one'" in line for line in captured.output))
        self.assertEqual([node.id for node in start_candidates(graph)], ["one", "two"])

    def test_every_node_targeted_raises(self) -> None:
        graph = WorkflowGraph.from_dict(
            {
                "nodes": [{"id": "a", "kind": "level"}, {"id": "b", "kind": "level"}],
                "edges": [
                    {"id": "e1", "source": "a", "target": "b"},
                    {"id": "e2", "source": "b", "target": "a"},
                ],
            }
        )
        with self.assertRaises(NoStartNodeError):
            find_start_node(graph)

    def test_empty_graph_has_no_start(self) -> None:
        with self.assertRaises(NoStartNodeError):
            find_start_node(WorkflowGraph.from_dict({"nodes": [], "edges": []}))


class BranchResolutionTests(unittest.TestCase):
    EDGES = [
        {"id": "e-low", "source": "check", "target": "low", "branchTag": "else"},
        {"id": "e-medium", "source": "check", "target": "medium", "branchTag": "branch-1"},
        {"id": "e-high", "source": "check", "target": "high", "branchTag": "branch-0"},
    ]

    def test_first_matching_branch_wins_regardless_of_edge_order(self) -> None:
        graph = condition_graph(self.EDGES)
        node = graph.node_by_id("check")

        decision = resolve_next(graph, node, {"score": 85})
        assert decision is not None
        self.assertEqual(decision.target_id, "high")
        self.assertEqual(decision.branch_name, "High")
        self.assertEqual(decision.condition, "score >= 70")

        decision = resolve_next(graph, node, {"score": 50})
        assert decision is not None
        self.assertEqual(decision.target_id, "medium")

    def test_else_taken_when_nothing_matches(self) -> None:
        graph = condition_graph(self.EDGES)
        decision = resolve_next(graph, graph.node_by_id("check"), {"score": 10})
        assert decision is not None
        self.assertEqual(decision.target_id, "low")
        self.assertEqual(decision.branch_name, "else")
        self.assertIsNone(decision.condition)

    def test_missing_field_takes_else(self) -> None:
        graph = condition_graph(self.EDGES)
        decision = resolve_next(graph, graph.node_by_id("check"), {})
        assert decision is not None
        self.assertEqual(decision.target_id, "low")

    def test_no_match_and_no_else_is_terminal(self) -> None:
        graph = condition_graph(self.EDGES[1:])
        with self.assertLogs("flowreplay.graph.resolver", level="WARNING"):
            self.assertIsNone(resolve_next(graph, graph.node_by_id("check"), {"score": 10}))

    def test_matching_branch_without_edge_falls_through_to_next_branch(self) -> None:
        edges = [
            {"id": "e-medium", "source": "check", "target": "medium", "branchTag": "branch-1"},
            {"id": "e-low", "source": "check", "target": "low", "branchTag": "else"},
        ]
        graph = condition_graph(edges)
        decision = resolve_next(graph, graph.node_by_id("check"), {"score": 90})
        assert decision is not None
        self.assertEqual(decision.target_id, "medium")

    def test_untagged_edges_are_never_followed_from_conditions(self) -> None:
        graph = condition_graph([{"id": "e", "source": "check", "target": "high"}])
        with self.assertLogs("flowreplay.graph.resolver", level="WARNING"):
            self.assertIsNone(resolve_next(graph, graph.node_by_id("check"), {"score": 90}))
        self.assertEqual(followable_edges(graph, graph.node_by_id("check")), [])

    def test_level_node_follows_first_edge_only(self) -> None:
        graph = WorkflowGraph.from_dict(
            {
                "nodes": [
                    {"id": "start", "kind": "level"},
                    {"id": "a", "kind": "action"},
                    {"id": "b", "kind": "action"},
                ],
                "edges": [
                    {"id": "e1", "source": "start", "target": "a", "branchTag": "else"},
                    {"id": "e2", "source": "start", "target": "b"},
                ],
            }
        )
        with self.assertLogs("flowreplay.graph.resolver", level="WARNING"):
            decision = resolve_next(graph, graph.node_by_id("start"), {})
        assert decision is not None
        self.assertEqual(decision.target_id, "a")
        self.assertIsNone(decision.branch_name)
        self.assertEqual([edge.id for edge in followable_edges(graph, graph.node_by_id("start"))], ["e1"])

    def test_node_without_outgoing_edges_is_terminal(self) -> None:
        graph = WorkflowGraph.from_dict({"nodes": [{"id": "only", "kind": "action"}], "edges": []})
        self.assertIsNone(resolve_next(graph, graph.node_by_id("only"), {}))

    def test_followable_edges_for_condition_are_in_branch_order(self) -> None:
        graph = condition_graph(self.EDGES)
        edges = followable_edges(graph, graph.node_by_id("check"))
        self.assertEqual([edge.id for edge in edges], ["e-high", "e-medium", "e-low"])


if __name__ == "__main__":
    unittest.main()
