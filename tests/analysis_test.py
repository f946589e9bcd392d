from __future__ import annotations

import unittest

from flowreplay.graph import WorkflowGraph, analyze, end_nodes, enumerate_paths, is_before
from flowreplay.templates import get_template


def diamond() -> WorkflowGraph:
    return WorkflowGraph.from_dict(
        {
            "nodes": [
                {"id": "start", "kind": "level"},
                {
                    "id": "check",
                    "kind": "condition",
                    "data": {"branches": [{"name": "Yes", "condition": "flag equals yes"}]},
                },
                {"id": "left", "kind": "level", "data": {"label": "Left"}},
                {"id": "right", "kind": "level"},
                {"id": "end", "kind": "action"},
            ],
            "edges": [
                {"id": "e1", "source": "start", "target": "check"},
                {"id": "e2", "source": "check", "target": "left", "branchTag": "branch-0"},
                {"id": "e3", "source": "check", "target": "right", "branchTag": "else"},
                {"id": "e4", "source": "left", "target": "end"},
                {"id": "e5", "source": "right", "target": "end"},
            ],
        }
    )


class PathEnumerationTests(unittest.TestCase):
    def test_paths_follow_branch_order(self) -> None:
        paths, truncated = enumerate_paths(diamond())

        self.assertFalse(truncated)
        self.assertEqual(
            [path.node_ids for path in paths],
            [("start", "check", "left", "end"), ("start", "check", "right", "end")],
        )
        self.assertFalse(any(path.cyclic for path in paths))

    def test_cyclic_path_is_cut_and_flagged(self) -> None:
        graph = WorkflowGraph.from_dict(
            {
                "nodes": [{"id": "s", "kind": "level"}, {"id": "a", "kind": "level"}, {"id": "b", "kind": "level"}],
                "edges": [
                    {"id": "e1", "source": "s", "target": "a"},
                    {"id": "e2", "source": "a", "target": "b"},
                    {"id": "e3", "source": "b", "target": "a"},
                ],
            }
        )
        paths, _ = enumerate_paths(graph)
        self.assertEqual(len(paths), 1)
        self.assertEqual(paths[0].node_ids, ("s", "a", "b", "a"))
        self.assertTrue(paths[0].cyclic)

    def test_max_paths_truncates(self) -> None:
        paths, truncated = enumerate_paths(diamond(), max_paths=1)
        self.assertEqual(len(paths), 1)
        self.assertTrue(truncated)

    def test_no_start_means_no_paths(self) -> None:
        graph = WorkflowGraph.from_dict(
            {
                "nodes": [{"id": "a", "kind": "level"}],
                "edges": [{"id": "e1", "source": "a", "target": "a"}],
            }
        )
        self.assertEqual(enumerate_paths(graph), ([], False))

    def test_dangling_edge_ends_path_at_unknown_id(self) -> None:
        graph = WorkflowGraph.from_dict(
            {
                "nodes": [{"id": "a", "kind": "level"}],
                "edges": [{"id": "e1", "source": "a", "target": "ghost"}],
            }
        )
        paths, _ = enumerate_paths(graph)
        self.assertEqual(paths[0].node_ids, ("a", "ghost"))


class GraphQueryTests(unittest.TestCase):
    def test_end_nodes(self) -> None:
        self.assertEqual([node.id for node in end_nodes(diamond())], ["end"])

    def test_is_before(self) -> None:
        graph = diamond()
        self.assertTrue(is_before(graph, "start", "end"))
        self.assertTrue(is_before(graph, "check", "right"))
        self.assertFalse(is_before(graph, "left", "right"))
        self.assertFalse(is_before(graph, "end", "start"))

    def test_analyze_report(self) -> None:
        report = analyze(diamond())

        self.assertEqual(report.node_count, 5)
        self.assertEqual(report.edge_count, 5)
        self.assertEqual(report.start_node_id, "start")
        self.assertEqual(report.end_node_ids, ("end",))
        self.assertEqual(len(report.paths), 2)

        connections = {item.node_id: item for item in report.connections}
        self.assertEqual(connections["check"].outgoing, 2)
        self.assertEqual(connections["check"].connected_to, ("Left", "right"))
        self.assertEqual(connections["end"].incoming, 2)

        payload = report.to_dict()
        self.assertEqual(payload["startNodeId"], "start")
        self.assertEqual(payload["paths"][0]["nodeIds"], ["start", "check", "left", "end"])

    def test_template_paths_cover_every_country(self) -> None:
        report = analyze(get_template("country-kyc").graph())
        self.assertEqual(len(report.paths), 4)
        self.assertTrue(all(path.node_ids[-1] == "final" for path in report.paths))


if __name__ == "__main__":
    unittest.main()
