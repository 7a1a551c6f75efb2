from contextlib import redirect_stdout
from datetime import date, datetime
import io
import json
import os
import tempfile
import unittest

from track_layout.task_loader import (
    build_dependency_graph,
    build_task_units,
    get_head_units,
    load_task_units,
)


class TestDependencyGraph(unittest.TestCase):
    def test_edges_point_from_predecessor(self) -> None:
        graph = build_dependency_graph([
            {"ID": 1, "Predecessors": []},
            {"ID": 2, "Predecessors": [1]},
        ])
        self.assertEqual(list(graph.edges), [(1, 2)])

    def test_missing_id(self) -> None:
        with self.assertRaises(KeyError):
            build_dependency_graph([{"Name": "no id"}])

    def test_unknown_predecessor(self) -> None:
        with self.assertRaises(ValueError):
            build_dependency_graph([{"ID": 1, "Predecessors": [7]}])


class TestBuildTaskUnits(unittest.TestCase):
    def test_start_and_finish(self) -> None:
        units = build_task_units([
            {"ID": "b", "Name": "Build", "Start": "2024-01-03", "Finish": "2024-01-05", "Predecessors": ["a"]},
            {"ID": "a", "Name": "Design", "Start": "2024-01-01", "Finish": "2024-01-04"},
        ])
        self.assertEqual(units["a"].anticipated_start_date, datetime(2024, 1, 1))
        self.assertEqual(units["b"].name, "Build")
        self.assertEqual(units["b"].id, "b")
        self.assertEqual(units["b"].direct_dependencies, frozenset({units["a"]}))
        # Design runs late, so Build is held up
        self.assertEqual(units["b"].apparent_start_date, datetime(2024, 1, 4))

    def test_durations_are_scheduled_forward(self) -> None:
        units = build_task_units([
            {"ID": 1, "Duration": 10},
            {"ID": 2, "Duration": 5},
            {"ID": 3, "Duration": 2, "Predecessors": [1, 2]},
        ], start_date=date(2020, 1, 6))
        self.assertEqual(units[1].anticipated_start_date, datetime(2020, 1, 6))
        self.assertEqual(units[2].anticipated_end_date, datetime(2020, 1, 11))
        self.assertEqual(units[3].anticipated_start_date, datetime(2020, 1, 16))
        self.assertEqual(units[3].anticipated_end_date, datetime(2020, 1, 18))

    def test_name_defaults_to_id(self) -> None:
        units = build_task_units([{"ID": 4, "Duration": 1}], start_date=date(2020, 1, 6))
        self.assertEqual(units[4].name, "4")

    def test_duration_without_start_date(self) -> None:
        with self.assertRaises(ValueError):
            build_task_units([{"ID": 1, "Duration": 3}])

    def test_missing_dates(self) -> None:
        with self.assertRaises(KeyError):
            build_task_units([{"ID": 1, "Start": "2024-01-01"}])

    def test_verbose_prints_processing_order(self) -> None:
        output = io.StringIO()
        with redirect_stdout(output):
            build_task_units([
                {"ID": 2, "Duration": 1, "Predecessors": [1]},
                {"ID": 1, "Duration": 1},
            ], start_date=date(2020, 1, 6), verbose=True)
        self.assertIn("Processing order: [1, 2]", output.getvalue())


class TestHeadUnits(unittest.TestCase):
    def test_only_units_nothing_depends_on(self) -> None:
        units = build_task_units([
            {"ID": 1, "Duration": 1},
            {"ID": 2, "Duration": 1, "Predecessors": [1]},
            {"ID": 3, "Duration": 1, "Predecessors": [1]},
            {"ID": 4, "Duration": 1, "Predecessors": [2]},
        ], start_date=date(2020, 1, 6))
        self.assertEqual(set(get_head_units(units.values())), {units[3], units[4]})


class TestLoadTaskUnits(unittest.TestCase):
    def setUp(self) -> None:
        handle, self.json_path = tempfile.mkstemp(suffix=".json")
        os.close(handle)

    def tearDown(self) -> None:
        os.remove(self.json_path)

    def write(self, content) -> None:
        with open(self.json_path, "w") as f:
            json.dump(content, f)

    def test_list_of_tasks(self) -> None:
        self.write([
            {"ID": "a", "Start": "2024-01-01", "Finish": "2024-01-02"},
            {"ID": "b", "Start": "2024-01-02", "Finish": "2024-01-03", "Predecessors": ["a"]},
        ])
        units = load_task_units(self.json_path)
        self.assertEqual(sorted(units), ["a", "b"])

    def test_project_with_start_date(self) -> None:
        self.write({"StartDate": "2020-01-06", "Tasks": [{"ID": 1, "Duration": 3}]})
        units = load_task_units(self.json_path)
        self.assertEqual(units[1].anticipated_end_date, datetime(2020, 1, 9))

    def test_explicit_start_date_wins(self) -> None:
        self.write({"StartDate": "2020-01-06", "Tasks": [{"ID": 1, "Duration": 3}]})
        units = load_task_units(self.json_path, start_date=date(2021, 3, 1))
        self.assertEqual(units[1].anticipated_start_date, datetime(2021, 3, 1))


if __name__ == "__main__":
    unittest.main()
