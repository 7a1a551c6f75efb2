from contextlib import redirect_stdout
from datetime import date, datetime, timedelta
import io
import unittest

import pandas as pd

from track_layout.cluster import TaskUnitCluster
from track_layout.dependency_chain import IsolatedDependencyChain
from track_layout.errors import NoSuchChainPathError
from track_layout.stress_manager import MoveType
from track_layout.task_loader import build_task_units, get_head_units
from track_layout.task_unit import TaskUnit

START = datetime(2024, 1, 1)

PROJECT_TASKS = [
    {"ID": 1, "Duration": 10},
    {"ID": 2, "Duration": 20, "Predecessors": [1]},
    {"ID": 3, "Duration": 40, "Predecessors": [1]},
    {"ID": 4, "Duration": 30, "Predecessors": [1]},
    {"ID": 5, "Duration": 10, "Predecessors": [2]},
    {"ID": 6, "Duration": 0, "Predecessors": [3]},
    {"ID": 7, "Duration": 10, "Predecessors": [3]},
    {"ID": 8, "Duration": 30, "Predecessors": [5]},
    {"ID": 9, "Duration": 20, "Predecessors": [6, 8]},
    {"ID": 10, "Duration": 25, "Predecessors": [6, 8]},
    {"ID": 11, "Duration": 10, "Predecessors": [4, 7, 9]},
    {"ID": 12, "Duration": 10, "Predecessors": [10]},
    {"ID": 13, "Duration": 0, "Predecessors": [11, 12]},
    {"ID": 14, "Duration": 10, "Predecessors": [11, 12]},
    {"ID": 15, "Duration": 5, "Predecessors": [11, 12]},
    {"ID": 16, "Duration": 5, "Predecessors": [13]},
    {"ID": 17, "Duration": 5, "Predecessors": [14, 16]},
    {"ID": 18, "Duration": 5, "Predecessors": [15, 17]},
]


def at(seconds: int) -> datetime:
    return START + timedelta(seconds=seconds)


class TestDiamondCluster(unittest.TestCase):
    """A feeds B and C, both feed D."""

    def setUp(self) -> None:
        self.unit_a = TaskUnit("A", at(0), at(1))
        self.unit_b = TaskUnit("B", at(1), at(2), [self.unit_a])
        self.unit_c = TaskUnit("C", at(1), at(2), [self.unit_a])
        self.unit_d = TaskUnit("D", at(2), at(3), [self.unit_b, self.unit_c])
        self.cluster = TaskUnitCluster([self.unit_d])

    def test_paths(self) -> None:
        self.assertEqual([path.id for path in self.cluster.paths], ["P001", "P002"])
        self.assertEqual([len(path.chains) for path in self.cluster.paths], [3, 1])

    def test_path_of_chain(self) -> None:
        first = self.cluster.get_path_by_id("P001")
        chain_d = self.cluster.chain_map.get_chain_of_unit(self.unit_d)
        self.assertIs(self.cluster.get_path_of_chain(chain_d), first)
        foreign = IsolatedDependencyChain([TaskUnit("X", at(0), at(1))])
        with self.assertRaises(NoSuchChainPathError):
            self.cluster.get_path_of_chain(foreign)

    def test_connection_table(self) -> None:
        table = self.cluster.get_connection_table()
        self.assertIsInstance(table, pd.DataFrame)
        self.assertEqual(list(table.index), list(table.columns))
        # the lone middle unit touches both the top and the bottom of the other path
        self.assertEqual(table.loc["P001", "P002"], 2)
        self.assertEqual(table.loc["P002", "P001"], 2)
        self.assertEqual(table.loc["P001", "P001"], 0)

    def test_chain_table(self) -> None:
        table = self.cluster.get_chain_table()
        self.assertEqual(len(table), 4)
        self.assertEqual(set(table["Path"]), {"P001", "P002"})
        self.assertEqual(list(table["Strain"]), [2, 2, 2, 2])

    def test_path_table(self) -> None:
        table = self.cluster.get_path_table()
        self.assertEqual(
            list(table.columns),
            ["ID", "Rank", "Track", "Height", "Units", "Start", "End", "Presence", "Density", "Strain"],
        )
        self.assertEqual(list(table["Rank"]), [1, 2])
        self.assertEqual(sorted(table["ID"]), ["P001", "P002"])

    def test_quiet_by_default(self) -> None:
        output = io.StringIO()
        with redirect_stdout(output):
            TaskUnitCluster([self.unit_d])
        self.assertEqual(output.getvalue(), "")


class TestProjectCluster(unittest.TestCase):
    def setUp(self) -> None:
        self.units = build_task_units(PROJECT_TASKS, start_date=date(2020, 1, 6))
        self.cluster = TaskUnitCluster(get_head_units(self.units.values()))

    def test_every_unit_is_in_exactly_one_path(self) -> None:
        path_units = [unit for path in self.cluster.paths for unit in path.units]
        self.assertEqual(len(path_units), len(set(path_units)))
        self.assertEqual(set(path_units), set(self.units.values()))

    def test_every_chain_is_in_exactly_one_path(self) -> None:
        for chain in self.cluster.chain_map.chains:
            with self.subTest(chain=chain.id):
                path = self.cluster.get_path_of_chain(chain)
                self.assertIn(chain, path.chains)
                others = [other for other in self.cluster.paths if other is not path and chain in other.chains]
                self.assertEqual(others, [])

    def test_rankings_cover_every_path(self) -> None:
        ranked = [path.id for path in self.cluster.paths_sorted_by_ranking]
        self.assertEqual(sorted(ranked), sorted(path.id for path in self.cluster.paths))

    def test_tracks_hold_every_path_in_ranking_order(self) -> None:
        track_paths = [path_id for track in self.cluster.tracks for path_id in track.paths]
        self.assertEqual(track_paths, [path.id for path in self.cluster.paths_sorted_by_ranking])
        for track in self.cluster.tracks:
            self.assertGreaterEqual(track.height, 1)

    def test_layout_is_settled(self) -> None:
        self.assertIs(self.cluster.stress_manager.get_next_best_move().type, MoveType.STAY)

    def test_verbose_progress(self) -> None:
        output = io.StringIO()
        with redirect_stdout(output):
            TaskUnitCluster(get_head_units(self.units.values()), verbose=True)
        self.assertIn("Broke 18 units into", output.getvalue())
        self.assertIn("Minimizing track stress...", output.getvalue())


if __name__ == "__main__":
    unittest.main()
