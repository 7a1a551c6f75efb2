from datetime import datetime, timedelta
import unittest

import matplotlib

matplotlib.use("Agg")

import matplotlib.patches as patches
import matplotlib.pyplot as plt

from track_layout.cluster import TaskUnitCluster
from track_layout.plotting import draw_track_layout, get_unit_rows
from track_layout.task_unit import TaskUnit

START = datetime(2024, 1, 1)


def at(days: int) -> datetime:
    return START + timedelta(days=days)


class TestDrawTrackLayout(unittest.TestCase):
    def setUp(self) -> None:
        # C starts before B is done, so it shows a delay trail
        self.unit_a = TaskUnit("A", at(0), at(2))
        self.unit_b = TaskUnit("B", at(2), at(4), [self.unit_a])
        self.unit_c = TaskUnit("C", at(3), at(5), [self.unit_a, self.unit_b])
        self.unit_d = TaskUnit("D", at(2), at(3), [self.unit_a])
        self.units = [self.unit_a, self.unit_b, self.unit_c, self.unit_d]
        self.cluster = TaskUnitCluster([self.unit_c, self.unit_d])

    def tearDown(self) -> None:
        plt.close("all")

    def test_every_unit_gets_a_row(self) -> None:
        rows = get_unit_rows(self.cluster)
        total_height = sum(track.height for track in self.cluster.tracks)
        self.assertEqual(set(rows), set(self.units))
        for row in rows.values():
            self.assertTrue(0 <= row < total_height)

    def test_returns_figure_and_axes(self) -> None:
        fig, ax = draw_track_layout(self.cluster, title="Example")
        self.assertIs(ax.figure, fig)
        self.assertEqual(ax.get_title(), "Example")

    def test_draws_a_bar_per_unit_and_a_trail_per_delay(self) -> None:
        _, ax = draw_track_layout(self.cluster)
        rectangles = [patch for patch in ax.patches if isinstance(patch, patches.Rectangle)]
        delayed = [unit for unit in self.units if unit.apparent_start_date > unit.anticipated_start_date]
        self.assertEqual(len(rectangles), len(self.units) + len(delayed))
        # B-A, C-B and D-A connectors (C's link to A is redundant), plus the track separators
        self.assertEqual(len(ax.lines), 3 + len(self.cluster.tracks) - 1)

    def test_draws_on_given_axes(self) -> None:
        fig, ax = plt.subplots()
        returned_fig, returned_ax = draw_track_layout(self.cluster, ax=ax)
        self.assertIs(returned_fig, fig)
        self.assertIs(returned_ax, ax)


if __name__ == "__main__":
    unittest.main()
