#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Standalone script to lay out an example project with TaskUnitCluster and plot its tracks.
"""
from datetime import date
import matplotlib.dates as mdates
import matplotlib.pyplot as plt
from track_layout.cluster import TaskUnitCluster
from track_layout.plotting import draw_track_layout, get_unit_rows
from track_layout.task_loader import build_task_units, get_head_units

tasks = [
    {"ID": 1, "Name": "1", "Duration": 10, "Predecessors": []},
    {"ID": 2, "Name": "2", "Duration": 20, "Predecessors": [1]},
    {"ID": 3, "Name": "3", "Duration": 40, "Predecessors": [1]},
    {"ID": 4, "Name": "4", "Duration": 30, "Predecessors": [1]},
    {"ID": 5, "Name": "5", "Duration": 10, "Predecessors": [2]},
    {"ID": 6, "Name": "6", "Duration": 0, "Predecessors": [3]},
    {"ID": 7, "Name": "7", "Duration": 10, "Predecessors": [3]},
    {"ID": 8, "Name": "8", "Duration": 30, "Predecessors": [5]},
    {"ID": 9, "Name": "9", "Duration": 20, "Predecessors": [6, 8]},
    {"ID": 10, "Name": "10", "Duration": 25, "Predecessors": [6, 8]},
    {"ID": 11, "Name": "11", "Duration": 10, "Predecessors": [4, 7, 9]},
    {"ID": 12, "Name": "12", "Duration": 10, "Predecessors": [10]},
    {"ID": 13, "Name": "13", "Duration": 0, "Predecessors": [11, 12]},
    {"ID": 14, "Name": "14", "Duration": 10, "Predecessors": [11, 12]},
    {"ID": 15, "Name": "15", "Duration": 5, "Predecessors": [11, 12]},
    {"ID": 16, "Name": "16", "Duration": 5, "Predecessors": [13]},
    {"ID": 17, "Name": "17", "Duration": 5, "Predecessors": [14, 16]},
    {"ID": 18, "Name": "18", "Duration": 5, "Predecessors": [15, 17]},
]

start_date = date(2020, 1, 6)
print("Project starts on:", start_date.strftime("%A, %B %d, %Y"))

units = build_task_units(tasks, start_date=start_date, verbose=True)
cluster = TaskUnitCluster(get_head_units(units.values()), verbose=True)

print(cluster.get_path_table().to_string(index=False))
print(cluster.get_connection_table())

fig, ax = draw_track_layout(cluster, title="Track layout for the iDesign Lab Example Project")

unit_rows = get_unit_rows(cluster)


def hit_test(event):
    if event.inaxes != ax or event.xdata is None or event.ydata is None:
        return None
    for unit, row in unit_rows.items():
        start = mdates.date2num(unit.anticipated_start_date)
        end = mdates.date2num(unit.apparent_end_date)
        if start <= event.xdata <= end and abs(event.ydata - row) < 0.4:
            return unit
    return None


def on_press(event):
    unit = hit_test(event)
    if unit is None:
        return
    path = next(path for path in cluster.paths if unit in path.units)
    print(f"Task {unit.name}: {unit.apparent_start_date:%Y-%m-%d} to {unit.apparent_end_date:%Y-%m-%d}, "
          f"path {path.id}, depends on {sorted(dep.name for dep in unit.direct_dependencies)}")


cid_press = fig.canvas.mpl_connect('button_press_event', on_press)

print('Click a task to print its details.')

plt.show()
