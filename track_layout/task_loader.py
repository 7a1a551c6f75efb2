from datetime import date, datetime, timedelta
import json

import networkx as nx

from track_layout.task_unit import TaskUnit


def _as_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return datetime.fromisoformat(value)


def build_dependency_graph(tasks: list[dict]) -> nx.DiGraph:
    """
    Build a graph with an edge from every predecessor to the task that depends on it.

    Raises:
        KeyError: If a task is missing its 'ID'
        ValueError: If a task lists a predecessor that doesn't exist
    """
    graph = nx.DiGraph()
    for task in tasks:
        if "ID" not in task:
            raise KeyError(f"Task {task.get('Name', task)!r} is missing required field 'ID'")
        graph.add_node(task["ID"], task=task)
    for task in tasks:
        for predecessor in task.get("Predecessors") or []:
            if predecessor not in graph:
                raise ValueError(f"Task {task['ID']} has unknown predecessor {predecessor}")
            graph.add_edge(predecessor, task["ID"])
    return graph


def build_task_units(tasks: list[dict], start_date: date | datetime | None = None,
                     verbose: bool = False) -> dict:
    """
    Turn task dictionaries into TaskUnits.

    Each task needs an 'ID' and may have a 'Name' and a list of 'Predecessors' IDs.
    Dates come either from 'Start' and 'Finish', or from a 'Duration' in days, in which case
    the task is scheduled to start as soon as all its predecessors finish (or at
    ``start_date`` if it has none).

    Units are created in topological order, so every unit is built after all of its
    dependencies.

    Args:
        tasks: List of task dictionaries
        start_date: Project start used for tasks given by 'Duration'
        verbose: Print the processing order

    Returns:
        Dictionary mapping task IDs to their TaskUnits

    Raises:
        KeyError: If a task has neither 'Start'/'Finish' nor 'Duration'
        ValueError: If a 'Duration' task is given without a start_date
    """
    graph = build_dependency_graph(tasks)
    order = list(nx.topological_sort(graph))
    if verbose:
        print(f"Processing order: {order}")

    units = {}
    for task_id in order:
        task = graph.nodes[task_id]["task"]
        parents = [units[pid] for pid in graph.predecessors(task_id)]
        if "Start" in task and "Finish" in task:
            start = _as_datetime(task["Start"])
            finish = _as_datetime(task["Finish"])
        elif "Duration" in task:
            if start_date is None:
                raise ValueError(f"Task {task_id} is given by 'Duration' but no start_date was provided")
            start = max([_as_datetime(start_date), *(parent.anticipated_end_date for parent in parents)])
            finish = start + timedelta(days=task["Duration"])
        else:
            raise KeyError(f"Task {task_id} is missing required fields 'Start' and 'Finish' or 'Duration'")
        units[task_id] = TaskUnit(
            str(task.get("Name", task_id)), start, finish, parent_units=parents, unit_id=f"{task_id}"
        )
    return units


def get_head_units(units) -> list[TaskUnit]:
    """Units nothing else depends on, in the order given."""
    units = list(units)
    depended_on = set()
    for unit in units:
        depended_on.update(unit.get_all_dependencies())
    return [unit for unit in units if unit not in depended_on]


def load_task_units(json_path: str, start_date: date | datetime | None = None, verbose: bool = False) -> dict:
    """Load a JSON list of task dictionaries (see ``build_task_units``)."""
    with open(json_path) as f:
        tasks = json.load(f)
    if isinstance(tasks, dict):
        start_date = start_date or tasks.get("StartDate")
        tasks = tasks["Tasks"]
    return build_task_units(tasks, start_date=start_date, verbose=verbose)
