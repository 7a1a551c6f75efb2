from collections import defaultdict
from datetime import datetime, timedelta
import uuid


class TaskUnit:
    """
    A single task on the diagram.

    The dependencies passed in may contain redundant entries (a parent that another
    parent already depends on). Those are stripped, so ``direct_dependencies`` only holds
    the units this unit truly depends on directly.

    All derived figures (apparent dates, presence, path counts) are computed once here,
    so every parent must be fully constructed before its dependents.
    """

    def __init__(self, name: str, anticipated_start_date: datetime, anticipated_end_date: datetime,
                 parent_units: list["TaskUnit"] | None = None, unit_id: str | None = None):
        if anticipated_end_date < anticipated_start_date:
            raise ValueError(f"Task '{name}' ends before it starts.")
        self.id = unit_id or uuid.uuid4().hex
        self.name = name
        self.anticipated_start_date = anticipated_start_date
        self.anticipated_end_date = anticipated_end_date
        self._provided_direct_dependencies = list(parent_units or [])
        self._direct_dependencies = self._get_true_direct_dependencies()
        self._all_dependencies = self._get_all_dependencies()
        self._apparent_start_date = self._get_apparent_start_date()
        self._apparent_end_date = self._apparent_start_date + self.anticipated_duration
        self._presence_time = self._apparent_end_date - self.anticipated_start_date
        self._attachment_map = self._build_attachment_map()
        self._attachment_to_dependencies = sum(
            dep.attachment_to_dependencies or 1 for dep in self._direct_dependencies
        )

    def __repr__(self):
        return f"TaskUnit({self.name!r})"

    def _get_true_direct_dependencies(self) -> frozenset["TaskUnit"]:
        provided = self._provided_direct_dependencies
        return frozenset(
            dep for dep in provided
            if not any(other is not dep and other.is_dependent_on(dep) for other in provided)
        )

    def _get_all_dependencies(self) -> frozenset["TaskUnit"]:
        deps = set(self._direct_dependencies)
        for dep in self._direct_dependencies:
            deps.update(dep.get_all_dependencies())
        return frozenset(deps)

    def _get_apparent_start_date(self) -> datetime:
        """The unit can't appear to start before its anticipated start or before its dependencies finish."""
        dependency_ends = [dep.apparent_end_date for dep in self._direct_dependencies]
        return max([self.anticipated_start_date, *dependency_ends])

    def _build_attachment_map(self) -> dict[str, int]:
        # Number of distinct paths from this unit to each of its dependencies
        paths = defaultdict(int)
        for dep in self._direct_dependencies:
            paths[dep.id] += 1
            for dep_id, count in dep._attachment_map.items():
                paths[dep_id] += count
        return dict(paths)

    @property
    def anticipated_duration(self) -> timedelta:
        return self.anticipated_end_date - self.anticipated_start_date

    @property
    def apparent_start_date(self) -> datetime:
        return self._apparent_start_date

    @property
    def apparent_end_date(self) -> datetime:
        return self._apparent_end_date

    @property
    def presence_time(self) -> timedelta:
        """Horizontal space the unit takes up, including any delay behind it."""
        return self._presence_time

    @property
    def direct_dependencies(self) -> frozenset["TaskUnit"]:
        return self._direct_dependencies

    @property
    def attachment_to_dependencies(self) -> int:
        """Number of distinct paths from this unit through its dependencies down to every tail."""
        return self._attachment_to_dependencies

    def get_all_dependencies(self) -> frozenset["TaskUnit"]:
        return self._all_dependencies

    def get_number_of_paths_to_dependency(self, unit: "TaskUnit") -> int:
        return self._attachment_map.get(unit.id, 0)

    def is_dependent_on(self, unit: "TaskUnit") -> bool:
        return unit in self._all_dependencies
