from datetime import datetime, timedelta
import uuid

from track_layout.errors import DependencyOrderError
from track_layout.task_unit import TaskUnit


class IsolatedDependencyChain:
    """
    A strictly linear run of task units, ordered from the head (the unit nothing else in the
    chain depends on) down to the last unit. Each unit directly depends on the one after it.
    """

    def __init__(self, units: list[TaskUnit]):
        if not units:
            raise ValueError("Must provide at least 1 TaskUnit")
        self.id = uuid.uuid4().hex
        self._units = tuple(units)
        self._verify_units_are_unbroken_chain()
        self._unit_set = frozenset(self._units)
        self._presence_time = sum((unit.presence_time for unit in self._units), timedelta(0))

    def __repr__(self):
        return f"IsolatedDependencyChain({[unit.name for unit in self._units]!r})"

    def _verify_units_are_unbroken_chain(self):
        for unit, next_unit in zip(self._units, self._units[1:]):
            if next_unit not in unit.direct_dependencies:
                raise DependencyOrderError(
                    f"Unit {next_unit.name!r} is not a direct dependency of {unit.name!r}; "
                    "units must be provided in the order they depend on each other."
                )

    @property
    def units(self) -> tuple[TaskUnit, ...]:
        return self._units

    @property
    def head(self) -> TaskUnit:
        return self._units[0]

    @property
    def last_unit(self) -> TaskUnit:
        return self._units[-1]

    @property
    def end_date(self) -> datetime:
        return self.head.apparent_end_date

    @property
    def anticipated_start_date(self) -> datetime:
        return self.last_unit.anticipated_start_date

    @property
    def time_span(self) -> timedelta:
        return self.end_date - self.anticipated_start_date

    @property
    def presence_time(self) -> timedelta:
        return self._presence_time

    @property
    def visual_density(self) -> float:
        """Presence over time span. Above 1 means the units overlap, below 1 means there are gaps."""
        if not self.time_span:
            # zero-length milestones
            return 1.0
        return self.presence_time / self.time_span

    @property
    def attachment_to_dependencies(self) -> int:
        return self.last_unit.attachment_to_dependencies

    @property
    def units_directly_dependent_on(self) -> frozenset[TaskUnit]:
        return self.last_unit.direct_dependencies

    def contains(self, unit: TaskUnit) -> bool:
        return unit in self._unit_set

    def get_external_dependencies(self) -> set[TaskUnit]:
        external = set()
        for unit in self._units:
            external.update(dep for dep in unit.direct_dependencies if dep not in self._unit_set)
        return external

    def get_number_of_paths_to_dependency(self, other: "IsolatedDependencyChain") -> int:
        return self.last_unit.get_number_of_paths_to_dependency(other.head)

    def is_directly_dependent_on(self, other: "IsolatedDependencyChain") -> bool:
        return other.head in self.last_unit.direct_dependencies
