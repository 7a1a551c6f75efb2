from track_layout.matrix import Matrix
from track_layout.task_unit import TaskUnit


class UnitPathMatrix:
    """
    Matrix view of the direct dependency edges between a closed set of units.

    Rows and columns are indexed by the units sorted by ID. In the single step matrix,
    ``M[i][j] == 1`` when unit i directly depends on unit j. Adding its transpose gives
    the symmetric matrix of direct connections in either direction.
    """

    def __init__(self, units: list[TaskUnit]):
        if not units:
            raise ValueError("Must provide at least 1 TaskUnit")
        self._units_sorted_by_id = sorted(set(units), key=lambda unit: unit.id)
        self._index_of_unit = {unit: index for index, unit in enumerate(self._units_sorted_by_id)}
        self._single_step_matrix = self._build_single_step_matrix()
        self._symmetric_single_step_matrix = self._single_step_matrix.add(self._single_step_matrix.transpose())

    @property
    def task_unit_interconnections(self) -> Matrix:
        return self._symmetric_single_step_matrix

    @property
    def single_step_matrix(self) -> Matrix:
        return self._single_step_matrix

    @property
    def units(self) -> list[TaskUnit]:
        return list(self._units_sorted_by_id)

    def get_matrix_index_for_unit(self, unit: TaskUnit) -> int:
        try:
            return self._index_of_unit[unit]
        except KeyError:
            raise KeyError(f"Unit {unit.name!r} ({unit.id}) is not part of this matrix") from None

    def get_unit_for_matrix_index(self, index: int) -> TaskUnit:
        if not 0 <= index < len(self._units_sorted_by_id):
            raise IndexError(f"No unit exists for matrix index {index}")
        return self._units_sorted_by_id[index]

    def _build_single_step_matrix(self) -> Matrix:
        size = len(self._units_sorted_by_id)
        rows = []
        for unit in self._units_sorted_by_id:
            row = [0] * size
            for dep in unit.direct_dependencies:
                # dependencies outside the closure are ignored
                if dep in self._index_of_unit:
                    row[self._index_of_unit[dep]] = 1
            rows.append(row)
        return Matrix(rows)

    def _build_subset_single_step_matrix(self, sorted_units: list[TaskUnit]) -> Matrix:
        indexes = [self.get_matrix_index_for_unit(unit) for unit in sorted_units]
        return Matrix([
            [self._single_step_matrix.get_element_at_position(row, column) for column in indexes]
            for row in indexes
        ])

    def get_head_units_without_isolated_unit(self, isolated_units) -> list[TaskUnit]:
        """
        Find the units nothing depends on once the isolated units are taken out of consideration.

        Args:
            isolated_units: Units to leave out, e.g. units already claimed by a path

        Returns:
            The remaining head units, sorted by ID
        """
        isolated = set(isolated_units)
        allowed_units = [unit for unit in self._units_sorted_by_id if unit not in isolated]
        if not allowed_units:
            return []
        subset = self._build_subset_single_step_matrix(allowed_units)
        # A unit is a head if no remaining unit depends on it, i.e. its column is all zeros
        return [
            unit for index, unit in enumerate(allowed_units)
            if not any(subset.get_column(index))
        ]

    def get_units_connected_to_unit(self, unit: TaskUnit) -> set[TaskUnit]:
        row = self.task_unit_interconnections.get_row(self.get_matrix_index_for_unit(unit))
        return {self.get_unit_for_matrix_index(index) for index, walks in enumerate(row) if walks}
