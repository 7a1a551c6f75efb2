import numpy as np


class Matrix:
    """
    Immutable rectangular matrix of numbers.

    Every operation returns a new Matrix. The underlying numpy array is flagged
    read-only so a Matrix cannot be changed after construction.
    """

    def __init__(self, data):
        rows = [list(row) for row in data]
        if not rows or not rows[0]:
            raise ValueError("Matrix must have at least one row and one column")
        column_count = len(rows[0])
        for index, row in enumerate(rows):
            if len(row) != column_count:
                raise ValueError(
                    f"Row {index} has {len(row)} columns, expected {column_count}"
                )
        self._array = np.array(rows)
        self._array.setflags(write=False)
        self._number_of_rows, self._number_of_columns = self._array.shape

    @classmethod
    def _from_array(cls, array: np.ndarray) -> "Matrix":
        return cls(array.tolist())

    @property
    def number_of_rows(self) -> int:
        return self._number_of_rows

    @property
    def number_of_columns(self) -> int:
        return self._number_of_columns

    @property
    def data(self) -> list[list]:
        return self._array.tolist()

    def to_numpy(self) -> np.ndarray:
        return self._array.copy()

    def _check_row_index(self, index: int):
        if not 0 <= index < self.number_of_rows:
            raise IndexError(f"Row {index} is outside of 0..{self.number_of_rows - 1}")

    def _check_column_index(self, index: int):
        if not 0 <= index < self.number_of_columns:
            raise IndexError(f"Column {index} is outside of 0..{self.number_of_columns - 1}")

    def get_row(self, index: int) -> list:
        self._check_row_index(index)
        return self._array[index].tolist()

    def get_column(self, index: int) -> list:
        self._check_column_index(index)
        return self._array[:, index].tolist()

    def get_element_at_position(self, row_index: int, column_index: int):
        self._check_row_index(row_index)
        self._check_column_index(column_index)
        return self._array[row_index, column_index].item()

    def _check_same_shape(self, other: "Matrix"):
        if (self.number_of_rows, self.number_of_columns) != (other.number_of_rows, other.number_of_columns):
            raise ValueError(
                f"Cannot combine a {self.number_of_rows}x{self.number_of_columns} matrix "
                f"with a {other.number_of_rows}x{other.number_of_columns} matrix"
            )

    def add(self, other: "Matrix") -> "Matrix":
        self._check_same_shape(other)
        return Matrix._from_array(self._array + other._array)

    def subtract(self, other: "Matrix") -> "Matrix":
        self._check_same_shape(other)
        return Matrix._from_array(self._array - other._array)

    def multiply(self, other: "Matrix") -> "Matrix":
        """
        Standard matrix product.

        Raises:
            ValueError: If this matrix's column count differs from the other's row count
        """
        if self.number_of_columns != other.number_of_rows:
            raise ValueError(
                f"Cannot multiply a matrix with {self.number_of_columns} columns "
                f"by a matrix with {other.number_of_rows} rows"
            )
        return Matrix._from_array(self._array @ other._array)

    def transpose(self) -> "Matrix":
        return Matrix._from_array(self._array.T)

    def __eq__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return self._array.shape == other._array.shape and bool(np.array_equal(self._array, other._array))

    def __repr__(self):
        return f"Matrix({self.data!r})"
