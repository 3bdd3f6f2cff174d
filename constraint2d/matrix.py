"""Dense matrices of floats addressed by (column, row)."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Callable


class Matrix:
    """A dense row-major matrix; vectors are single-column matrices."""

    __slots__ = ("_width", "_rows")

    def __init__(self, width: int = 0, height: int = 0, value: float = 0.0) -> None:
        if width < 0 or height < 0:
            raise ValueError("matrix dimensions must be non-negative")
        self._width = width
        self._rows: list[list[float]] = [[float(value)] * width for _ in range(height)]

    @classmethod
    def from_rows(cls, rows: Iterable[Sequence[float]]) -> Matrix:
        """Build a matrix from a sequence of equally long rows."""
        data = [[float(v) for v in row] for row in rows]
        width = len(data[0]) if data else 0
        if any(len(row) != width for row in data):
            raise ValueError("all rows must have the same length")
        return cls._wrap(width, data)

    @classmethod
    def _wrap(cls, width: int, rows: list[list[float]]) -> Matrix:
        matrix = cls.__new__(cls)
        matrix._width = width
        matrix._rows = rows
        return matrix

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return len(self._rows)

    def __repr__(self) -> str:
        return f"Matrix({self._width}x{self.height}, {self._rows!r})"

    def _check_index(self, column: int, row: int) -> None:
        if not (0 <= column < self._width and 0 <= row < len(self._rows)):
            raise IndexError(
                f"({column}, {row}) is outside a {self._width}x{self.height} matrix"
            )

    def _check_same_shape(self, b: Matrix) -> None:
        if self._width != b._width or self.height != b.height:
            raise ValueError(
                f"shape mismatch: {self._width}x{self.height} and {b._width}x{b.height}"
            )

    def get(self, column: int, row: int) -> float:
        self._check_index(column, row)
        return self._rows[row][column]

    def set(self, column: int, row: int, value: float) -> None:
        self._check_index(column, row)
        self._rows[row][column] = float(value)

    def add_at(self, column: int, row: int, value: float) -> None:
        """Add ``value`` to the element at (column, row)."""
        self._check_index(column, row)
        self._rows[row][column] += value

    def resize(self, width: int, height: int) -> None:
        """Change the shape in place, keeping overlapping values and zero-filling."""
        if width < 0 or height < 0:
            raise ValueError("matrix dimensions must be non-negative")
        rows = []
        for row in self._rows[:height]:
            kept = row[:width]
            kept.extend([0.0] * (width - len(kept)))
            rows.append(kept)
        rows.extend([0.0] * width for _ in range(height - len(rows)))
        self._width = width
        self._rows = rows

    def fill(self, value: float) -> None:
        for row in self._rows:
            row[:] = [float(value)] * self._width

    def copy(self) -> Matrix:
        return Matrix._wrap(self._width, [list(row) for row in self._rows])

    def _map(self, fn: Callable[[float], float]) -> Matrix:
        return Matrix._wrap(self._width, [[fn(v) for v in row] for row in self._rows])

    def _zip_map(self, b: Matrix, fn: Callable[[float, float], float]) -> Matrix:
        self._check_same_shape(b)
        return Matrix._wrap(
            self._width,
            [[fn(x, y) for x, y in zip(ra, rb)] for ra, rb in zip(self._rows, b._rows)],
        )

    def multiply(self, b: Matrix) -> Matrix:
        """Return the matrix product ``self * b``."""
        if self._width != b.height:
            raise ValueError(
                f"cannot multiply {self._width}x{self.height} by {b._width}x{b.height}"
            )
        columns = b.transpose()._rows
        return Matrix._wrap(
            b._width,
            [[sum(x * y for x, y in zip(row, col)) for col in columns] for row in self._rows],
        )

    def component_multiply(self, b: Matrix) -> Matrix:
        """Return the element-wise product."""
        return self._zip_map(b, lambda x, y: x * y)

    def transpose_multiply(self, b: Matrix) -> Matrix:
        """Return ``transpose(self) * b``."""
        if self.height != b.height:
            raise ValueError("heights must match for a transposed product")
        return self.transpose().multiply(b)

    def left_scale(self, scale: Matrix) -> Matrix:
        """Scale each row by the matching entry of a column vector."""
        if scale._width != 1 or scale.height != self.height:
            raise ValueError("left scale needs a column vector as tall as the matrix")
        return Matrix._wrap(
            self._width,
            [[s * v for v in row] for (s,), row in zip(scale._rows, self._rows)],
        )

    def right_scale(self, scale: Matrix) -> Matrix:
        """Scale each column by the matching entry of a column vector."""
        if scale._width != 1 or scale.height != self._width:
            raise ValueError("right scale needs a column vector as tall as the matrix is wide")
        factors = [s for (s,) in scale._rows]
        return Matrix._wrap(
            self._width,
            [[f * v for f, v in zip(factors, row)] for row in self._rows],
        )

    def scale(self, s: float) -> Matrix:
        return self._map(lambda v: s * v)

    def subtract(self, b: Matrix) -> Matrix:
        return self._zip_map(b, lambda x, y: x - y)

    def add(self, b: Matrix) -> Matrix:
        return self._zip_map(b, lambda x, y: x + y)

    def negate(self) -> Matrix:
        return self._map(lambda v: -v)

    def equals(self, b: Matrix, err: float = 1e-6) -> bool:
        """True when shapes match and every element differs by at most ``err``."""
        if self._width != b._width or self.height != b.height:
            return False
        return all(
            abs(x - y) <= err
            for ra, rb in zip(self._rows, b._rows)
            for x, y in zip(ra, rb)
        )

    def _require_vector(self) -> None:
        if self._width != 1:
            raise ValueError("operation needs a column vector")

    def vector_magnitude_squared(self) -> float:
        self._require_vector()
        return sum(v * v for (v,) in self._rows)

    def dot(self, b: Matrix) -> float:
        self._require_vector()
        b._require_vector()
        if self.height != b.height:
            raise ValueError("vectors must have the same length")
        return sum(x * y for (x,), (y,) in zip(self._rows, b._rows))

    def madd(self, b: Matrix, s: float) -> None:
        """In place: ``self += b * s``."""
        self._check_same_shape(b)
        for row, other in zip(self._rows, b._rows):
            row[:] = [x + y * s for x, y in zip(row, other)]

    def pmadd(self, b: Matrix, s: float) -> None:
        """In place: ``self = s * self + b``."""
        self._check_same_shape(b)
        for row, other in zip(self._rows, b._rows):
            row[:] = [s * x + y for x, y in zip(row, other)]

    def transpose(self) -> Matrix:
        if not self._rows:
            return Matrix(0, self._width)
        return Matrix._wrap(len(self._rows), [list(col) for col in zip(*self._rows)])

    def swap_rows(self, a: int, b: int) -> None:
        height = len(self._rows)
        if not (0 <= a < height and 0 <= b < height):
            raise IndexError(f"row index outside a matrix of height {height}")
        self._rows[a], self._rows[b] = self._rows[b], self._rows[a]