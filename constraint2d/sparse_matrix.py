"""Block-sparse matrices whose rows hold a few fixed-width blocks."""

from __future__ import annotations

from collections.abc import Iterator

from .matrix import Matrix


class SparseMatrix:
    """A matrix where each row holds up to ``entries`` blocks of ``stride`` columns.

    A block placed at index ``b`` covers columns ``b * stride`` to
    ``b * stride + stride - 1``. Unplaced blocks are empty.
    """

    __slots__ = ("_width", "_height", "_stride", "_entries", "_blocks", "_values")

    def __init__(
        self, width: int = 0, height: int = 0, stride: int = 3, entries: int = 2
    ) -> None:
        if width < 0 or height < 0:
            raise ValueError("matrix dimensions must be non-negative")
        if stride < 1 or entries < 1:
            raise ValueError("stride and entries must be positive")
        self._width = width
        self._height = height
        self._stride = stride
        self._entries = entries
        self._blocks: list[list[int | None]] = [[None] * entries for _ in range(height)]
        self._values: list[list[float]] = [[0.0] * (entries * stride) for _ in range(height)]

    @classmethod
    def from_dense(cls, full: Matrix, stride: int = 3) -> SparseMatrix:
        """Pack the non-zero blocks of each row of a dense matrix, two per row."""
        if stride < 1 or full.width % stride:
            raise ValueError("matrix width must be a multiple of the stride")
        target = cls(full.width, full.height, stride, 2)
        for row in range(full.height):
            entry = 0
            for block in range(full.width // stride):
                values = [full.get(block * stride + k, row) for k in range(stride)]
                if not any(v != 0 for v in values):
                    continue
                if entry >= target._entries:
                    raise ValueError(f"row {row} has more non-zero blocks than entries")
                target.set_block(row, entry, block)
                for k, value in enumerate(values):
                    target.set(row, entry, k, value)
                entry += 1
        return target

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def stride(self) -> int:
        return self._stride

    @property
    def entries(self) -> int:
        return self._entries

    def __repr__(self) -> str:
        return (
            f"SparseMatrix({self._width}x{self._height}, stride={self._stride}, "
            f"entries={self._entries})"
        )

    def _check_row_entry(self, row: int, entry: int) -> None:
        if not 0 <= row < self._height:
            raise IndexError(f"row {row} outside a matrix of height {self._height}")
        if not 0 <= entry < self._entries:
            raise IndexError(f"entry {entry} outside {self._entries} entries")

    def _offset(self, row: int, entry: int, slice_: int) -> int:
        self._check_row_entry(row, entry)
        if not 0 <= slice_ < self._stride:
            raise IndexError(f"slice {slice_} outside a stride of {self._stride}")
        return entry * self._stride + slice_

    def set_block(self, row: int, entry: int, index: int) -> None:
        """Place block ``entry`` of ``row`` at block column ``index``."""
        self._check_row_entry(row, entry)
        if index < 0 or (index + 1) * self._stride > self._width:
            raise IndexError(f"block {index} does not fit in width {self._width}")
        self._blocks[row][entry] = index

    def block(self, row: int, entry: int) -> int | None:
        """Return the block column of an entry, or None when it is empty."""
        self._check_row_entry(row, entry)
        return self._blocks[row][entry]

    def set(self, row: int, entry: int, slice_: int, value: float) -> None:
        self._values[row][self._offset(row, entry, slice_)] = float(value)

    def get(self, row: int, entry: int, slice_: int) -> float:
        return self._values[row][self._offset(row, entry, slice_)]

    def set_empty(self, row: int, entry: int) -> None:
        """Clear an entry and zero its values."""
        self._check_row_entry(row, entry)
        self._blocks[row][entry] = None
        start = entry * self._stride
        self._values[row][start:start + self._stride] = [0.0] * self._stride

    def _row_blocks(self, row: int) -> list[tuple[int, list[float]]]:
        s = self._stride
        return [
            (block, self._values[row][entry * s:(entry + 1) * s])
            for entry, block in enumerate(self._blocks[row])
            if block is not None
        ]

    def _occupied(self) -> Iterator[tuple[int, int, int, list[float]]]:
        s = self._stride
        for row, blocks in enumerate(self._blocks):
            for entry, block in enumerate(blocks):
                if block is not None:
                    yield row, entry, block, self._values[row][entry * s:(entry + 1) * s]

    def expand(self) -> Matrix:
        """Return the equivalent dense matrix."""
        result = Matrix(self._width, self._height)
        for row, _, block, values in self._occupied():
            for k, value in enumerate(values):
                result.set(block * self._stride + k, row, value)
        return result

    def expand_transposed(self) -> Matrix:
        """Return the transpose of the equivalent dense matrix."""
        result = Matrix(self._height, self._width)
        for row, _, block, values in self._occupied():
            for k, value in enumerate(values):
                result.set(row, block * self._stride + k, value)
        return result

    def multiply_transpose(self, b_t: SparseMatrix) -> Matrix:
        """Return ``self * transpose(b_t)`` as a dense matrix."""
        if self._width != b_t._width or self._stride != b_t._stride:
            raise ValueError("operands must share width and stride")
        left = [self._row_blocks(i) for i in range(self._height)]
        right = [b_t._row_blocks(j) for j in range(b_t._height)]
        result = Matrix(b_t._height, self._height)
        for i, left_blocks in enumerate(left):
            for j, right_blocks in enumerate(right):
                total = 0.0
                for block0, values0 in left_blocks:
                    for block1, values1 in right_blocks:
                        if block0 == block1:
                            total += sum(x * y for x, y in zip(values0, values1))
                result.set(j, i, total)
        return result

    def transpose_multiply_vector(self, b: Matrix) -> Matrix:
        """Return ``transpose(self) * b`` for a column vector ``b``."""
        if b.width != 1 or b.height != self._height:
            raise ValueError("needs a column vector as tall as the matrix")
        result = Matrix(1, self._width)
        for row, _, block, values in self._occupied():
            x = b.get(0, row)
            for k, value in enumerate(values):
                result.add_at(0, block * self._stride + k, value * x)
        return result

    def multiply(self, b: Matrix) -> Matrix:
        """Return ``self * b`` as a dense matrix."""
        if b.height != self._width:
            raise ValueError(
                f"cannot multiply {self._width}x{self._height} by {b.width}x{b.height}"
            )
        s = self._stride
        result = Matrix(b.width, self._height)
        for i in range(self._height):
            blocks = self._row_blocks(i)
            for j in range(b.width):
                total = 0.0
                for block, values in blocks:
                    for k, value in enumerate(values):
                        total += value * b.get(j, block * s + k)
                result.set(j, i, total)
        return result

    def _scaled(self, factor) -> SparseMatrix:
        target = SparseMatrix(self._width, self._height, self._stride, self._entries)
        for row, entry, block, values in self._occupied():
            target.set_block(row, entry, block)
            for k, value in enumerate(values):
                target.set(row, entry, k, factor(row, block, k) * value)
        return target

    def right_scale(self, scale: Matrix) -> SparseMatrix:
        """Scale each column by the matching entry of a column vector."""
        if scale.width != 1 or scale.height != self._width:
            raise ValueError("right scale needs a column vector as tall as the matrix is wide")
        s = self._stride
        return self._scaled(lambda row, block, k: scale.get(0, block * s + k))

    def left_scale(self, scale: Matrix) -> SparseMatrix:
        """Scale each row by the matching entry of a column vector."""
        if scale.height != self._height or (scale.width != 1 and self._height != 0):
            raise ValueError("left scale needs a column vector as tall as the matrix")
        return self._scaled(lambda row, block, k: scale.get(0, row))