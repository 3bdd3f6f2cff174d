"""Solvers for the linear system ``(J W J^T) x = right`` of constraint impulses."""

from __future__ import annotations

import math
from collections.abc import Sequence

from .matrix import Matrix
from .sparse_matrix import SparseMatrix


class SolverError(ArithmeticError):
    """Raised when a linear system cannot be solved."""


def _column(values: Sequence[float]) -> Matrix:
    result = Matrix(1, len(values))
    for row, value in enumerate(values):
        result.set(0, row, value)
    return result


def _start_vector(n: int, previous: Matrix | None) -> Matrix:
    """Zero vector of length ``n``, or a copy of ``previous`` when it fits."""
    if previous is not None and previous.height == n:
        return previous.copy()
    return Matrix(1, n)


def _require_column(right: Matrix) -> None:
    if right.width != 1:
        raise ValueError("the right-hand side must be a column vector")


class SleSolver:
    """Base class for solvers of ``(J W J^T) x = right``.

    ``W`` is the diagonal of a weight matrix given as a column vector.
    """

    def __init__(self, supports_limits: bool = False) -> None:
        self._supports_limits = supports_limits

    @property
    def supports_limits(self) -> bool:
        """True when ``solve_with_limits`` is available."""
        return self._supports_limits

    def solve(
        self,
        j: SparseMatrix,
        w: Matrix,
        right: Matrix,
        previous: Matrix | None = None,
    ) -> Matrix:
        """Return the solution vector; ``previous`` is an optional starting guess."""
        raise SolverError(f"{type(self).__name__} cannot solve linear systems")

    def solve_with_limits(
        self,
        j: SparseMatrix,
        w: Matrix,
        right: Matrix,
        limits: Matrix,
        previous: Matrix | None = None,
    ) -> Matrix:
        """Solve with each unknown clamped to ``[limits(0, i), limits(1, i)]``."""
        raise SolverError(f"{type(self).__name__} does not support limits")


class ConjugateGradientSleSolver(SleSolver):
    """Conjugate gradient iteration that never forms ``J W J^T`` explicitly."""

    def __init__(
        self,
        max_iterations: int = 1000,
        max_error: float = 1e-2,
        min_error: float = 1e-3,
    ) -> None:
        super().__init__(False)
        self.max_iterations = max_iterations
        self.max_error = max_error
        self.min_error = min_error

    @staticmethod
    def _apply(j: SparseMatrix, w: Matrix, x: Matrix) -> Matrix:
        """Return ``J W J^T x``."""
        return j.multiply(w.component_multiply(j.transpose_multiply_vector(x)))

    def _sufficiently_small(self, residual: Matrix, target: Matrix) -> bool:
        return all(
            abs(residual.get(0, i))
            <= max(abs(self.max_error * target.get(0, i)), self.min_error)
            for i in range(residual.height)
        )

    def solve(
        self,
        j: SparseMatrix,
        w: Matrix,
        right: Matrix,
        previous: Matrix | None = None,
    ) -> Matrix:
        _require_column(right)
        x = _start_vector(right.height, previous)

        r = right.subtract(self._apply(j, w, x))
        if self._sufficiently_small(r, right):
            return x

        p = r.copy()
        for _ in range(self.max_iterations):
            ap = self._apply(j, w, p)

            rk_mag = r.vector_magnitude_squared()
            denominator = p.dot(ap)
            if denominator == 0:
                raise SolverError("conjugate gradient search direction degenerated")
            alpha = rk_mag / denominator
            x.madd(p, alpha)
            r.madd(ap, -alpha)

            if self._sufficiently_small(r, right):
                return x

            beta = r.vector_magnitude_squared() / rk_mag
            p.pmadd(r, beta)

        raise SolverError(
            f"conjugate gradient did not converge in {self.max_iterations} iterations"
        )


class GaussSeidelSleSolver(SleSolver):
    """Gauss-Seidel iteration; supports per-unknown limits."""

    def __init__(self, max_iterations: int = 128, min_delta: float = 1e-1) -> None:
        super().__init__(True)
        self.max_iterations = max_iterations
        self.min_delta = min_delta

    @staticmethod
    def _system(j: SparseMatrix, w: Matrix) -> Matrix:
        return j.right_scale(w).multiply_transpose(j)

    @staticmethod
    def _relaxed(left: Matrix, right: Matrix, x: Matrix, i: int) -> float:
        n = x.height
        s = sum(left.get(col, i) * x.get(0, col) for col in range(n) if col != i)
        diagonal = left.get(i, i)
        if diagonal == 0:
            raise SolverError(f"zero on the diagonal at row {i}")
        return (right.get(0, i) - s) / diagonal

    def _sweep(self, left: Matrix, right: Matrix, x: Matrix) -> float:
        max_difference = 0.0
        for i in range(x.height):
            value = self._relaxed(left, right, x, i)
            min_k = max(1e-3, x.get(0, i))
            max_difference = max(max_difference, (abs(value) - min_k) / min_k)
            x.set(0, i, value)
        return max_difference

    def _sweep_limited(
        self, left: Matrix, right: Matrix, limits: Matrix, x: Matrix
    ) -> float:
        max_difference = 0.0
        for i in range(x.height):
            value = self._relaxed(left, right, x, i)
            clamped = max(limits.get(0, i), min(limits.get(1, i), value))
            old = x.get(0, i)
            min_k = max(1e-3, abs(old))
            max_difference = max(max_difference, abs(clamped - old) / min_k)
            x.set(0, i, clamped)
        return max_difference

    def solve(
        self,
        j: SparseMatrix,
        w: Matrix,
        right: Matrix,
        previous: Matrix | None = None,
    ) -> Matrix:
        _require_column(right)
        x = _start_vector(right.height, previous)
        left = self._system(j, w)

        for _ in range(self.max_iterations):
            if self._sweep(left, right, x) < self.min_delta:
                return x

        raise SolverError(
            f"Gauss-Seidel did not converge in {self.max_iterations} iterations"
        )

    def solve_with_limits(
        self,
        j: SparseMatrix,
        w: Matrix,
        right: Matrix,
        limits: Matrix,
        previous: Matrix | None = None,
    ) -> Matrix:
        _require_column(right)
        if limits.width != 2 or limits.height != right.height:
            raise ValueError("limits need two columns and one row per unknown")
        x = _start_vector(right.height, previous)
        left = self._system(j, w)

        for _ in range(self.max_iterations):
            if self._sweep_limited(left, right, limits, x) < self.min_delta:
                return x

        raise SolverError(
            f"Gauss-Seidel did not converge in {self.max_iterations} iterations"
        )


class GaussianEliminationSleSolver(SleSolver):
    """Direct solve by Gaussian elimination with partial pivoting."""

    def __init__(self) -> None:
        super().__init__(False)

    def solve(
        self,
        j: SparseMatrix,
        w: Matrix,
        right: Matrix,
        previous: Matrix | None = None,
    ) -> Matrix:
        _require_column(right)
        system = j.right_scale(w).multiply_transpose(j)
        size = system.width
        m = system.height
        n = size + 1

        if right.height != size:
            raise ValueError("right-hand side does not match the system size")
        if m == 0:
            return Matrix(1, 0)

        a = [
            [system.get(col, row) for col in range(size)] + [right.get(0, row)]
            for row in range(m)
        ]

        h = k = 0
        while h < m and k < n:
            i_max = max(range(h, m), key=lambda i: abs(a[i][k]))
            if a[i_max][k] == 0:
                k += 1
                continue

            a[h], a[i_max] = a[i_max], a[h]
            pivot_row = a[h]
            for row in a[h + 1:]:
                f = row[k] / pivot_row[k]
                row[k] = 0.0
                for col in range(k + 1, n):
                    row[col] -= pivot_row[col] * f
            h += 1
            k += 1

        if a[m - 1][n - 2] == 0:
            raise SolverError("the system is singular")

        x = [0.0] * m
        x[m - 1] = a[m - 1][n - 1] / a[m - 1][n - 2]
        for i in range(m - 2, -1, -1):
            row = a[i]
            total = sum(row[col] * x[col] for col in range(m - 1, i, -1))
            x[i] = (row[n - 1] - total) / row[i] if row[i] != 0 else 0.0

        if not all(math.isfinite(v) for v in x):
            raise SolverError("the solution is not finite")

        return _column(x)