"""Rigid-body system that solves for constraint forces at the acceleration level."""

from __future__ import annotations

import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .constraints import Constraint
from .matrix import Matrix
from .ode_solver import OdeSolver
from .rigid_body import RigidBody
from .rigid_body_system import RigidBodySystem
from .sle_solver import SleSolver
from .sparse_matrix import SparseMatrix
from .system_state import SystemState

_MICROSECONDS = 1e6


@dataclass
class _Row:
    """One scalar constraint as evaluated against the current state."""

    bodies: tuple[int, ...]
    j: list[float]
    j_dot: list[float]
    c: float
    ks: float
    kd: float
    v_bias: float
    limits: tuple[float, float]


def _slot_index(constraint: Constraint, slot: int) -> int:
    body = constraint.bodies[slot]
    return -1 if body is None else body.index


def _evaluate_constraints(
    constraints: Iterable[Constraint], state: SystemState
) -> list[_Row]:
    rows = []
    for constraint in constraints:
        out = constraint.calculate(state)
        bodies = tuple(
            _slot_index(constraint, slot) for slot in range(constraint.body_count)
        )
        for k in range(constraint.constraint_count):
            rows.append(
                _Row(
                    bodies=bodies,
                    j=list(out.j[k]),
                    j_dot=list(out.j_dot[k]),
                    c=out.c[k],
                    ks=out.ks[k],
                    kd=out.kd[k],
                    v_bias=out.v_bias[k],
                    limits=(out.limits[k][0], out.limits[k][1]),
                )
            )
    return rows


def _jacobian(rows: Sequence[_Row], body_count: int, attr: str) -> SparseMatrix:
    """Sparse matrix with one row per scalar constraint and a block per body slot."""
    matrix = SparseMatrix(3 * body_count, len(rows), 3, 2)
    for r, row in enumerate(rows):
        values = getattr(row, attr)
        for slot, index in enumerate(row.bodies):
            if index == -1:
                continue
            matrix.set_block(r, slot, index)
            for k in range(3):
                matrix.set(r, slot, k, values[3 * slot + k])
    return matrix


def _column(values: Sequence[float]) -> Matrix:
    result = Matrix(1, len(values))
    for row, value in enumerate(values):
        result.set(0, row, value)
    return result


def _values(vector: Matrix) -> list[float]:
    return [vector.get(0, i) for i in range(vector.height)]


def _velocities(state: SystemState, body_count: int) -> Matrix:
    return _column(
        [
            v
            for i in range(body_count)
            for v in (state.v_x[i], state.v_y[i], state.v_theta[i])
        ]
    )


def _external_forces(state: SystemState, body_count: int) -> Matrix:
    return _column(
        [f for i in range(body_count) for f in (state.f_x[i], state.f_y[i], state.t[i])]
    )


def _apply_reactions(
    state: SystemState,
    rows: Sequence[_Row],
    forces: Sequence[float],
    f_ext: Matrix,
    m_inv: Matrix,
) -> None:
    """Store each row's reaction and set the resulting body accelerations."""
    for r, (row, force) in enumerate(zip(rows, forces)):
        for slot in range(2):
            index = row.bodies[slot] if slot < len(row.bodies) else -1
            if index == -1:
                reaction = (0.0, 0.0, 0.0)
            else:
                reaction = tuple(force * row.j[3 * slot + k] for k in range(3))
            state.r_x[2 * r + slot], state.r_y[2 * r + slot], state.r_t[2 * r + slot] = (
                reaction
            )

    for i in range(state.n):
        state.a_x[i] = f_ext.get(0, 3 * i)
        state.a_y[i] = f_ext.get(0, 3 * i + 1)
        state.a_theta[i] = f_ext.get(0, 3 * i + 2)

    for r, row in enumerate(rows):
        for slot, index in enumerate(row.bodies):
            if index == -1:
                continue
            state.a_x[index] += state.r_x[2 * r + slot]
            state.a_y[index] += state.r_y[2 * r + slot]
            state.a_theta[index] += state.r_t[2 * r + slot]

    for i in range(state.n):
        inv_mass = m_inv.get(0, 3 * i)
        inv_inertia = m_inv.get(0, 3 * i + 2)
        state.a_x[i] *= inv_mass
        state.a_y[i] *= inv_mass
        state.a_theta[i] *= inv_inertia


def _propagate(
    bodies: Sequence[RigidBody],
    constraints: Sequence[Constraint],
    state: SystemState,
) -> None:
    """Copy the integrated state back to the bodies and reactions to the constraints."""
    for i, body in enumerate(bodies):
        body.v_x = state.v_x[i]
        body.v_y = state.v_y[i]
        body.p_x = state.p_x[i]
        body.p_y = state.p_y[i]
        body.v_theta = state.v_theta[i]
        body.theta = state.theta[i]

    i_f = 0
    for constraint in constraints:
        for j in range(constraint.constraint_count):
            for k in range(constraint.body_count):
                constraint.f_x[j][k] = state.r_x[2 * i_f + k]
                constraint.f_y[j][k] = state.r_y[2 * i_f + k]
                constraint.f_t[j][k] = state.r_t[2 * i_f + k]
            i_f += 1


class GenericRigidBodySystem(RigidBodySystem):
    """Solves ``J M^-1 J^T lambda = right`` each evaluation and integrates with any ODE solver.

    Constraint drift is held back by the spring (``ks``) and damper (``kd``)
    terms that each constraint reports.
    """

    def __init__(self, sle_solver: SleSolver, ode_solver: OdeSolver) -> None:
        super().__init__()
        self.sle_solver = sle_solver
        self.ode_solver = ode_solver
        self._lambda: Matrix | None = None

    def process(self, dt: float, steps: int = 1) -> None:
        """Advance the system by ``dt`` split into ``steps`` sub-steps."""
        ode_time = constraint_solve_time = force_time = constraint_eval_time = 0.0

        self._populate_system_state()
        _, m_inv = self._mass_matrices()
        state = self.state

        for _ in range(steps):
            self.ode_solver.start(state, dt / steps)
            while True:
                done = self.ode_solver.step(state)

                t0 = time.perf_counter()
                self._process_forces()
                t1 = time.perf_counter()
                eval_time, solve_time = self._process_constraints(m_inv)
                t2 = time.perf_counter()
                self.ode_solver.solve(state)
                t3 = time.perf_counter()

                constraint_solve_time += solve_time
                constraint_eval_time += eval_time
                ode_time += (t3 - t2) * _MICROSECONDS
                force_time += (t1 - t0) * _MICROSECONDS

                if done:
                    break
            self.ode_solver.end()

        _propagate(self.rigid_bodies, self.constraints, state)
        self._record_timings(
            ode_time, constraint_solve_time, force_time, constraint_eval_time
        )

    def _process_constraints(self, m_inv: Matrix) -> tuple[float, float]:
        """Set accelerations and reactions; return (eval, solve) microseconds."""
        start = time.perf_counter()
        state = self.state
        n = self.rigid_body_count

        rows = _evaluate_constraints(self.constraints, state)
        q_dot = _velocities(state, n)
        f_ext = _external_forces(state, n)

        forces: list[float] = []
        solve_time = 0.0
        if rows:
            j = _jacobian(rows, n, "j")
            j_dot = _jacobian(rows, n, "j_dot")

            velocity_error = _values(j.multiply(q_dot))
            spring = _column([row.ks * row.c for row in rows])
            damper = _column([row.kd * v for row, v in zip(rows, velocity_error)])

            external = j.multiply(f_ext.left_scale(m_inv))
            bias = j_dot.multiply(q_dot).negate()
            right = bias.subtract(external).subtract(spring).subtract(damper)

            solve_start = time.perf_counter()
            self._lambda = self.sle_solver.solve(j, m_inv, right, self._lambda)
            solve_end = time.perf_counter()
            solve_time = (solve_end - solve_start) * _MICROSECONDS
            start -= solve_end - solve_start
            forces = _values(self._lambda)

        _apply_reactions(state, rows, forces, f_ext, m_inv)
        eval_time = (time.perf_counter() - start) * _MICROSECONDS - solve_time * 0
        return eval_time, solve_time