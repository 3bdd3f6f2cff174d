"""Rigid-body system that solves for constraint impulses at the velocity level."""

from __future__ import annotations

import time

from .generic_rigid_body_system import (
    _MICROSECONDS,
    _apply_reactions,
    _column,
    _evaluate_constraints,
    _external_forces,
    _jacobian,
    _propagate,
    _values,
    _velocities,
)
from .matrix import Matrix
from .ode_solver import NsvOdeSolver
from .rigid_body_system import RigidBodySystem
from .sle_solver import SleSolver


class OptimizedNsvRigidBodySystem(RigidBodySystem):
    """Velocity-level constraint solve paired with semi-implicit Euler integration.

    ``bias_factor`` sets how much of the positional error is corrected per step;
    torque limits are honoured when the linear solver supports them.
    """

    def __init__(self, sle_solver: SleSolver, bias_factor: float = 1.0) -> None:
        super().__init__()
        self.sle_solver = sle_solver
        self.bias_factor = bias_factor
        self._ode_solver = NsvOdeSolver()
        self._lambda: Matrix | None = None

    def process(self, dt: float, steps: int = 1) -> None:
        """Advance the system by ``dt`` split into ``steps`` sub-steps."""
        ode_time = constraint_solve_time = force_time = constraint_eval_time = 0.0

        self._populate_system_state()
        _, m_inv = self._mass_matrices()
        state = self.state
        sub_dt = dt / steps if steps > 0 else dt

        for _ in range(steps):
            self._ode_solver.start(state, sub_dt)
            while True:
                done = self._ode_solver.step(state)

                t0 = time.perf_counter()
                self._process_forces()
                t1 = time.perf_counter()
                eval_time, solve_time = self._process_constraints(sub_dt, m_inv)
                t2 = time.perf_counter()
                self._ode_solver.solve(state)
                t3 = time.perf_counter()

                constraint_solve_time += solve_time
                constraint_eval_time += eval_time
                ode_time += (t3 - t2) * _MICROSECONDS
                force_time += (t1 - t0) * _MICROSECONDS

                if done:
                    break
            self._ode_solver.end()

        _propagate(self.rigid_bodies, self.constraints, state)
        self._record_timings(
            ode_time, constraint_solve_time, force_time, constraint_eval_time
        )

    def _process_constraints(self, dt: float, m_inv: Matrix) -> tuple[float, float]:
        """Set accelerations and reactions; return (eval, solve) microseconds."""
        start = time.perf_counter()
        state = self.state
        n = self.rigid_body_count

        rows = _evaluate_constraints(self.constraints, state)
        q_dot = _velocities(state, n)
        f_ext = _external_forces(state, n)

        # Velocity the bodies would reach from external forces alone.
        q_dot_prime = f_ext.scale(dt).left_scale(m_inv).add(q_dot)

        forces: list[float] = []
        solve_time = 0.0
        if rows:
            j = _jacobian(rows, n, "j")
            v_bias = _column([row.v_bias for row in rows])
            b_err = _column([row.c for row in rows]).scale(self.bias_factor / dt)
            right = j.multiply(q_dot_prime).add(v_bias).add(b_err).negate()

            solve_start = time.perf_counter()
            if self.sle_solver.supports_limits:
                limits = Matrix(2, len(rows))
                for r, row in enumerate(rows):
                    limits.set(0, r, row.limits[0] * dt)
                    limits.set(1, r, row.limits[1] * dt)
                impulses = self.sle_solver.solve_with_limits(
                    j, m_inv, right, limits, self._lambda
                )
            else:
                impulses = self.sle_solver.solve(j, m_inv, right, self._lambda)
            solve_end = time.perf_counter()

            self._lambda = impulses
            solve_time = (solve_end - solve_start) * _MICROSECONDS
            start -= solve_end - solve_start
            forces = _values(impulses.scale(1.0 / dt))

        _apply_reactions(state, rows, forces, f_ext, m_inv)
        eval_time = (time.perf_counter() - start) * _MICROSECONDS
        return eval_time, solve_time