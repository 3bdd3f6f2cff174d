"""Bookkeeping shared by every rigid-body simulation."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

from .constraints import Constraint
from .force_generators import ForceGenerator
from .matrix import Matrix
from .rigid_body import RigidBody
from .system_state import SystemState

PROFILING_SAMPLES = 60 * 10


def _average(samples: Iterable[float]) -> float:
    values = list(samples)
    return sum(values) / len(values) if values else 0.0


class RigidBodySystem:
    """Holds bodies, constraints and force generators and their shared state.

    Subclasses supply ``process``; the base class keeps the members indexed,
    builds the system state and keeps the most recent timing samples.
    """

    def __init__(self) -> None:
        self._rigid_bodies: list[RigidBody] = []
        self._constraints: list[Constraint] = []
        self._force_generators: list[ForceGenerator] = []
        self.state = SystemState()
        self._ode_solve = deque(maxlen=PROFILING_SAMPLES)
        self._constraint_solve = deque(maxlen=PROFILING_SAMPLES)
        self._force_eval = deque(maxlen=PROFILING_SAMPLES)
        self._constraint_eval = deque(maxlen=PROFILING_SAMPLES)

    @property
    def rigid_bodies(self) -> tuple[RigidBody, ...]:
        return tuple(self._rigid_bodies)

    @property
    def constraints(self) -> tuple[Constraint, ...]:
        return tuple(self._constraints)

    @property
    def force_generators(self) -> tuple[ForceGenerator, ...]:
        return tuple(self._force_generators)

    @property
    def rigid_body_count(self) -> int:
        return len(self._rigid_bodies)

    @property
    def constraint_count(self) -> int:
        return len(self._constraints)

    @property
    def force_generator_count(self) -> int:
        return len(self._force_generators)

    def rigid_body(self, i: int) -> RigidBody:
        return self._rigid_bodies[i]

    def reset(self) -> None:
        """Forget every body, constraint and force generator."""
        for item in (*self._rigid_bodies, *self._constraints, *self._force_generators):
            item.index = -1
        self._rigid_bodies.clear()
        self._constraints.clear()
        self._force_generators.clear()

    def process(self, dt: float, steps: int = 1) -> None:
        """Advance the simulation by ``dt``; the base system has no solver and does nothing."""

    @staticmethod
    def _append(items: list, item) -> None:
        items.append(item)
        item.index = len(items) - 1

    @staticmethod
    def _swap_remove(items: list, item, kind: str) -> None:
        i = item.index
        if not (0 <= i < len(items)) or items[i] is not item:
            raise ValueError(f"the {kind} is not part of this system")
        last = items.pop()
        if last is not item:
            items[i] = last
            last.index = i
        item.index = -1

    def add_rigid_body(self, body: RigidBody) -> None:
        self._append(self._rigid_bodies, body)

    def remove_rigid_body(self, body: RigidBody) -> None:
        """Remove a body; the last body takes over its index."""
        self._swap_remove(self._rigid_bodies, body, "rigid body")

    def add_constraint(self, constraint: Constraint) -> None:
        self._append(self._constraints, constraint)

    def remove_constraint(self, constraint: Constraint) -> None:
        self._swap_remove(self._constraints, constraint, "constraint")

    def add_force_generator(self, generator: ForceGenerator) -> None:
        self._append(self._force_generators, generator)

    def remove_force_generator(self, generator: ForceGenerator) -> None:
        self._swap_remove(self._force_generators, generator, "force generator")

    def full_constraint_count(self) -> int:
        """Total number of scalar constraints over all constraints."""
        return sum(c.constraint_count for c in self._constraints)

    def ode_solve_microseconds(self) -> float:
        return _average(self._ode_solve)

    def constraint_solve_microseconds(self) -> float:
        return _average(self._constraint_solve)

    def force_eval_microseconds(self) -> float:
        return _average(self._force_eval)

    def constraint_eval_microseconds(self) -> float:
        return _average(self._constraint_eval)

    def _record_timings(
        self,
        ode_solve: float,
        constraint_solve: float,
        force_eval: float,
        constraint_eval: float,
    ) -> None:
        self._ode_solve.append(ode_solve)
        self._constraint_solve.append(constraint_solve)
        self._force_eval.append(force_eval)
        self._constraint_eval.append(constraint_eval)

    def _populate_system_state(self) -> None:
        state = self.state
        state.resize(len(self._rigid_bodies), self.full_constraint_count())

        for i, body in enumerate(self._rigid_bodies):
            state.a_x[i] = 0.0
            state.a_y[i] = 0.0
            state.a_theta[i] = 0.0

            state.v_x[i] = body.v_x
            state.v_y[i] = body.v_y
            state.v_theta[i] = body.v_theta

            state.p_x[i] = body.p_x
            state.p_y[i] = body.p_y
            state.theta[i] = body.theta

            state.m[i] = body.mass

        offset = 0
        for i, constraint in enumerate(self._constraints):
            state.index_map[i] = offset
            offset += constraint.constraint_count

    def _mass_matrices(self) -> tuple[Matrix, Matrix]:
        """Diagonals of the mass matrix and its inverse, three entries per body."""
        n = len(self._rigid_bodies)
        m = Matrix(1, 3 * n)
        m_inv = Matrix(1, 3 * n)
        for i, body in enumerate(self._rigid_bodies):
            if body.mass == 0 or body.inertia == 0:
                raise ValueError(f"rigid body {i} needs a non-zero mass and inertia")
            for k, value in enumerate((body.mass, body.mass, body.inertia)):
                m.set(0, 3 * i + k, value)
                m_inv.set(0, 3 * i + k, 1.0 / value)
        return m, m_inv

    def _process_forces(self) -> None:
        state = self.state
        for i in range(len(self._rigid_bodies)):
            state.f_x[i] = 0.0
            state.f_y[i] = 0.0
            state.t[i] = 0.0

        for generator in self._force_generators:
            generator.apply(state)