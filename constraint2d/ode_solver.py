"""Integrators that advance a system state through one time step."""

from __future__ import annotations

import enum

from .system_state import SystemState


class OdeSolver:
    """Base integrator; a time step is ``start``, then ``step``/``solve`` until done, then ``end``."""

    def __init__(self) -> None:
        self.dt = 0.0

    def start(self, initial: SystemState, dt: float) -> None:
        self.dt = dt

    def step(self, state: SystemState) -> bool:
        """Prepare the next evaluation; True when it is the last one of the step."""
        return True

    def solve(self, state: SystemState) -> None:
        """Integrate using the accelerations now in ``state``."""

    def end(self) -> None:
        """Finish the current time step."""


class EulerOdeSolver(OdeSolver):
    """Explicit Euler: positions advance with the old velocities."""

    def step(self, state: SystemState) -> bool:
        state.dt = self.dt
        return True

    def solve(self, state: SystemState) -> None:
        dt = self.dt
        state.dt = dt
        for i in range(state.n):
            state.p_x[i] += state.v_x[i] * dt
            state.p_y[i] += state.v_y[i] * dt
            state.theta[i] += state.v_theta[i] * dt

            state.v_x[i] += state.a_x[i] * dt
            state.v_y[i] += state.a_y[i] * dt
            state.v_theta[i] += state.a_theta[i] * dt


class NsvOdeSolver(OdeSolver):
    """Semi-implicit Euler: positions advance with the updated velocities."""

    def step(self, state: SystemState) -> bool:
        state.dt = self.dt
        return True

    def solve(self, state: SystemState) -> None:
        dt = self.dt
        state.dt = dt
        for i in range(state.n):
            state.v_x[i] += state.a_x[i] * dt
            state.v_y[i] += state.a_y[i] * dt
            state.v_theta[i] += state.a_theta[i] * dt

            state.p_x[i] += state.v_x[i] * dt
            state.p_y[i] += state.v_y[i] * dt
            state.theta[i] += state.v_theta[i] * dt


class RkStage(enum.Enum):
    STAGE_1 = enum.auto()
    STAGE_2 = enum.auto()
    STAGE_3 = enum.auto()
    STAGE_4 = enum.auto()
    COMPLETE = enum.auto()
    UNDEFINED = enum.auto()


_NEXT_STAGE = {
    RkStage.STAGE_1: RkStage.STAGE_2,
    RkStage.STAGE_2: RkStage.STAGE_3,
    RkStage.STAGE_3: RkStage.STAGE_4,
    RkStage.STAGE_4: RkStage.COMPLETE,
}

_STAGE_WEIGHT = {
    RkStage.STAGE_1: 1.0,
    RkStage.STAGE_2: 2.0,
    RkStage.STAGE_3: 2.0,
    RkStage.STAGE_4: 1.0,
}


class Rk4OdeSolver(OdeSolver):
    """Classic fourth-order Runge-Kutta spread over four evaluations."""

    def __init__(self) -> None:
        super().__init__()
        self.stage = RkStage.UNDEFINED
        self._next_stage = RkStage.UNDEFINED
        self._initial = SystemState()
        self._accumulator = SystemState()

    def start(self, initial: SystemState, dt: float) -> None:
        super().start(initial, dt)
        self._initial = initial.copy()
        self._accumulator = initial.copy()
        self.stage = RkStage.STAGE_1

    def _advance(self, state: SystemState, h: float) -> None:
        init = self._initial
        for i in range(state.n):
            state.v_theta[i] = init.v_theta[i] + h * state.a_theta[i]
            state.theta[i] = init.theta[i] + h * state.v_theta[i]
            state.v_x[i] = init.v_x[i] + h * state.a_x[i]
            state.v_y[i] = init.v_y[i] + h * state.a_y[i]
            state.p_x[i] = init.p_x[i] + h * state.v_x[i]
            state.p_y[i] = init.p_y[i] + h * state.v_y[i]

    def step(self, state: SystemState) -> bool:
        if self.stage is RkStage.STAGE_1:
            state.dt = 0.0
        elif self.stage in (RkStage.STAGE_2, RkStage.STAGE_3):
            self._advance(state, self.dt / 2.0)
            state.dt = self.dt / 2.0
        elif self.stage is RkStage.STAGE_4:
            self._advance(state, self.dt)
            state.dt = self.dt

        self._next_stage = self.next_stage(self.stage)
        return self._next_stage is RkStage.COMPLETE

    def solve(self, state: SystemState) -> None:
        factor = (self.dt / 6.0) * _STAGE_WEIGHT.get(self.stage, 0.0)
        acc = self._accumulator

        for i in range(state.n):
            acc.v_theta[i] += factor * state.a_theta[i]
            acc.theta[i] += factor * state.v_theta[i]
            acc.v_x[i] += factor * state.a_x[i]
            acc.v_y[i] += factor * state.a_y[i]
            acc.p_x[i] += factor * state.v_x[i]
            acc.p_y[i] += factor * state.v_y[i]

        for i in range(state.n_c):
            acc.r_x[i] += factor * state.r_x[i]
            acc.r_y[i] += factor * state.r_y[i]
            acc.r_t[i] += factor * state.r_t[i]

        if self.stage is RkStage.STAGE_4:
            for name in ("v_theta", "theta", "v_x", "v_y", "p_x", "p_y"):
                getattr(state, name)[: state.n] = getattr(acc, name)[: state.n]
            for name in ("r_x", "r_y", "r_t"):
                getattr(state, name)[: state.n_c] = getattr(acc, name)[: state.n_c]

        self.stage = self._next_stage

    def end(self) -> None:
        super().end()
        self.stage = self._next_stage = RkStage.UNDEFINED

    @staticmethod
    def next_stage(stage: RkStage) -> RkStage:
        return _NEXT_STAGE.get(stage, RkStage.UNDEFINED)