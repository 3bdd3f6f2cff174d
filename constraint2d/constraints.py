"""Constraints that tie rigid bodies to the world or to each other."""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass, field

from .rigid_body import RigidBody
from .system_state import SystemState

MAX_CONSTRAINT_COUNT = 3
MAX_BODY_COUNT = 2
_DOF = 3 * MAX_BODY_COUNT
_BIG = sys.float_info.max


def _zeros(n: int) -> list[float]:
    return [0.0] * n


def _zero_rows() -> list[list[float]]:
    return [_zeros(_DOF) for _ in range(MAX_CONSTRAINT_COUNT)]


def _open_limits() -> list[list[float]]:
    return [[-_BIG, _BIG] for _ in range(MAX_CONSTRAINT_COUNT)]


@dataclass
class ConstraintOutput:
    """What a constraint reports for each of its scalar constraints.

    ``j`` and ``j_dot`` rows hold three columns (x, y, theta) per body slot.
    ``limits`` holds a ``[min, max]`` pair per scalar constraint.
    """

    c: list[float] = field(default_factory=lambda: _zeros(MAX_CONSTRAINT_COUNT))
    j: list[list[float]] = field(default_factory=_zero_rows)
    j_dot: list[list[float]] = field(default_factory=_zero_rows)
    v_bias: list[float] = field(default_factory=lambda: _zeros(MAX_CONSTRAINT_COUNT))
    limits: list[list[float]] = field(default_factory=_open_limits)
    ks: list[float] = field(default_factory=lambda: _zeros(MAX_CONSTRAINT_COUNT))
    kd: list[float] = field(default_factory=lambda: _zeros(MAX_CONSTRAINT_COUNT))

    def clear_limits(self) -> None:
        """Remove every limit."""
        self.limits = _open_limits()


class Constraint:
    """Base class for a group of scalar constraints on up to two bodies.

    ``f_x``, ``f_y`` and ``f_t`` receive the reaction of each scalar
    constraint on each body slot after a system has been processed.
    """

    def __init__(self, constraint_count: int, body_count: int) -> None:
        if not 0 <= constraint_count <= MAX_CONSTRAINT_COUNT:
            raise ValueError(
                f"constraint count must be between 0 and {MAX_CONSTRAINT_COUNT}"
            )
        if not 0 <= body_count <= MAX_BODY_COUNT:
            raise ValueError(f"body count must be between 0 and {MAX_BODY_COUNT}")
        self._constraint_count = constraint_count
        self.body_count = body_count
        self.index = -1
        self.bodies: list[RigidBody | None] = [None] * body_count
        self.f_x = [[0.0] * body_count for _ in range(constraint_count)]
        self.f_y = [[0.0] * body_count for _ in range(constraint_count)]
        self.f_t = [[0.0] * body_count for _ in range(constraint_count)]

    @property
    def constraint_count(self) -> int:
        """Number of scalar constraints this constraint contributes."""
        return self._constraint_count

    def _body_index(self, slot: int) -> int:
        body = self.bodies[slot]
        if body is None:
            raise ValueError(f"{type(self).__name__} has no body in slot {slot}")
        if body.index < 0:
            raise ValueError(f"body in slot {slot} is not part of a system")
        return body.index

    def calculate(self, state: SystemState) -> ConstraintOutput:
        """Evaluate the constraint against ``state``."""
        return ConstraintOutput()


class _SingleBody(Constraint):
    @property
    def body(self) -> RigidBody | None:
        return self.bodies[0]

    @body.setter
    def body(self, value: RigidBody | None) -> None:
        self.bodies[0] = value


class _TwoBodies(Constraint):
    @property
    def body1(self) -> RigidBody | None:
        return self.bodies[0]

    @body1.setter
    def body1(self, value: RigidBody | None) -> None:
        self.bodies[0] = value

    @property
    def body2(self) -> RigidBody | None:
        return self.bodies[1]

    @body2.setter
    def body2(self, value: RigidBody | None) -> None:
        self.bodies[1] = value


class FixedPositionConstraint(_SingleBody):
    """Pins a point of a body, given in its frame, to a point in the world."""

    def __init__(
        self,
        body: RigidBody | None = None,
        *,
        local_x: float = 0.0,
        local_y: float = 0.0,
        world_x: float = 0.0,
        world_y: float = 0.0,
        ks: float = 10.0,
        kd: float = 1.0,
    ) -> None:
        super().__init__(2, 1)
        self.body = body
        self.local_x = local_x
        self.local_y = local_y
        self.world_x = world_x
        self.world_y = world_y
        self.ks = ks
        self.kd = kd

    def calculate(self, state: SystemState) -> ConstraintOutput:
        b = self._body_index(0)
        q1, q2, q3 = state.p_x[b], state.p_y[b], state.theta[b]
        q3_dot = state.v_theta[b]
        cos_q3, sin_q3 = math.cos(q3), math.sin(q3)
        lx, ly = self.local_x, self.local_y

        out = ConstraintOutput()
        out.c[0] = q1 + cos_q3 * lx - sin_q3 * ly - self.world_x
        out.c[1] = q2 + sin_q3 * lx + cos_q3 * ly - self.world_y

        out.j[0][:3] = [1.0, 0.0, -sin_q3 * lx - cos_q3 * ly]
        out.j[1][:3] = [0.0, 1.0, cos_q3 * lx - sin_q3 * ly]

        out.j_dot[0][:3] = [0.0, 0.0, -cos_q3 * q3_dot * lx + sin_q3 * q3_dot * ly]
        out.j_dot[1][:3] = [0.0, 0.0, -sin_q3 * q3_dot * lx - cos_q3 * q3_dot * ly]

        out.ks[0] = out.ks[1] = self.ks
        out.kd[0] = out.kd[1] = self.kd
        out.clear_limits()
        return out


class LinkConstraint(_TwoBodies):
    """Joins a point of one body to a point of another."""

    def __init__(
        self,
        body1: RigidBody | None = None,
        body2: RigidBody | None = None,
        *,
        local_x_1: float = 0.0,
        local_y_1: float = 0.0,
        local_x_2: float = 0.0,
        local_y_2: float = 0.0,
        ks: float = 10.0,
        kd: float = 1.0,
    ) -> None:
        super().__init__(2, 2)
        self.body1 = body1
        self.body2 = body2
        self.local_x_1 = local_x_1
        self.local_y_1 = local_y_1
        self.local_x_2 = local_x_2
        self.local_y_2 = local_y_2
        self.ks = ks
        self.kd = kd

    def calculate(self, state: SystemState) -> ConstraintOutput:
        a = self._body_index(0)
        b = self._body_index(1)

        q1, q2, q3 = state.p_x[a], state.p_y[a], state.theta[a]
        q4, q5, q6 = state.p_x[b], state.p_y[b], state.theta[b]
        q3_dot = state.v_theta[a]
        q6_dot = state.v_theta[b]

        cos_q3, sin_q3 = math.cos(q3), math.sin(q3)
        cos_q6, sin_q6 = math.cos(q6), math.sin(q6)
        x1, y1 = self.local_x_1, self.local_y_1
        x2, y2 = self.local_x_2, self.local_y_2

        body_x = q1 + cos_q3 * x1 - sin_q3 * y1
        body_y = q2 + sin_q3 * x1 + cos_q3 * y1
        linked_x = q4 + cos_q6 * x2 - sin_q6 * y2
        linked_y = q5 + sin_q6 * x2 + cos_q6 * y2

        out = ConstraintOutput()
        out.c[0] = body_x - linked_x
        out.c[1] = body_y - linked_y

        out.j[0] = [
            1.0, 0.0, -sin_q3 * x1 - cos_q3 * y1,
            -1.0, 0.0, sin_q6 * x2 + cos_q6 * y2,
        ]
        out.j[1] = [
            0.0, 1.0, cos_q3 * x1 - sin_q3 * y1,
            0.0, -1.0, -cos_q6 * x2 + sin_q6 * y2,
        ]

        out.j_dot[0] = [
            0.0, 0.0, -cos_q3 * q3_dot * x1 + sin_q3 * q3_dot * y1,
            0.0, 0.0, cos_q6 * q6_dot * x2 - sin_q6 * q6_dot * y2,
        ]
        out.j_dot[1] = [
            0.0, 0.0, -sin_q3 * q3_dot * x1 - cos_q3 * q3_dot * y1,
            0.0, 0.0, sin_q6 * q6_dot * x2 + cos_q6 * q6_dot * y2,
        ]

        out.ks[0] = out.ks[1] = self.ks
        out.kd[0] = out.kd[1] = self.kd
        out.clear_limits()
        return out


class LineConstraint(_SingleBody):
    """Keeps a point of a body on the line through ``p0`` along ``(dx, dy)``."""

    def __init__(
        self,
        body: RigidBody | None = None,
        *,
        local_x: float = 0.0,
        local_y: float = 0.0,
        p0_x: float = 0.0,
        p0_y: float = 0.0,
        dx: float = 0.0,
        dy: float = 0.0,
        ks: float = 10.0,
        kd: float = 1.0,
    ) -> None:
        super().__init__(1, 1)
        self.body = body
        self.local_x = local_x
        self.local_y = local_y
        self.p0_x = p0_x
        self.p0_y = p0_y
        self.dx = dx
        self.dy = dy
        self.ks = ks
        self.kd = kd

    def calculate(self, state: SystemState) -> ConstraintOutput:
        b = self._body_index(0)
        q1, q2, q3 = state.p_x[b], state.p_y[b], state.theta[b]
        q3_dot = state.v_theta[b]
        cos_q3, sin_q3 = math.cos(q3), math.sin(q3)
        lx, ly = self.local_x, self.local_y

        body_x = q1 + cos_q3 * lx - sin_q3 * ly
        body_y = q2 + sin_q3 * lx + cos_q3 * ly
        perp_x, perp_y = -self.dy, self.dx

        out = ConstraintOutput()
        out.c[0] = (body_x - self.p0_x) * perp_x + (body_y - self.p0_y) * perp_y

        out.j[0][:3] = [
            perp_x,
            perp_y,
            (-sin_q3 * lx - cos_q3 * ly) * perp_x
            + (cos_q3 * lx - sin_q3 * ly) * perp_y,
        ]
        out.j_dot[0][:3] = [
            0.0,
            0.0,
            (-cos_q3 * q3_dot * lx + sin_q3 * q3_dot * ly) * perp_x
            + (-sin_q3 * q3_dot * lx - cos_q3 * q3_dot * ly) * perp_y,
        ]

        out.ks[0] = self.ks
        out.kd[0] = self.kd
        out.clear_limits()
        return out


class ConstantRotationConstraint(_SingleBody):
    """Drives a body's rotation at a set speed within torque limits."""

    def __init__(
        self,
        body: RigidBody | None = None,
        *,
        rotation_speed: float = 0.0,
        ks: float = 10.0,
        kd: float = 1.0,
        min_torque: float = -_BIG,
        max_torque: float = _BIG,
    ) -> None:
        super().__init__(1, 1)
        self.body = body
        self.rotation_speed = rotation_speed
        self.ks = ks
        self.kd = kd
        self.min_torque = min_torque
        self.max_torque = max_torque

    def calculate(self, state: SystemState) -> ConstraintOutput:
        out = ConstraintOutput()
        out.j[0][:3] = [0.0, 0.0, 1.0]
        out.ks[0] = self.ks
        out.kd[0] = self.kd
        out.v_bias[0] = self.rotation_speed
        out.limits[0] = [self.min_torque, self.max_torque]
        return out


class ClutchConstraint(_TwoBodies):
    """Locks the rotation of two bodies together up to a torque limit."""

    def __init__(
        self,
        body1: RigidBody | None = None,
        body2: RigidBody | None = None,
        *,
        ks: float = 10.0,
        kd: float = 1.0,
        min_torque: float = -_BIG,
        max_torque: float = _BIG,
    ) -> None:
        super().__init__(1, 2)
        self.body1 = body1
        self.body2 = body2
        self.ks = ks
        self.kd = kd
        self.min_torque = min_torque
        self.max_torque = max_torque

    def calculate(self, state: SystemState) -> ConstraintOutput:
        out = ConstraintOutput()
        out.j[0] = [0.0, 0.0, -1.0, 0.0, 0.0, 1.0]
        out.ks[0] = self.ks
        out.kd[0] = self.kd
        out.limits[0] = [self.min_torque, self.max_torque]
        return out


class RotationFrictionConstraint(_SingleBody):
    """Resists a body's rotation with a bounded torque."""

    def __init__(
        self,
        body: RigidBody | None = None,
        *,
        ks: float = 10.0,
        kd: float = 1.0,
        min_torque: float = -_BIG,
        max_torque: float = _BIG,
    ) -> None:
        super().__init__(1, 1)
        self.body = body
        self.ks = ks
        self.kd = kd
        self.min_torque = min_torque
        self.max_torque = max_torque

    def calculate(self, state: SystemState) -> ConstraintOutput:
        out = ConstraintOutput()
        out.j[0][:3] = [0.0, 0.0, 1.0]
        out.ks[0] = self.ks
        out.kd[0] = self.kd
        out.limits[0] = [self.min_torque, self.max_torque]
        return out