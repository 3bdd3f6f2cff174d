"""Generators that add external forces and torques to a system state."""

from __future__ import annotations

import abc
import math

from .rigid_body import RigidBody
from .system_state import SystemState


class ForceGenerator(abc.ABC):
    """Something that adds forces to the bodies of a state.

    ``index`` is the generator's slot in a system, or -1 when it belongs to none.
    """

    def __init__(self) -> None:
        self.index = -1

    @abc.abstractmethod
    def apply(self, state: SystemState) -> None:
        """Add this generator's forces to ``state``."""


def _system_index(body: RigidBody | None, role: str) -> int:
    if body is None:
        raise ValueError(f"no {role} body is set")
    if body.index < 0:
        raise ValueError(f"the {role} body is not part of a system")
    return body.index


class GravityForceGenerator(ForceGenerator):
    """Pulls every body down the y axis with acceleration ``g``."""

    def __init__(self, g: float = 9.81) -> None:
        super().__init__()
        self.g = g

    def apply(self, state: SystemState) -> None:
        for i in range(state.n):
            state.f_y[i] += -state.m[i] * self.g


class StaticForceGenerator(ForceGenerator):
    """Applies a constant world-space force at a point in a body's frame."""

    def __init__(
        self,
        body: RigidBody | None = None,
        *,
        f_x: float = 0.0,
        f_y: float = 0.0,
        p_x: float = 0.0,
        p_y: float = 0.0,
    ) -> None:
        super().__init__()
        self.body = body
        self.f_x = f_x
        self.f_y = f_y
        self.p_x = p_x
        self.p_y = p_y

    def apply(self, state: SystemState) -> None:
        index = _system_index(self.body, "target")
        state.apply_force(self.p_x, self.p_y, self.f_x, self.f_y, index)


class Spring(ForceGenerator):
    """A damped spring between a point on each of two bodies.

    A body that is not part of the system acts as a fixed anchor: its point
    is taken from the body itself and it receives no force.
    """

    def __init__(
        self,
        body1: RigidBody | None = None,
        body2: RigidBody | None = None,
        *,
        rest_length: float = 1.0,
        ks: float = 0.0,
        kd: float = 0.0,
        p1_x: float = 0.0,
        p1_y: float = 0.0,
        p2_x: float = 0.0,
        p2_y: float = 0.0,
    ) -> None:
        super().__init__()
        self.body1 = body1
        self.body2 = body2
        self.rest_length = rest_length
        self.ks = ks
        self.kd = kd
        self.p1_x = p1_x
        self.p1_y = p1_y
        self.p2_x = p2_x
        self.p2_y = p2_y

    @staticmethod
    def _end(
        state: SystemState, body: RigidBody, x: float, y: float
    ) -> tuple[float, float, float, float]:
        if body.index != -1:
            w_x, w_y = state.local_to_world(x, y, body.index)
            v_x, v_y = state.velocity_at_point(x, y, body.index)
            return w_x, w_y, v_x, v_y
        w_x, w_y = body.local_to_world(x, y)
        return w_x, w_y, 0.0, 0.0

    def apply(self, state: SystemState) -> None:
        if self.body1 is None or self.body2 is None:
            return

        x1, y1, v_x1, v_y1 = self._end(state, self.body1, self.p1_x, self.p1_y)
        x2, y2, v_x2, v_y2 = self._end(state, self.body2, self.p2_x, self.p2_y)

        dx = x2 - x1
        dy = y2 - y1
        length = math.sqrt(dx * dx + dy * dy)
        if length != 0:
            dx /= length
            dy /= length
        else:
            dx, dy = 1.0, 0.0

        v = dx * (v_x2 - v_x1) + dy * (v_y2 - v_y1)
        x = length - self.rest_length
        magnitude = x * self.ks + v * self.kd

        if self.body1.index != -1:
            state.apply_force(
                self.p1_x, self.p1_y, dx * magnitude, dy * magnitude, self.body1.index
            )
        if self.body2.index != -1:
            state.apply_force(
                self.p2_x, self.p2_y, -dx * magnitude, -dy * magnitude, self.body2.index
            )

    def ends(self) -> tuple[float, float, float, float] | None:
        """World positions ``(x1, y1, x2, y2)`` of both ends, or None without bodies."""
        if self.body1 is None or self.body2 is None:
            return None
        x1, y1 = self.body1.local_to_world(self.p1_x, self.p1_y)
        x2, y2 = self.body2.local_to_world(self.p2_x, self.p2_y)
        return x1, y1, x2, y2

    def energy(self) -> float:
        """Potential energy stored in the spring."""
        ends = self.ends()
        if ends is None:
            return 0.0
        x1, y1, x2, y2 = ends
        length = math.hypot(x2 - x1, y2 - y1)
        stretch = length - self.rest_length
        return 0.5 * self.ks * stretch * stretch


class ConstantSpeedMotor(ForceGenerator):
    """Drives ``body1`` to spin at ``speed`` relative to ``body0``.

    ``body0`` may lie outside the system, in which case it is treated as
    stationary and receives no reaction torque.
    """

    def __init__(
        self,
        body0: RigidBody | None = None,
        body1: RigidBody | None = None,
        *,
        ks: float = 1.0,
        kd: float = 1.0,
        max_torque: float = 500.0,
        speed: float = 1.0,
    ) -> None:
        super().__init__()
        self.body0 = body0
        self.body1 = body1
        self.ks = ks
        self.kd = kd
        self.max_torque = max_torque
        self.speed = speed

    def apply(self, state: SystemState) -> None:
        if self.body0 is None:
            raise ValueError("no reference body is set")
        driven = _system_index(self.body1, "driven")
        reference = self.body0.index

        if reference == -1:
            v1 = a1 = 0.0
        else:
            v1 = state.v_theta[reference]
            a1 = state.a_theta[reference]

        rel_v = state.v_theta[driven] - v1
        rel_a = state.a_theta[driven] - a1
        delta = self.speed - rel_v

        total = delta * self.ks - rel_a * self.kd
        limited = min(self.max_torque, max(-self.max_torque, total))

        if reference != -1:
            state.t[reference] -= limited
        state.t[driven] += limited