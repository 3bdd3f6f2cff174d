"""A planar rigid body."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(eq=False)
class RigidBody:
    """Position, orientation, velocities and mass properties of one body.

    ``index`` is the body's slot in a system, or -1 when it belongs to none.
    """

    p_x: float = 0.0
    p_y: float = 0.0
    v_x: float = 0.0
    v_y: float = 0.0
    theta: float = 0.0
    v_theta: float = 0.0
    mass: float = 0.0
    inertia: float = 0.0
    index: int = -1

    def local_to_world(self, x: float, y: float) -> tuple[float, float]:
        cos_t = math.cos(self.theta)
        sin_t = math.sin(self.theta)
        return cos_t * x - sin_t * y + self.p_x, sin_t * x + cos_t * y + self.p_y

    def world_to_local(self, x: float, y: float) -> tuple[float, float]:
        cos_t = math.cos(self.theta)
        sin_t = math.sin(self.theta)
        dx = x - self.p_x
        dy = y - self.p_y
        return cos_t * dx + sin_t * dy, -sin_t * dx + cos_t * dy

    def reset(self) -> None:
        """Zero the kinematic state and mass properties; the index is kept."""
        self.p_x = self.p_y = 0.0
        self.v_x = self.v_y = 0.0
        self.theta = 0.0
        self.v_theta = 0.0
        self.mass = 0.0
        self.inertia = 0.0

    def energy(self) -> float:
        """Kinetic energy, translational plus rotational."""
        speed_2 = self.v_x * self.v_x + self.v_y * self.v_y
        return 0.5 * self.mass * speed_2 + 0.5 * self.inertia * self.v_theta * self.v_theta