"""Flat per-body and per-constraint arrays describing a simulation step."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

_BODY_FIELDS = (
    "a_theta",
    "v_theta",
    "theta",
    "a_x",
    "a_y",
    "v_x",
    "v_y",
    "p_x",
    "p_y",
    "f_x",
    "f_y",
    "t",
    "m",
)
_REACTION_FIELDS = ("r_x", "r_y", "r_t")


def _fit(values: list, length: int, fill) -> list:
    """Return ``values`` cut or padded with ``fill`` to ``length`` items."""
    kept = list(values[:length])
    kept.extend([fill] * (length - len(kept)))
    return kept


@dataclass
class SystemState:
    """Positions, velocities, accelerations, forces and reactions of all bodies.

    Body arrays hold one item per body; ``index_map`` holds one item per
    scalar constraint and the reaction arrays hold two (one per body slot).
    """

    index_map: list[int] = field(default_factory=list)

    a_theta: list[float] = field(default_factory=list)
    v_theta: list[float] = field(default_factory=list)
    theta: list[float] = field(default_factory=list)

    a_x: list[float] = field(default_factory=list)
    a_y: list[float] = field(default_factory=list)
    v_x: list[float] = field(default_factory=list)
    v_y: list[float] = field(default_factory=list)
    p_x: list[float] = field(default_factory=list)
    p_y: list[float] = field(default_factory=list)

    f_x: list[float] = field(default_factory=list)
    f_y: list[float] = field(default_factory=list)
    t: list[float] = field(default_factory=list)

    r_x: list[float] = field(default_factory=list)
    r_y: list[float] = field(default_factory=list)
    r_t: list[float] = field(default_factory=list)

    m: list[float] = field(default_factory=list)

    dt: float = 0.0

    @property
    def n(self) -> int:
        """Number of bodies."""
        return len(self.p_x)

    @property
    def n_c(self) -> int:
        """Number of scalar constraints."""
        return len(self.index_map)

    def resize(self, body_count: int, constraint_count: int) -> None:
        """Size the arrays for the given counts, keeping existing values."""
        if body_count < 0 or constraint_count < 0:
            raise ValueError("counts must be non-negative")
        for name in _BODY_FIELDS:
            setattr(self, name, _fit(getattr(self, name), body_count, 0.0))
        self.index_map = _fit(self.index_map, constraint_count, 0)
        for name in _REACTION_FIELDS:
            setattr(self, name, _fit(getattr(self, name), 2 * constraint_count, 0.0))

    def copy_from(self, other: SystemState) -> None:
        """Take over every array of ``other``."""
        for name in (*_BODY_FIELDS, *_REACTION_FIELDS, "index_map"):
            setattr(self, name, list(getattr(other, name)))

    def copy(self) -> SystemState:
        """Return an independent copy of this state."""
        result = SystemState(dt=self.dt)
        result.copy_from(self)
        return result

    def local_to_world(self, x: float, y: float, body: int) -> tuple[float, float]:
        """Map a point in the body's frame to world coordinates."""
        angle = self.theta[body]
        cos_t = math.cos(angle)
        sin_t = math.sin(angle)
        return (
            cos_t * x - sin_t * y + self.p_x[body],
            sin_t * x + cos_t * y + self.p_y[body],
        )

    def velocity_at_point(self, x: float, y: float, body: int) -> tuple[float, float]:
        """World velocity of a point given in the body's frame."""
        w_x, w_y = self.local_to_world(x, y, body)
        omega = self.v_theta[body]
        return (
            self.v_x[body] - omega * (w_y - self.p_y[body]),
            self.v_y[body] + omega * (w_x - self.p_x[body]),
        )

    def apply_force(
        self, x_l: float, y_l: float, f_x: float, f_y: float, body: int
    ) -> None:
        """Add a world-space force acting at a point in the body's frame."""
        w_x, w_y = self.local_to_world(x_l, y_l, body)
        self.f_x[body] += f_x
        self.f_y[body] += f_y
        self.t[body] += (w_y - self.p_y[body]) * -f_x + (w_x - self.p_x[body]) * f_y