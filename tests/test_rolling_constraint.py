import random

import pytest

from constraint2d.rigid_body import RigidBody
from constraint2d.rolling_constraint import RollingConstraint
from constraint2d.system_state import SystemState


def _make_constraint():
    base = RigidBody(index=0)
    rolling = RigidBody(index=1)
    constraint = RollingConstraint(
        base, rolling, dx=1.0, dy=0.0, local_x=0.0, local_y=0.1, radius=1.0
    )
    return constraint


def _configurations(count=10, seed=0):
    rng = random.Random(seed)
    return [
        tuple((rng.random() - 0.5) * 100 for _ in range(6)) for _ in range(count)
    ]


def _verify(state, constraint):
    n = constraint.body_count
    m = constraint.constraint_count
    d = 0.1
    dt = 0.001

    q = (state.p_x, state.p_y, state.theta)
    q_dot = (state.v_x, state.v_y, state.v_theta)

    for i in range(m):
        for j in range(n * 3):
            coord = q[j % 3]
            rate = q_dot[j % 3]
            body = j // 3

            original = coord[body]
            rate[body] = d
            o0 = constraint.calculate(state)
            coord[body] += d * dt
            o1 = constraint.calculate(state)
            coord[body] = original
            rate[body] = 0.0

            dc = (o1.c[i] - o0.c[i]) / (d * dt)
            assert dc == pytest.approx((o0.j[i][j] + o1.j[i][j]) / 2, abs=1e-4)

            for k in range(n * 3):
                for row in range(m):
                    j_dot = (o1.j[row][k] - o0.j[row][k]) / dt
                    assert j_dot == pytest.approx(
                        (o0.j_dot[row][k] + o1.j_dot[row][k]) / 2, abs=1e-4
                    )


@pytest.mark.parametrize("config", _configurations())
def test_jacobian_matches_finite_differences(config):
    constraint = _make_constraint()
    state = SystemState()
    state.resize(2, 2)

    state.p_x[0], state.p_x[1], state.p_y[0], state.p_y[1], state.theta[0], state.theta[1] = config
    for name in ("v_x", "v_y", "v_theta"):
        getattr(state, name)[:] = [0.0, 0.0]

    _verify(state, constraint)


def test_resting_configuration_satisfies_constraint():
    constraint = _make_constraint()
    state = SystemState()
    state.resize(2, 2)
    state.p_y[1] = 1.1

    out = constraint.calculate(state)

    assert out.c[0] == pytest.approx(0.0)
    assert out.c[1] == pytest.approx(0.0)


def test_rotation_column_and_gains():
    constraint = _make_constraint()
    constraint.ks = 7.0
    constraint.kd = 3.0
    state = SystemState()
    state.resize(2, 2)

    out = constraint.calculate(state)

    assert out.j[0][5] == -1.0
    assert out.j[1][5] == 0.0
    assert out.ks[:2] == [0.0, 7.0]
    assert out.kd[:2] == [0.0, 3.0]
    assert out.v_bias[:2] == [0.0, 0.0]


def test_counts():
    constraint = RollingConstraint()
    assert constraint.constraint_count == 2
    assert constraint.body_count == 2


def test_missing_body_raises():
    constraint = RollingConstraint(RigidBody(index=0))
    state = SystemState()
    state.resize(2, 2)
    with pytest.raises(ValueError):
        constraint.calculate(state)