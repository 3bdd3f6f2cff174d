import sys

import pytest

from constraint2d.constraints import (
    ClutchConstraint,
    ConstantRotationConstraint,
    Constraint,
    ConstraintOutput,
    FixedPositionConstraint,
    LineConstraint,
    LinkConstraint,
    RotationFrictionConstraint,
)
from constraint2d.rigid_body import RigidBody
from constraint2d.system_state import SystemState

BIG = sys.float_info.max


def _state(bodies):
    """Build a state holding (p_x, p_y, theta) for each body."""
    state = SystemState()
    state.resize(len(bodies), 2)
    for i, (x, y, angle) in enumerate(bodies):
        state.p_x[i] = x
        state.p_y[i] = y
        state.theta[i] = angle
    return state


def _body(index):
    return RigidBody(index=index)


def _check_jacobian(constraint, state, h=1e-6):
    base = constraint.calculate(state)
    for slot, body in enumerate(constraint.bodies):
        for k, coords in enumerate((state.p_x, state.p_y, state.theta)):
            original = coords[body.index]
            coords[body.index] = original + h
            moved = constraint.calculate(state)
            coords[body.index] = original
            for row in range(constraint.constraint_count):
                numeric = (moved.c[row] - base.c[row]) / h
                assert numeric == pytest.approx(base.j[row][slot * 3 + k], abs=1e-4)


def _check_jacobian_rate(constraint, state, omega=0.7, dt=1e-7):
    for body in constraint.bodies:
        state.v_theta[body.index] = omega
    before = constraint.calculate(state)
    for body in constraint.bodies:
        state.theta[body.index] += omega * dt
    after = constraint.calculate(state)
    for row in range(constraint.constraint_count):
        for col in range(3 * constraint.body_count):
            numeric = (after.j[row][col] - before.j[row][col]) / dt
            assert numeric == pytest.approx(before.j_dot[row][col], abs=1e-4)


def test_output_clear_limits_opens_every_row():
    out = ConstraintOutput()
    out.limits[1] = [-1.0, 1.0]
    out.clear_limits()
    assert out.limits == [[-BIG, BIG]] * 3


def test_base_constraint_rejects_too_many_constraints():
    with pytest.raises(ValueError):
        Constraint(4, 1)


def test_base_constraint_rejects_too_many_bodies():
    with pytest.raises(ValueError):
        Constraint(1, 3)


def test_base_constraint_reaction_arrays_shape():
    constraint = Constraint(2, 2)
    assert constraint.index == -1
    assert constraint.constraint_count == 2
    assert constraint.bodies == [None, None]
    assert constraint.f_x == [[0.0, 0.0], [0.0, 0.0]]


def test_fixed_position_defaults():
    constraint = FixedPositionConstraint(_body(0))
    out = constraint.calculate(_state([(0.0, 0.0, 0.0)]))
    assert out.ks[:2] == [10.0, 10.0]
    assert out.kd[:2] == [1.0, 1.0]
    assert out.limits == [[-BIG, BIG]] * 3


def test_fixed_position_satisfied_at_world_point():
    constraint = FixedPositionConstraint(
        _body(0), local_x=1.0, local_y=0.0, world_x=3.0, world_y=2.0
    )
    out = constraint.calculate(_state([(2.0, 2.0, 0.0)]))
    assert out.c[:2] == pytest.approx([0.0, 0.0])


def test_fixed_position_error_is_offset():
    constraint = FixedPositionConstraint(_body(0), world_x=1.0, world_y=-2.0)
    out = constraint.calculate(_state([(4.0, 5.0, 0.3)]))
    assert out.c[:2] == pytest.approx([3.0, 7.0])


def test_fixed_position_jacobian_matches_finite_difference():
    constraint = FixedPositionConstraint(
        _body(0), local_x=0.5, local_y=-1.5, world_x=1.0, world_y=2.0
    )
    state = _state([(0.3, -0.2, 1.1)])
    _check_jacobian(constraint, state)
    _check_jacobian_rate(constraint, state)


def test_fixed_position_without_body_raises():
    with pytest.raises(ValueError):
        FixedPositionConstraint().calculate(_state([(0.0, 0.0, 0.0)]))


def test_fixed_position_body_outside_system_raises():
    with pytest.raises(ValueError):
        FixedPositionConstraint(RigidBody()).calculate(_state([(0.0, 0.0, 0.0)]))


def test_link_satisfied_when_points_coincide():
    constraint = LinkConstraint(
        _body(0), _body(1), local_x_1=1.0, local_y_1=0.0, local_x_2=-1.0, local_y_2=0.0
    )
    out = constraint.calculate(_state([(0.0, 0.0, 0.0), (2.0, 0.0, 0.0)]))
    assert out.c[:2] == pytest.approx([0.0, 0.0])


def test_link_jacobian_matches_finite_difference():
    constraint = LinkConstraint(
        _body(0), _body(1), local_x_1=0.4, local_y_1=0.9, local_x_2=-1.2, local_y_2=0.3
    )
    state = _state([(0.1, 0.2, 0.5), (1.5, -0.7, -2.0)])
    _check_jacobian(constraint, state)
    _check_jacobian_rate(constraint, state)


def test_link_is_antisymmetric_in_positions():
    constraint = LinkConstraint(_body(0), _body(1))
    out = constraint.calculate(_state([(1.0, 2.0, 0.0), (4.0, 6.0, 0.0)]))
    assert out.j[0][0] == -out.j[0][3]
    assert out.j[1][1] == -out.j[1][4]
    assert out.c[:2] == pytest.approx([-3.0, -4.0])


def test_link_needs_both_bodies():
    with pytest.raises(ValueError):
        LinkConstraint(_body(0)).calculate(_state([(0.0, 0.0, 0.0)]))


def test_line_point_on_line_is_satisfied():
    constraint = LineConstraint(_body(0), p0_x=1.0, p0_y=1.0, dx=1.0, dy=0.0)
    out = constraint.calculate(_state([(7.0, 1.0, 0.4)]))
    assert out.c[0] == pytest.approx(0.0)


def test_line_jacobian_matches_finite_difference():
    constraint = LineConstraint(
        _body(0), local_x=0.6, local_y=-0.4, p0_x=0.5, p0_y=-1.0, dx=0.6, dy=0.8
    )
    state = _state([(2.0, 3.0, 0.9)])
    _check_jacobian(constraint, state)
    _check_jacobian_rate(constraint, state)
    assert constraint.calculate(state).limits[0] == [-BIG, BIG]


def test_constant_rotation_output():
    constraint = ConstantRotationConstraint(
        _body(0), rotation_speed=5.0, min_torque=-2.0, max_torque=3.0
    )
    out = constraint.calculate(_state([(0.0, 0.0, 0.0)]))
    assert out.j[0][:3] == [0.0, 0.0, 1.0]
    assert out.v_bias[0] == 5.0
    assert out.limits[0] == [-2.0, 3.0]
    assert out.c[0] == 0.0


def test_constant_rotation_default_limits_open():
    constraint = ConstantRotationConstraint(_body(0))
    out = constraint.calculate(_state([(0.0, 0.0, 0.0)]))
    assert out.limits[0] == [-BIG, BIG]
    assert out.v_bias[0] == 0.0


def test_clutch_output():
    constraint = ClutchConstraint(_body(0), _body(1), min_torque=-4.0, max_torque=4.0)
    out = constraint.calculate(_state([(0.0, 0.0, 0.0), (0.0, 0.0, 1.0)]))
    assert out.j[0] == [0.0, 0.0, -1.0, 0.0, 0.0, 1.0]
    assert out.j_dot[0] == [0.0] * 6
    assert out.limits[0] == [-4.0, 4.0]
    assert constraint.constraint_count == 1
    assert constraint.body_count == 2


def test_rotation_friction_output():
    constraint = RotationFrictionConstraint(_body(0), max_torque=7.0, min_torque=-7.0)
    out = constraint.calculate(_state([(0.0, 0.0, 0.0)]))
    assert out.j[0][:3] == [0.0, 0.0, 1.0]
    assert out.ks[0] == 10.0
    assert out.kd[0] == 1.0
    assert out.limits[0] == [-7.0, 7.0]


def test_body_properties_set_slots():
    first, second = _body(0), _body(1)
    clutch = ClutchConstraint()
    clutch.body1 = first
    clutch.body2 = second
    assert clutch.bodies == [first, second]
    friction = RotationFrictionConstraint()
    friction.body = second
    assert friction.bodies == [second]