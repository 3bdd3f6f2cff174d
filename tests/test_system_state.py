import math

import pytest

from constraint2d.system_state import SystemState


def _state(bodies=1, constraints=1):
    state = SystemState()
    state.resize(bodies, constraints)
    return state


def test_resize_sets_counts():
    state = _state(3, 2)
    assert state.n == 3
    assert state.n_c == 2
    assert len(state.r_x) == 2 * state.n_c
    assert len(state.m) == state.n


def test_resize_keeps_existing_values_when_growing():
    state = _state(1, 1)
    state.p_x[0] = 4.5
    state.r_t[1] = -2.0
    state.resize(3, 2)
    assert state.p_x[0] == 4.5
    assert state.r_t[1] == -2.0
    assert state.p_x[1:] == [0.0, 0.0]


def test_resize_rejects_negative_counts():
    with pytest.raises(ValueError):
        SystemState().resize(-1, 0)


def test_copy_is_independent():
    state = _state(2, 1)
    state.v_x[1] = 7.0
    state.index_map[0] = 3
    clone = state.copy()
    assert clone == state
    clone.v_x[1] = 1.0
    assert state.v_x[1] == 7.0


def test_copy_from_takes_sizes_of_other():
    source = _state(2, 3)
    source.theta[1] = 0.25
    target = _state(1, 1)
    target.copy_from(source)
    assert target.n == source.n
    assert target.n_c == source.n_c
    assert target.theta == source.theta


def test_local_to_world_at_origin_without_rotation_is_identity():
    state = _state()
    assert state.local_to_world(2.0, -3.0, 0) == (2.0, -3.0)


def test_local_to_world_quarter_turn():
    state = _state()
    state.theta[0] = math.pi / 2
    x, y = state.local_to_world(1.0, 0.0, 0)
    assert x == pytest.approx(0.0, abs=1e-12)
    assert y == pytest.approx(1.0)


def test_velocity_at_centre_is_body_velocity():
    state = _state()
    state.v_x[0] = 1.5
    state.v_y[0] = -2.5
    state.v_theta[0] = 3.0
    state.p_x[0] = 10.0
    assert state.velocity_at_point(0.0, 0.0, 0) == (1.5, -2.5)


def test_velocity_is_perpendicular_to_arm_for_pure_rotation():
    state = _state()
    state.v_theta[0] = 2.0
    state.theta[0] = 0.3
    v_x, v_y = state.velocity_at_point(1.0, 0.5, 0)
    w_x, w_y = state.local_to_world(1.0, 0.5, 0)
    assert v_x * w_x + v_y * w_y == pytest.approx(0.0, abs=1e-12)


def test_force_at_centre_gives_no_torque():
    state = _state()
    state.apply_force(0.0, 0.0, 3.0, 4.0, 0)
    assert state.f_x[0] == 3.0
    assert state.f_y[0] == 4.0
    assert state.t[0] == 0.0


def test_force_off_centre_gives_torque():
    state = _state()
    state.apply_force(1.0, 0.0, 0.0, 1.0, 0)
    assert state.t[0] == pytest.approx(1.0)


def test_forces_accumulate():
    state = _state()
    state.apply_force(0.0, 0.0, 1.0, 0.0, 0)
    state.apply_force(0.0, 0.0, 1.0, 0.0, 0)
    assert state.f_x[0] == 2.0