import numpy as np
import pytest

from dronesim.dynamics import Command, DroneDynamics, DroneParams, wrap_angle
from dronesim.state import DroneState, PITCH, ROLL, YAW


@pytest.fixture
def dynamics():
    return DroneDynamics(DroneParams(mass=1.0, gravity=9.8))


def hovering_state(altitude=0.0, **kwargs):
    return DroneState(position=[0.0, altitude, 0.0], **kwargs)


def test_free_fall_single_tick(dynamics):
    state = dynamics.step(hovering_state(5.0), Command(), 0.1)
    assert state.velocity == pytest.approx(-0.98)
    assert state.altitude == pytest.approx(4.902)


def test_velocity_is_updated_before_position(dynamics):
    """Semi-implicit Euler moves the body on the very first step."""
    state = dynamics.step(hovering_state(1.0), Command(thrust=19.6), 0.5)
    assert state.velocity == pytest.approx(4.9)
    assert state.altitude == pytest.approx(1.0 + 4.9 * 0.5)


def test_hover_thrust_holds_altitude(dynamics):
    state = hovering_state(3.0)
    for _ in range(1000):
        state = dynamics.step(state, Command(thrust=dynamics.params.hover_thrust), 0.01)
    assert state.altitude == pytest.approx(3.0)
    assert state.velocity == pytest.approx(0.0)


def test_ground_clamp_zeroes_velocity_on_contact(dynamics):
    state = hovering_state(5.0)
    altitudes = []
    for _ in range(50):
        previous = state
        state = dynamics.step(state, Command(), 0.1)
        altitudes.append(state.altitude)
        if previous.altitude > 0.0 and state.altitude == 0.0:
            assert state.velocity == 0.0

    assert min(altitudes) >= 0.0
    assert state.altitude == 0.0
    assert state.velocity == 0.0


def test_thrust_lifts_off_from_ground(dynamics):
    state = dynamics.step(hovering_state(0.0), Command(thrust=20.0), 0.1)
    assert state.velocity > 0.0
    assert state.altitude > 0.0


def test_ground_level_is_configurable():
    dynamics = DroneDynamics(DroneParams(gravity=9.8, ground_level=1.0))
    state = hovering_state(1.05)
    for _ in range(10):
        state = dynamics.step(state, Command(), 0.1)
    assert state.altitude == 1.0


def test_torque_drives_each_axis_independently(dynamics):
    state = hovering_state(2.0, inertia=[0.5, 1.0, 2.0])
    state = dynamics.step(state, Command(thrust=9.8, torques=[1.0, 0.0, -1.0]), 0.1)

    np.testing.assert_allclose(state.angular_velocity, [0.2, 0.0, -0.05])
    np.testing.assert_allclose(state.orientation, [0.02, 0.0, -0.005])


def test_orientation_is_wrapped(dynamics):
    state = hovering_state(angular_velocity=[0.0, 0.0, 10.0], orientation=[0.0, 0.0, 3.0])
    state = dynamics.step(state, Command(), 0.1)
    assert -np.pi <= state.orientation[YAW] < np.pi
    assert state.orientation[YAW] == pytest.approx(4.0 - 2 * np.pi)


def test_wrap_angle_range():
    angles = np.array([-7.0, -np.pi, 0.0, np.pi, 7.0])
    wrapped = wrap_angle(angles)
    assert np.all(wrapped >= -np.pi) and np.all(wrapped < np.pi)
    np.testing.assert_allclose(np.cos(wrapped), np.cos(angles), atol=1e-12)


@pytest.mark.parametrize("dt", [0.0, -0.01, float("nan")])
def test_degenerate_dt_leaves_state_unchanged(dynamics, dt):
    state = hovering_state(5.0, angular_velocity=[0.1, 0.2, 0.3])
    assert dynamics.step(state, Command(thrust=3.0), dt) is state


@pytest.mark.parametrize("command", [
    Command(thrust=float("nan")),
    Command(thrust=float("inf")),
    Command(torques=[0.0, float("nan"), 0.0]),
])
def test_non_finite_command_is_rejected(dynamics, command):
    state = hovering_state(5.0)
    assert dynamics.step(state, command, 0.1) is state


def test_overflowing_result_is_discarded(dynamics):
    state = hovering_state(5.0, inertia=[1e-300, 1.0, 1.0])
    assert dynamics.step(state, Command(torques=[1e300, 0.0, 0.0]), 1e10) is state


def test_step_does_not_mutate_input(dynamics):
    state = hovering_state(5.0)
    before = state.copy()
    dynamics.step(state, Command(torques=[1.0, 1.0, 1.0]), 0.1)
    assert state == before


def test_substeps_split_the_interval(dynamics):
    state = hovering_state(5.0)
    split = dynamics.step(state, Command(), 0.5, substeps=4)

    single = state
    for _ in range(4):
        single = dynamics.step(single, Command(), 0.125)

    assert split == single


def test_params_validation():
    DroneParams().validate()
    with pytest.raises(ValueError):
        DroneParams(mass=0.0).validate()
    with pytest.raises(ValueError):
        DroneParams(inertia=[0.1, -0.1, 0.1]).validate()
    with pytest.raises(ValueError):
        DroneParams(gravity=-9.8).validate()


def test_state_rejects_non_physical_mass_properties():
    with pytest.raises(ValueError):
        DroneState(mass=-1.0)
    with pytest.raises(ValueError):
        DroneState(inertia=[0.1, 0.0, 0.1])


def test_level_state_quaternion_is_identity():
    np.testing.assert_allclose(DroneState().get_quaternion(), [1.0, 0.0, 0.0, 0.0])


def test_yaw_quaternion_turns_about_up_axis():
    state = DroneState(orientation=[0.0, 0.0, np.pi / 2])
    w, x, y, z = state.get_quaternion()
    assert (w, x, y, z) == pytest.approx((np.cos(np.pi / 4), 0.0, np.sin(np.pi / 4), 0.0))


def test_copy_is_independent():
    state = DroneState(position=[0.0, 1.0, 0.0])
    clone = state.copy()
    clone.position[1] = 7.0
    clone.orientation[PITCH] = 0.5
    assert state.altitude == 1.0
    assert state.orientation[PITCH] == 0.0
    assert state.orientation[ROLL] == 0.0
