import numpy as np
import pytest

from dronesim.controller import PIDController, PIDGains


def test_first_output_matches_hand_computation():
    """P and D terms on the first sample after construction."""
    pid = PIDController(PIDGains(kp=2.0, ki=0.0, kd=0.5))
    output = pid.compute(current=0.0, target=10.0, dt=0.1)
    assert output == pytest.approx(2.0 * 10.0 + 0.5 * (10.0 / 0.1))


def test_integral_accumulates_error_times_dt():
    pid = PIDController(PIDGains(kp=0.0, ki=1.0, kd=0.0))
    pid.compute(0.0, 2.0, 0.5)
    pid.compute(0.0, 2.0, 0.5)
    assert pid.state.integral == pytest.approx(2.0)
    assert pid.state.prev_error == pytest.approx(2.0)


def test_integral_is_clamped():
    pid = PIDController(PIDGains(kp=0.0, ki=1.0, kd=0.0, integral_limit=1.5))
    for _ in range(100):
        output = pid.compute(0.0, 10.0, 0.1)
    assert pid.state.integral == pytest.approx(1.5)
    assert output == pytest.approx(1.5)


def test_output_is_saturated():
    pid = PIDController(PIDGains(kp=100.0, ki=0.0, kd=0.0, output_limit=4.0))
    assert pid.compute(0.0, 10.0, 0.1) == pytest.approx(4.0)
    assert pid.compute(20.0, 10.0, 0.1) == pytest.approx(-4.0)


@pytest.mark.parametrize("dt", [0.0, -0.1, float("nan"), float("inf")])
def test_degenerate_dt_returns_previous_output(dt):
    pid = PIDController(PIDGains(kp=1.0, ki=1.0, kd=0.0))
    previous = pid.compute(0.0, 3.0, 0.1)
    saved = (pid.state.integral, pid.state.prev_error)

    assert pid.compute(0.0, 7.0, dt) == previous
    assert (pid.state.integral, pid.state.prev_error) == saved


def test_non_finite_measurement_is_ignored():
    pid = PIDController(PIDGains(kp=1.0, ki=1.0, kd=1.0))
    previous = pid.compute(0.0, 1.0, 0.1)
    assert pid.compute(float("nan"), 1.0, 0.1) == previous
    assert pid.state.integral == pytest.approx(0.1)


def test_reset_clears_integral_and_previous_error():
    pid = PIDController(PIDGains(kp=1.0, ki=1.0, kd=1.0))
    for _ in range(5):
        pid.compute(0.0, 4.0, 0.1)
    pid.reset()
    assert pid.state.integral == 0.0
    assert pid.state.prev_error == 0.0
    assert pid.output == 0.0


def test_no_derivative_from_previous_session_after_reset():
    gains = PIDGains(kp=0.0, ki=0.0, kd=1.0)
    pid = PIDController(gains)
    pid.compute(0.0, 50.0, 0.1)  # previous session ends with a large error
    pid.reset()

    # Same error as a fresh controller would see
    fresh = PIDController(gains)
    assert pid.compute(0.0, 1.0, 0.1) == pytest.approx(fresh.compute(0.0, 1.0, 0.1))


def test_seeded_derivative_has_no_kick_after_reset():
    pid = PIDController(PIDGains(kp=2.0, ki=0.0, kd=0.5), seed_derivative=True)
    assert pid.compute(0.0, 10.0, 0.1) == pytest.approx(20.0)

    pid.reset()
    assert pid.compute(4.0, 10.0, 0.1) == pytest.approx(12.0)
    # Derivative applies again from the second sample
    assert pid.compute(5.0, 10.0, 0.1) == pytest.approx(2.0 * 5.0 + 0.5 * (5.0 - 6.0) / 0.1)


def test_zero_error_keeps_output_at_zero():
    pid = PIDController(PIDGains(kp=2.0, ki=0.5, kd=1.0))
    outputs = [pid.compute(3.0, 3.0, 0.01) for _ in range(1000)]
    assert pid.state.integral == 0.0
    np.testing.assert_allclose(outputs, 0.0)


@pytest.mark.parametrize("rule,expected", [
    ("p", (2.0, 0.0, 0.0)),
    ("pi", (1.8, 1.08, 0.0)),
    ("PID", (2.4, 2.4, 0.6)),
])
def test_ziegler_nichols_rules(rule, expected):
    gains = PIDGains.ziegler_nichols(4.0, 2.0, rule=rule)
    assert (gains.kp, gains.ki, gains.kd) == pytest.approx(expected)


def test_ziegler_nichols_passes_limits_through():
    gains = PIDGains.ziegler_nichols(4.0, 2.0, integral_limit=3.0, output_limit=20.0)
    assert gains.integral_limit == 3.0
    assert gains.output_limit == 20.0


@pytest.mark.parametrize("ku,tu,rule", [(0.0, 1.0, "pid"), (1.0, -1.0, "pid"), (1.0, 1.0, "pd")])
def test_ziegler_nichols_rejects_bad_input(ku, tu, rule):
    with pytest.raises(ValueError):
        PIDGains.ziegler_nichols(ku, tu, rule=rule)


def test_overflowing_output_keeps_previous_state():
    pid = PIDController(PIDGains(kp=1.0, ki=0.0, kd=1.0))
    previous = pid.compute(0.0, 1.0, 0.1)
    assert previous == pytest.approx(11.0)

    # Derivative overflows to infinity
    assert pid.compute(0.0, 1e300, 1e-300) == previous
    assert pid.state.prev_error == pytest.approx(1.0)
