"""Altitude PID controller."""

import math
import numpy as np
from dataclasses import dataclass


@dataclass
class PIDGains:
    """
    Gains for the altitude PID.

    Defaults give a damped climb to the target for the default 1 kg airframe.
    Gains are fixed at startup; use `ziegler_nichols` to derive a triple from
    an offline oscillation test.
    """
    kp: float = 2.0
    ki: float = 0.2
    kd: float = 1.5

    # Anti-windup limit on the accumulated integral (inf disables)
    integral_limit: float = 10.0

    # Output saturation [N]
    output_limit: float = float('inf')

    @classmethod
    def ziegler_nichols(cls, ultimate_gain: float, ultimate_period: float,
                        rule: str = "pid", **limits) -> 'PIDGains':
        """
        Classic Ziegler-Nichols gains from an oscillation test.

        Args:
            ultimate_gain: Proportional gain Ku at which the loop oscillates
            ultimate_period: Oscillation period Tu [s]
            rule: One of "p", "pi" or "pid"
            **limits: Passed through (integral_limit, output_limit)

        Returns:
            PIDGains with kp, ki, kd in parallel form
        """
        ku, tu = ultimate_gain, ultimate_period
        if ku <= 0 or tu <= 0:
            raise ValueError("ultimate gain and period must be positive")

        rule = rule.lower()
        if rule == "p":
            return cls(kp=0.5 * ku, ki=0.0, kd=0.0, **limits)
        if rule == "pi":
            return cls(kp=0.45 * ku, ki=0.54 * ku / tu, kd=0.0, **limits)
        if rule == "pid":
            return cls(kp=0.6 * ku, ki=1.2 * ku / tu, kd=0.075 * ku * tu, **limits)
        raise ValueError(f"unknown Ziegler-Nichols rule {rule!r}, expected 'p', 'pi' or 'pid'")


@dataclass
class PIDState:
    """Internal state of a PID controller."""
    integral: float = 0.0
    prev_error: float = 0.0
    last_output: float = 0.0
    primed: bool = False  # a sample has been taken since the last reset


class PIDController:
    """
    Single-axis PID controller with integral clamping and output saturation.

    With `seed_derivative` the first sample after a reset takes the current
    error as the previous one, so re-engaging never produces a derivative kick.
    Otherwise the previous error starts at zero.
    """

    def __init__(self, gains: PIDGains = None, seed_derivative: bool = False):
        self.gains = gains or PIDGains()
        self.seed_derivative = seed_derivative
        self.state = PIDState()

    def reset(self):
        """Reset controller state."""
        self.state = PIDState()

    @property
    def output(self) -> float:
        """Most recent output."""
        return self.state.last_output

    def compute(self, current: float, target: float, dt: float) -> float:
        """
        Compute the correction for one tick.

        Args:
            current: Measured value (altitude [m])
            target: Setpoint
            dt: Time step [s]

        Returns:
            Control output. On a degenerate tick (dt <= 0 or non-finite
            inputs) the previous output is returned and nothing is updated.
        """
        if not (math.isfinite(dt) and dt > 0):
            return self.state.last_output
        if not (math.isfinite(current) and math.isfinite(target)):
            return self.state.last_output

        g = self.gains
        s = self.state

        error = target - current
        prev_error = error if (self.seed_derivative and not s.primed) else s.prev_error

        # Proportional term
        p_term = g.kp * error

        # Integral term with anti-windup
        integral = float(np.clip(s.integral + error * dt, -g.integral_limit, g.integral_limit))
        i_term = g.ki * integral

        # Derivative term
        derivative = (error - prev_error) / dt
        d_term = g.kd * derivative

        output = float(np.clip(p_term + i_term + d_term, -g.output_limit, g.output_limit))
        if not math.isfinite(output):
            return s.last_output

        # Update state
        s.integral = integral
        s.prev_error = error
        s.last_output = output
        s.primed = True

        return output
