"""Engine/mode state machine that turns PID output or manual input into a Command."""

import logging
import math
import numpy as np
from dataclasses import dataclass, field
from enum import Enum

from .actions import ControlInput
from .controller import PIDController
from .dynamics import Command
from .state import DroneState

logger = logging.getLogger(__name__)


class ControlMode(Enum):
    """Engine off, PID altitude hold, or direct operator control."""
    DISENGAGED = "disengaged"
    AUTO = "auto"
    MANUAL = "manual"


@dataclass
class ControlState:
    """
    Operator-facing control state.

    Attributes:
        mode: Current control mode (engine is on unless DISENGAGED)
        target_altitude: Altitude setpoint [m]
        manual_thrust_delta: Thrust offset for the current tick [N]
        manual_attitude_delta: (pitch, roll, yaw) rate nudges for the current tick [rad/s]
    """
    mode: ControlMode = ControlMode.DISENGAGED
    target_altitude: float = 0.0
    manual_thrust_delta: float = 0.0
    manual_attitude_delta: np.ndarray = field(default_factory=lambda: np.zeros(3))

    @property
    def engine_enabled(self) -> bool:
        return self.mode is not ControlMode.DISENGAGED

    def clear_deltas(self):
        self.manual_thrust_delta = 0.0
        self.manual_attitude_delta = np.zeros(3)


class ControlModeArbiter:
    """
    Owns the ControlState and the altitude PID, and emits one Command per tick.

    - DISENGAGED: zero thrust and torques (free fall), target edits allowed
    - AUTO: thrust = m*g + PID(altitude error); attitude nudges still applied
    - MANUAL: thrust = m*g + operator thrust delta; PID is not advanced
    """

    def __init__(
        self,
        pid: PIDController = None,
        gravity: float = 9.81,
        min_target_altitude: float = 0.0,
        max_target_altitude: float = 100.0,
        initial_target_altitude: float = 0.0,
        max_thrust: float = float('inf'),
        manual_gravity_compensation: bool = True,
    ):
        self.pid = pid or PIDController()
        self.gravity = gravity
        self.min_target_altitude = min_target_altitude
        self.max_target_altitude = max_target_altitude
        self.initial_target_altitude = self._clamp_target(initial_target_altitude)
        self.max_thrust = max_thrust
        self.manual_gravity_compensation = manual_gravity_compensation

        self.control = ControlState(target_altitude=self.initial_target_altitude)

    @property
    def mode(self) -> ControlMode:
        return self.control.mode

    def _clamp_target(self, value: float) -> float:
        return float(np.clip(value, self.min_target_altitude, self.max_target_altitude))

    def _set_mode(self, mode: ControlMode):
        logger.info("Control mode %s -> %s", self.control.mode.value, mode.value)
        self.control.mode = mode

    def toggle_engine(self):
        """Engine on (into AUTO) or off (from any engaged mode). Resets the PID."""
        if self.control.engine_enabled:
            self._set_mode(ControlMode.DISENGAGED)
        else:
            self._set_mode(ControlMode.AUTO)
        self.pid.reset()

    def toggle_mode(self):
        """Switch between AUTO and MANUAL. Ignored while disengaged."""
        if self.control.mode is ControlMode.AUTO:
            self._set_mode(ControlMode.MANUAL)
        elif self.control.mode is ControlMode.MANUAL:
            self._set_mode(ControlMode.AUTO)

    def reset_target(self) -> bool:
        """Restore the initial target. Only accepted while disengaged."""
        if self.control.engine_enabled:
            return False
        self.control.target_altitude = self.initial_target_altitude
        return True

    def apply(self, control_input: ControlInput):
        """Apply one tick's worth of operator input to the ControlState."""
        c = self.control
        # ResetTarget is judged against the engine state the tick started with
        was_engaged = c.engine_enabled

        if control_input.toggle_engine:
            self.toggle_engine()
        if control_input.toggle_mode:
            self.toggle_mode()

        if control_input.reset_target and not was_engaged:
            self.reset_target()
        if control_input.target_delta:
            c.target_altitude = self._clamp_target(c.target_altitude + control_input.target_delta)

        c.manual_thrust_delta += control_input.thrust_delta
        c.manual_attitude_delta = c.manual_attitude_delta + control_input.attitude_rate_delta

    def command(self, state: DroneState, dt: float) -> Command:
        """
        Produce this tick's Command and consume the manual deltas.

        Args:
            state: Current drone state (altitude, mass, inertia)
            dt: Time step [s]

        Returns:
            Command for the dynamics integrator. A degenerate dt (<= 0 or
            non-finite) gives a zero Command and leaves the deltas in place.
        """
        if not (math.isfinite(dt) and dt > 0):
            return Command()

        c = self.control
        hover_thrust = state.mass * self.gravity

        if c.mode is ControlMode.DISENGAGED:
            command = Command()
        else:
            if c.mode is ControlMode.AUTO:
                thrust = hover_thrust + self.pid.compute(state.altitude, c.target_altitude, dt)
            else:
                base = hover_thrust if self.manual_gravity_compensation else 0.0
                thrust = base + c.manual_thrust_delta

            # Torque that changes each axis rate by the nudge within this tick
            torques = state.inertia * c.manual_attitude_delta / dt
            command = Command(thrust=float(np.clip(thrust, 0.0, self.max_thrust)), torques=torques)

        c.clear_deltas()
        return command
