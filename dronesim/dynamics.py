"""Vertical and per-axis rotational dynamics with semi-implicit Euler integration."""

import logging
import math
import numpy as np
from dataclasses import dataclass, field

from .state import DroneState

logger = logging.getLogger(__name__)


@dataclass
class DroneParams:
    """
    Physical parameters of the drone.

    Default values describe a ~1 kg, 250 mm class quadrotor.
    """
    mass: float = 1.0  # kg

    # Principal moments of inertia, ordered (pitch, roll, yaw) [kg*m^2]
    inertia: np.ndarray = field(default_factory=lambda: np.array([0.0082, 0.0082, 0.0140]))

    gravity: float = 9.81  # m/s^2

    # Height of the ground plane [m]
    ground_level: float = 0.0

    def __post_init__(self):
        self.inertia = np.asarray(self.inertia, dtype=np.float64).reshape(3)

    @property
    def hover_thrust(self) -> float:
        """Thrust required to hover."""
        return self.mass * self.gravity

    def validate(self):
        """Raise ValueError for non-physical parameters."""
        if not self.mass > 0:
            raise ValueError(f"mass must be positive, got {self.mass}")
        if not np.all(self.inertia > 0):
            raise ValueError(f"moments of inertia must be positive, got {self.inertia.tolist()}")
        if not (math.isfinite(self.gravity) and self.gravity >= 0):
            raise ValueError(f"gravity must be finite and non-negative, got {self.gravity}")
        if not math.isfinite(self.ground_level):
            raise ValueError(f"ground level must be finite, got {self.ground_level}")


@dataclass
class Command:
    """Force and torques applied to the body for one tick."""
    thrust: float = 0.0  # N, along world +Y
    torques: np.ndarray = field(default_factory=lambda: np.zeros(3))  # (pitch, roll, yaw) N*m

    def __post_init__(self):
        self.thrust = float(self.thrust)
        self.torques = np.asarray(self.torques, dtype=np.float64).reshape(3)

    def is_finite(self) -> bool:
        return bool(math.isfinite(self.thrust) and np.all(np.isfinite(self.torques)))


def wrap_angle(angle):
    """Wrap angle(s) to [-pi, pi)."""
    return (np.asarray(angle) + np.pi) % (2 * np.pi) - np.pi


class DroneDynamics:
    """
    Single rigid body under thrust and gravity.

    Vertical motion and the three rotational axes are independent second-order
    systems; no gyroscopic coupling is modelled.
    """

    def __init__(self, params: DroneParams = None):
        self.params = params or DroneParams()

    def step_euler(self, state: DroneState, command: Command, dt: float) -> DroneState:
        """
        Advance one semi-implicit Euler step (velocity first, then position).

        Args:
            state: Current drone state
            command: Thrust and torques held over the step
            dt: Time step [s]

        Returns:
            New drone state after integration
        """
        p = self.params
        new = state.copy()

        # Vertical
        accel = (command.thrust - state.mass * p.gravity) / state.mass
        new.velocity = state.velocity + accel * dt
        new.position[1] = state.position[1] + new.velocity * dt

        # Ground contact (inelastic)
        if new.position[1] < p.ground_level:
            new.position[1] = p.ground_level
            new.velocity = max(0.0, new.velocity)

        # Rotation, one independent axis per component
        alpha = command.torques / state.inertia
        new.angular_velocity = state.angular_velocity + alpha * dt
        new.orientation = wrap_angle(state.orientation + new.angular_velocity * dt)

        return new

    def step(
        self,
        state: DroneState,
        command: Command,
        dt: float,
        substeps: int = 1,
    ) -> DroneState:
        """
        Step simulation, optionally split into equal substeps.

        Degenerate input (dt <= 0, non-finite dt or command) and non-finite
        results leave the state untouched: the input state is returned.

        Args:
            state: Current drone state
            command: Thrust and torques
            dt: Total time step [s]
            substeps: Number of integration substeps

        Returns:
            New drone state
        """
        if not (math.isfinite(dt) and dt > 0):
            logger.debug("Skipping integration for degenerate dt=%r", dt)
            return state
        if not command.is_finite():
            logger.debug("Skipping integration for non-finite command %r", command)
            return state

        substeps = max(1, int(substeps))
        dt_sub = dt / substeps
        current = state

        for _ in range(substeps):
            current = self.step_euler(current, command, dt_sub)

        if not current.is_finite():
            logger.debug("Discarding non-finite integration result")
            return state

        return current
