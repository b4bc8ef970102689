"""Drone state representation with per-axis Euler orientation."""

import numpy as np
from scipy.spatial.transform import Rotation
from dataclasses import dataclass, field

# Orientation / angular velocity component order
PITCH, ROLL, YAW = 0, 1, 2


@dataclass
class DroneState:
    """
    Rigid-body state of the drone.

    The world frame is Y-up. Only the vertical (Y) component of the position
    is driven by the dynamics; X and Z are carried along for renderers.

    Attributes:
        position: (x, y, z) position in world frame [m]
        velocity: vertical (Y) linear velocity [m/s]
        orientation: (pitch, roll, yaw) angles [rad]
        angular_velocity: (pitch, roll, yaw) rates [rad/s]
        mass: body mass [kg]
        inertia: (pitch, roll, yaw) moments of inertia [kg*m^2]
    """
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    velocity: float = 0.0
    orientation: np.ndarray = field(default_factory=lambda: np.zeros(3))
    angular_velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    mass: float = 1.0
    inertia: np.ndarray = field(default_factory=lambda: np.array([0.0082, 0.0082, 0.0140]))

    def __post_init__(self):
        """Coerce arrays and reject non-physical mass properties."""
        self.position = np.asarray(self.position, dtype=np.float64).reshape(3)
        self.orientation = np.asarray(self.orientation, dtype=np.float64).reshape(3)
        self.angular_velocity = np.asarray(self.angular_velocity, dtype=np.float64).reshape(3)
        self.inertia = np.asarray(self.inertia, dtype=np.float64).reshape(3)
        self.velocity = float(self.velocity)
        self.mass = float(self.mass)

        if not self.mass > 0:
            raise ValueError(f"mass must be positive, got {self.mass}")
        if not np.all(self.inertia > 0):
            raise ValueError(f"moments of inertia must be positive, got {self.inertia}")

    @property
    def altitude(self) -> float:
        """Height above the world origin [m]."""
        return float(self.position[1])

    def is_finite(self) -> bool:
        """True if no component of the state is NaN or infinite."""
        return bool(
            np.all(np.isfinite(self.position))
            and np.isfinite(self.velocity)
            and np.all(np.isfinite(self.orientation))
            and np.all(np.isfinite(self.angular_velocity))
        )

    def get_quaternion(self) -> np.ndarray:
        """
        Orientation as a (w, x, y, z) quaternion for renderers.

        Yaw turns about world Y, pitch about body X and roll about body Z
        (intrinsic Y-X-Z order).
        """
        pitch, roll, yaw = self.orientation
        quat_scipy = Rotation.from_euler('YXZ', [yaw, pitch, roll]).as_quat()  # (x, y, z, w)
        return np.array([
            quat_scipy[3],  # w
            quat_scipy[0],  # x
            quat_scipy[1],  # y
            quat_scipy[2],  # z
        ])

    def copy(self) -> 'DroneState':
        """Create a deep copy of the state."""
        return DroneState(
            position=self.position.copy(),
            velocity=self.velocity,
            orientation=self.orientation.copy(),
            angular_velocity=self.angular_velocity.copy(),
            mass=self.mass,
            inertia=self.inertia.copy(),
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, DroneState):
            return NotImplemented
        return (
            np.array_equal(self.position, other.position)
            and self.velocity == other.velocity
            and np.array_equal(self.orientation, other.orientation)
            and np.array_equal(self.angular_velocity, other.angular_velocity)
            and self.mass == other.mass
            and np.array_equal(self.inertia, other.inertia)
        )

    def __repr__(self) -> str:
        euler = np.degrees(self.orientation)
        return (
            f"DroneState(\n"
            f"  pos=[{self.position[0]:.2f}, {self.position[1]:.2f}, {self.position[2]:.2f}] m\n"
            f"  vel={self.velocity:.2f} m/s\n"
            f"  euler=[{euler[0]:.1f}, {euler[1]:.1f}, {euler[2]:.1f}] deg\n"
            f"  omega=[{self.angular_velocity[0]:.2f}, {self.angular_velocity[1]:.2f}, {self.angular_velocity[2]:.2f}] rad/s\n"
            f")"
        )
