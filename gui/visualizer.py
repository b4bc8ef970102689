"""Viser-based 3D viewer and operator panel for the hover simulator."""

import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Optional, Set

import numpy as np
import viser

from dronesim.actions import Action
from dronesim.arbiter import ControlState
from dronesim.dynamics import Command, DroneParams
from dronesim.state import DroneState


@dataclass
class PlotData:
    """Data for real-time plotting."""
    max_length: int = 500

    time: deque = field(default_factory=lambda: deque(maxlen=500))

    # Vertical channel
    altitude: deque = field(default_factory=lambda: deque(maxlen=500))
    target: deque = field(default_factory=lambda: deque(maxlen=500))
    velocity: deque = field(default_factory=lambda: deque(maxlen=500))

    # Orientation [deg]
    pitch: deque = field(default_factory=lambda: deque(maxlen=500))
    roll: deque = field(default_factory=lambda: deque(maxlen=500))
    yaw: deque = field(default_factory=lambda: deque(maxlen=500))

    # Control outputs
    thrust: deque = field(default_factory=lambda: deque(maxlen=500))
    hover_thrust: deque = field(default_factory=lambda: deque(maxlen=500))

    def __post_init__(self):
        for name in self._series():
            setattr(self, name, deque(maxlen=self.max_length))

    @staticmethod
    def _series():
        return ['time', 'altitude', 'target', 'velocity', 'pitch', 'roll', 'yaw',
                'thrust', 'hover_thrust']

    def clear(self):
        """Clear all plot data."""
        for attr in self._series():
            getattr(self, attr).clear()


# Button label -> action, grouped by GUI folder
_BUTTON_GROUPS = {
    "Engine": [
        ("Toggle Engine", Action.TOGGLE_ENGINE),
        ("Toggle Auto/Manual", Action.TOGGLE_MODE),
        ("Reset Target", Action.RESET_TARGET),
    ],
    "Target Altitude": [
        ("Raise Target", Action.INCREASE_TARGET),
        ("Lower Target", Action.DECREASE_TARGET),
    ],
    "Attitude Nudges": [
        ("Pitch Forward", Action.PITCH_FORWARD),
        ("Pitch Back", Action.PITCH_BACK),
        ("Roll Left", Action.ROLL_LEFT),
        ("Roll Right", Action.ROLL_RIGHT),
        ("Yaw Left", Action.YAW_LEFT),
        ("Yaw Right", Action.YAW_RIGHT),
    ],
}


class DroneVisualizer:
    """
    Viser-based visualization for the hover simulator.

    Features:
    - 3D drone and target-altitude marker over a ground grid (Y-up)
    - Buttons that emit operator actions
    - Telemetry readouts
    - Real-time plot data (see PlotManager)

    Button clicks arrive on viser's server thread; they are queued and
    handed to the simulation loop by `drain_actions`.
    """

    def __init__(self, params: DroneParams = None, port: int = 8080):
        self.params = params or DroneParams()
        self.port = port

        self.plot_data = PlotData()
        self.paused = False
        self.start_time = time.time()

        # Callbacks
        self.on_reset: Optional[Callable] = None

        self._pending_actions: Set[Action] = set()
        self._lock = threading.Lock()

        # Trail points for trajectory
        self.trail_points: deque = deque(maxlen=200)
        self.trail_handle = None

        # Initialize Viser server
        self.server = viser.ViserServer(host="0.0.0.0", port=port)
        self.server.scene.set_up_direction("+y")

        # Setup visualization
        self._setup_scene()
        self._setup_gui()

    def _setup_scene(self):
        """Setup the 3D scene with ground grid, drone and target marker."""
        self._create_ground_grid()

        self.server.scene.add_frame(
            "/world_frame",
            axes_length=0.5,
            axes_radius=0.01,
        )

        self._create_drone()

        self.target_marker = self.server.scene.add_icosphere(
            "/target",
            radius=0.08,
            color=(50, 200, 50),
        )

    def _create_ground_grid(self):
        """Create a ground grid in the XZ plane."""
        grid_size = 5.0
        grid_divisions = 20

        for i in range(grid_divisions + 1):
            t = -grid_size + (2 * grid_size * i / grid_divisions)
            for j, segment in enumerate((
                [[t, 0, -grid_size], [t, 0, grid_size]],
                [[-grid_size, 0, t], [grid_size, 0, t]],
            )):
                self.server.scene.add_spline_catmull_rom(
                    f"/grid/line_{i}_{j}",
                    positions=np.array(segment),
                    tension=0.0,
                    color=(80, 80, 80),
                    line_width=1.0,
                )

    def _create_drone(self):
        """Create a simple quadrotor mesh."""
        arm_length = 0.17
        arm_width = 0.02
        body_size = 0.08
        rotor_radius = 0.08

        self.drone_frame = self.server.scene.add_frame(
            "/drone",
            axes_length=0.2,
            axes_radius=0.005,
        )

        self.server.scene.add_box(
            "/drone/body",
            dimensions=(body_size, body_size * 0.5, body_size),
            color=(60, 60, 70),
        )

        # Front is -Z
        arm_positions = [
            (0, 0, -arm_length),  # Front
            (0, 0, arm_length),   # Back
            (arm_length, 0, 0),   # Right
            (-arm_length, 0, 0),  # Left
        ]
        arm_colors = [
            (220, 60, 60),
            (60, 60, 220),
            (100, 100, 100),
            (100, 100, 100),
        ]

        for i, (pos, color) in enumerate(zip(arm_positions, arm_colors)):
            arm_center = (pos[0] / 2, 0, pos[2] / 2)
            if pos[0] != 0:
                arm_dims = (arm_length, arm_width, arm_width)
            else:
                arm_dims = (arm_width, arm_width, arm_length)

            self.server.scene.add_box(
                f"/drone/arm_{i}",
                dimensions=arm_dims,
                position=arm_center,
                color=(80, 80, 90),
            )
            self.server.scene.add_mesh_simple(
                f"/drone/rotor_{i}",
                vertices=self._create_disk_vertices(rotor_radius, 16),
                faces=self._create_disk_faces(16),
                position=pos,
                color=color,
            )

    def _create_disk_vertices(self, radius: float, segments: int) -> np.ndarray:
        """Create vertices for a horizontal disk mesh."""
        angles = 2 * np.pi * np.arange(segments) / segments
        rim = np.stack([radius * np.cos(angles), np.zeros(segments), radius * np.sin(angles)], axis=1)
        return np.vstack([np.zeros((1, 3)), rim]).astype(np.float32)

    def _create_disk_faces(self, segments: int) -> np.ndarray:
        """Create faces for a disk mesh."""
        faces = [[0, (i + 1) % segments + 1, i + 1] for i in range(segments)]
        return np.array(faces, dtype=np.uint32)

    def _setup_gui(self):
        """Setup the GUI controls."""
        with self.server.gui.add_folder("Simulation"):
            self.pause_button = self.server.gui.add_button("Pause")
            self.reset_button = self.server.gui.add_button("Reset")
            self.clear_plots_button = self.server.gui.add_button("Clear Plots")

            @self.pause_button.on_click
            def _(_):
                self.paused = not self.paused
                self.pause_button.label = "Resume" if self.paused else "Pause"

            @self.reset_button.on_click
            def _(_):
                if self.on_reset:
                    self.on_reset()
                self.trail_points.clear()
                self.plot_data.clear()
                self.start_time = time.time()

            @self.clear_plots_button.on_click
            def _(_):
                self.plot_data.clear()
                self.start_time = time.time()

        for folder, buttons in _BUTTON_GROUPS.items():
            with self.server.gui.add_folder(folder):
                for label, action in buttons:
                    button = self.server.gui.add_button(label)

                    @button.on_click
                    def _(_, action=action):
                        self.queue_action(action)

        # Thrust actions repeat every frame while held
        with self.server.gui.add_folder("Manual Thrust"):
            self.thrust_up_checkbox = self.server.gui.add_checkbox("Hold Thrust Up", initial_value=False)
            self.thrust_down_checkbox = self.server.gui.add_checkbox("Hold Thrust Down", initial_value=False)

        with self.server.gui.add_folder("Telemetry"):
            self.mode_text = self.server.gui.add_text("Mode", initial_value="", disabled=True)
            self.altitude_text = self.server.gui.add_text("Altitude", initial_value="", disabled=True)
            self.target_text = self.server.gui.add_text("Target", initial_value="", disabled=True)
            self.velocity_text = self.server.gui.add_text("Velocity", initial_value="", disabled=True)
            self.thrust_text = self.server.gui.add_text("Thrust", initial_value="", disabled=True)

    def queue_action(self, action: Action):
        with self._lock:
            self._pending_actions.add(action)

    def drain_actions(self) -> Set[Action]:
        """Actions clicked since the last call, plus any held thrust action."""
        with self._lock:
            actions, self._pending_actions = self._pending_actions, set()
        if self.thrust_up_checkbox.value:
            actions.add(Action.INCREASE_THRUST)
        if self.thrust_down_checkbox.value:
            actions.add(Action.DECREASE_THRUST)
        return actions

    def update(
        self,
        state: DroneState,
        command: Command,
        control: ControlState,
    ):
        """
        Update the visualization with current state.

        Args:
            state: Published drone state snapshot
            command: Command applied on the last tick
            control: Current control state
        """
        position = state.position

        self.drone_frame.position = position
        self.drone_frame.wxyz = state.get_quaternion()

        self.target_marker.position = np.array([position[0], control.target_altitude, position[2]])

        # Update trail
        self.trail_points.append(position.copy())
        if len(self.trail_points) >= 2:
            if self.trail_handle is not None:
                self.trail_handle.remove()
            self.trail_handle = self.server.scene.add_spline_catmull_rom(
                "/trail",
                positions=np.array(list(self.trail_points)),
                tension=0.5,
                color=(100, 180, 255),
                line_width=2.0,
            )

        # Telemetry
        self.mode_text.value = control.mode.value.upper()
        self.altitude_text.value = f"{state.altitude:.2f} m"
        self.target_text.value = f"{control.target_altitude:.2f} m"
        self.velocity_text.value = f"{state.velocity:+.2f} m/s"
        self.thrust_text.value = f"{command.thrust:.2f} N"

        # Log data for plots
        euler = np.degrees(state.orientation)
        self.plot_data.time.append(time.time() - self.start_time)
        self.plot_data.altitude.append(state.altitude)
        self.plot_data.target.append(control.target_altitude)
        self.plot_data.velocity.append(state.velocity)
        self.plot_data.pitch.append(euler[0])
        self.plot_data.roll.append(euler[1])
        self.plot_data.yaw.append(euler[2])
        self.plot_data.thrust.append(command.thrust)
        self.plot_data.hover_thrust.append(state.mass * self.params.gravity)

    def is_paused(self) -> bool:
        """Check if simulation is paused."""
        return self.paused
