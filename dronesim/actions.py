"""Operator actions and their translation into per-tick control input."""

import numpy as np
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from .state import PITCH, ROLL, YAW


class Action(Enum):
    """Discrete, already-debounced operator actions."""
    TOGGLE_ENGINE = "toggle_engine"
    TOGGLE_MODE = "toggle_mode"
    INCREASE_TARGET = "increase_target"
    DECREASE_TARGET = "decrease_target"
    PITCH_FORWARD = "pitch_forward"
    PITCH_BACK = "pitch_back"
    ROLL_LEFT = "roll_left"
    ROLL_RIGHT = "roll_right"
    YAW_LEFT = "yaw_left"
    YAW_RIGHT = "yaw_right"
    RESET_TARGET = "reset_target"
    INCREASE_THRUST = "increase_thrust"
    DECREASE_THRUST = "decrease_thrust"

    @classmethod
    def parse(cls, name: str) -> 'Action':
        """Look up an action by name ("toggle_engine", "ToggleEngine", "TOGGLE_ENGINE")."""
        key = name.strip()
        if key and not key.isupper() and "_" not in key:
            # CamelCase -> snake_case
            key = "".join("_" + c.lower() if c.isupper() else c for c in key).lstrip("_")
        key = key.lower()
        for action in cls:
            if action.value == key:
                return action
        raise ValueError(f"unknown action {name!r}")


@dataclass
class ControlInput:
    """Control edits requested for the coming tick."""
    toggle_engine: bool = False
    toggle_mode: bool = False
    reset_target: bool = False
    target_delta: float = 0.0  # m
    thrust_delta: float = 0.0  # N
    attitude_rate_delta: np.ndarray = field(default_factory=lambda: np.zeros(3))  # (pitch, roll, yaw) rad/s


# action -> (attitude axis, sign)
_ATTITUDE_ACTIONS = {
    Action.PITCH_FORWARD: (PITCH, 1.0),
    Action.PITCH_BACK: (PITCH, -1.0),
    Action.ROLL_RIGHT: (ROLL, 1.0),
    Action.ROLL_LEFT: (ROLL, -1.0),
    Action.YAW_LEFT: (YAW, 1.0),
    Action.YAW_RIGHT: (YAW, -1.0),
}


class InputActionMapper:
    """
    Translates a set of active actions into a `ControlInput`.

    Every action has exactly one effect, and opposing actions cancel.
    """

    def __init__(self, target_step: float = 0.5, thrust_step: float = 2.0,
                 attitude_rate_step: float = 0.2):
        self.target_step = target_step
        self.thrust_step = thrust_step
        self.attitude_rate_step = attitude_rate_step

    def map(self, actions: Iterable[Action]) -> ControlInput:
        active = set(actions)
        control_input = ControlInput()

        control_input.toggle_engine = Action.TOGGLE_ENGINE in active
        control_input.toggle_mode = Action.TOGGLE_MODE in active
        control_input.reset_target = Action.RESET_TARGET in active

        if Action.INCREASE_TARGET in active:
            control_input.target_delta += self.target_step
        if Action.DECREASE_TARGET in active:
            control_input.target_delta -= self.target_step

        if Action.INCREASE_THRUST in active:
            control_input.thrust_delta += self.thrust_step
        if Action.DECREASE_THRUST in active:
            control_input.thrust_delta -= self.thrust_step

        for action, (axis, sign) in _ATTITUDE_ACTIONS.items():
            if action in active:
                control_input.attitude_rate_delta[axis] += sign * self.attitude_rate_step

        return control_input
