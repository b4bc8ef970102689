"""Drone hover simulation package."""

from .state import DroneState
from .dynamics import Command, DroneDynamics, DroneParams
from .controller import PIDController, PIDGains
from .actions import Action, InputActionMapper
from .arbiter import ControlMode, ControlModeArbiter, ControlState
from .config import SimConfig
from .simulation import Simulation

__all__ = [
    "DroneState", "Command", "DroneDynamics", "DroneParams",
    "PIDController", "PIDGains", "Action", "InputActionMapper",
    "ControlMode", "ControlModeArbiter", "ControlState", "SimConfig", "Simulation",
]
