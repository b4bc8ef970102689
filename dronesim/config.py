"""Simulation configuration, loaded once at startup."""

import dataclasses
import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Union

import numpy as np

from .controller import PIDGains
from .dynamics import DroneParams


@dataclass
class SimConfig:
    """
    Everything the simulation needs at startup.

    Nested `params` and `gains` can be given as dicts in `from_dict`:

        SimConfig.from_dict({"params": {"mass": 1.2}, "gains": {"kp": 3.0}})
    """
    params: DroneParams = field(default_factory=DroneParams)
    gains: PIDGains = field(default_factory=PIDGains)

    # Use the current error as the previous one right after a PID reset
    seed_derivative: bool = False

    # Fixed tick and the most ticks run per rendered frame
    tick_step: float = 1.0 / 120.0  # s
    max_substeps: int = 8

    # Target altitude range and operator step sizes
    min_target_altitude: float = 0.0  # m
    max_target_altitude: float = 100.0  # m
    initial_target_altitude: float = 0.0  # m
    initial_altitude: float = 0.0  # m
    target_step: float = 0.5  # m per action
    thrust_step: float = 2.0  # N per action
    attitude_rate_step: float = 0.2  # rad/s per action

    max_thrust: float = float('inf')  # N
    manual_gravity_compensation: bool = True

    def validate(self) -> 'SimConfig':
        """Raise ValueError for settings the simulation cannot start with."""
        self.params.validate()

        if not (math.isfinite(self.tick_step) and self.tick_step > 0):
            raise ValueError(f"tick_step must be positive, got {self.tick_step}")
        if self.max_substeps < 1:
            raise ValueError(f"max_substeps must be at least 1, got {self.max_substeps}")
        if self.min_target_altitude < 0:
            raise ValueError(f"min_target_altitude must be non-negative, got {self.min_target_altitude}")
        if not self.min_target_altitude <= self.max_target_altitude:
            raise ValueError(
                f"empty target range [{self.min_target_altitude}, {self.max_target_altitude}]"
            )
        for name in ("target_step", "thrust_step", "attitude_rate_step"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")
        if self.gains.integral_limit < 0 or self.gains.output_limit < 0:
            raise ValueError("PID limits must be non-negative")
        if not self.max_thrust > 0:
            raise ValueError(f"max_thrust must be positive, got {self.max_thrust}")
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SimConfig':
        """Build a config from plain data, rejecting unknown keys."""
        data = dict(data)
        params = _build(DroneParams, data.pop("params", {}))
        gains = _build(PIDGains, data.pop("gains", {}))
        return _build(cls, data, params=params, gains=gains)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> 'SimConfig':
        with open(path) as f:
            return cls.from_dict(json.load(f))

    def to_dict(self) -> Dict[str, Any]:
        data = dataclasses.asdict(self)
        data["params"]["inertia"] = np.asarray(self.params.inertia).tolist()
        return data


def _build(cls, data: Dict[str, Any], **extra):
    if not isinstance(data, dict):
        raise ValueError(f"expected a mapping for {cls.__name__}, got {type(data).__name__}")
    known = {f.name for f in dataclasses.fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"unknown {cls.__name__} keys: {', '.join(sorted(unknown))}")
    return cls(**data, **extra)
