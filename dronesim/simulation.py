"""Tick driver: runs mapper, arbiter, PID and dynamics in order every tick."""

import dataclasses
import logging
import math
import numpy as np
from typing import Iterable, Optional

from .actions import Action, InputActionMapper
from .arbiter import ControlModeArbiter, ControlMode, ControlState
from .config import SimConfig
from .controller import PIDController
from .dynamics import Command, DroneDynamics
from .state import DroneState

logger = logging.getLogger(__name__)


class Simulation:
    """
    Owns the drone state and advances it one tick at a time.

    `tick` is the per-frame entry point for variable-rate hosts; `advance`
    runs fixed `tick_step` ticks out of a variable frame time.
    """

    def __init__(self, config: SimConfig = None):
        self.config = (config or SimConfig()).validate()
        self.mapper = InputActionMapper(
            target_step=self.config.target_step,
            thrust_step=self.config.thrust_step,
            attitude_rate_step=self.config.attitude_rate_step,
        )
        self.dynamics = DroneDynamics(self.config.params)
        self.reset()

    def reset(self):
        """Return state, control and PID to their startup values."""
        c = self.config
        self.pid = PIDController(c.gains, seed_derivative=c.seed_derivative)
        self.arbiter = ControlModeArbiter(
            pid=self.pid,
            gravity=c.params.gravity,
            min_target_altitude=c.min_target_altitude,
            max_target_altitude=c.max_target_altitude,
            initial_target_altitude=c.initial_target_altitude,
            max_thrust=c.max_thrust,
            manual_gravity_compensation=c.manual_gravity_compensation,
        )
        self._state = DroneState(
            position=np.array([0.0, max(c.initial_altitude, c.params.ground_level), 0.0]),
            mass=c.params.mass,
            inertia=c.params.inertia.copy(),
        )
        self.last_command = Command()
        self.time = 0.0
        self.tick_count = 0
        self._accumulator = 0.0
        self._pending_actions = set()

    @property
    def state(self) -> DroneState:
        """Snapshot of the current drone state."""
        return self._state.copy()

    @property
    def control(self) -> ControlState:
        return self.arbiter.control

    @property
    def mode(self) -> ControlMode:
        return self.arbiter.mode

    def tick(self, actions: Iterable[Action] = (), dt: float = None) -> DroneState:
        """
        Run one tick.

        Args:
            actions: Actions observed since the previous tick
            dt: Time step [s], defaults to the configured tick step

        Returns:
            Snapshot of the drone state after the tick. A degenerate dt
            (<= 0 or non-finite) skips the tick entirely. A tick whose
            integration is discarded keeps the drone state, PID state, manual
            nudges and clock as they were; mode and target edits still apply.
        """
        if dt is None:
            dt = self.config.tick_step
        if not (math.isfinite(dt) and dt > 0):
            logger.debug("Ignoring tick with dt=%r", dt)
            return self.state

        self.arbiter.apply(self.mapper.map(actions))

        # Restored if the integrator discards this tick
        pid_state = dataclasses.replace(self.pid.state)
        thrust_delta = self.control.manual_thrust_delta
        attitude_delta = self.control.manual_attitude_delta.copy()

        command = self.arbiter.command(self._state, dt)
        new_state = self.dynamics.step(self._state, command, dt)
        if new_state is self._state:
            logger.debug("Tick %d discarded, holding last good state", self.tick_count)
            self.pid.state = pid_state
            self.control.manual_thrust_delta = thrust_delta
            self.control.manual_attitude_delta = attitude_delta
            return self.state

        self._state = new_state
        self.last_command = command
        self.time += dt
        self.tick_count += 1

        return self.state

    def advance(self, frame_dt: float, actions: Iterable[Action] = ()) -> Optional[DroneState]:
        """
        Consume a variable frame time in fixed `tick_step` ticks.

        Actions go to the next tick that runs (held over if the frame was too
        short for one). Leftover time carries to the next frame; a backlog
        beyond `max_substeps` ticks is dropped.

        Returns:
            Snapshot after the last tick, or None if no tick was due.
        """
        self._pending_actions.update(actions)
        if not (math.isfinite(frame_dt) and frame_dt > 0):
            return None

        step = self.config.tick_step
        self._accumulator += frame_dt
        snapshot = None
        ticks = 0

        while self._accumulator >= step and ticks < self.config.max_substeps:
            pending, self._pending_actions = self._pending_actions, set()
            snapshot = self.tick(pending, step)
            self._accumulator -= step
            ticks += 1

        if self._accumulator >= step:
            logger.debug("Dropping %.3f s of simulation backlog", self._accumulator)
            self._accumulator = 0.0

        return snapshot
