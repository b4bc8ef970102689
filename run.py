#!/usr/bin/env python3
"""
Drone Hover Simulator

Compare PID altitude hold against manual thrust/attitude control, either in a
web-based viewer or headless.

Usage:
    python run.py [--port PORT] [--config FILE]
    python run.py --headless [--duration SECONDS] [--target METERS] [--actions NAMES]

With the viewer, open http://localhost:PORT in your browser.
"""

import argparse
import logging
import sys
import time

from dronesim.actions import Action
from dronesim.config import SimConfig
from dronesim.simulation import Simulation


def parse_actions(text: str):
    """Comma-separated action names, e.g. "toggle_engine,toggle_mode"."""
    try:
        return [Action.parse(name) for name in text.split(",") if name.strip()]
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Drone Hover Simulator")
    parser.add_argument(
        "--port",
        type=int,
        default=8080,
        help="Port number for the web server (default: 8080)"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="JSON file overriding the default simulation parameters"
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run without the viewer: send --actions, then print telemetry"
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=10.0,
        help="Simulated seconds to run in headless mode (default: 10)"
    )
    parser.add_argument(
        "--target",
        type=float,
        default=5.0,
        help="Target altitude for headless mode [m] (default: 5)"
    )
    parser.add_argument(
        "--actions",
        type=parse_actions,
        default=[Action.TOGGLE_ENGINE],
        help="Actions sent on the first headless tick (default: toggle_engine)"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log skipped ticks and mode changes"
    )
    return parser


def run_headless(sim: Simulation, duration: float, target: float, actions=(Action.TOGGLE_ENGINE,)):
    """Set the target, send `actions` on the first tick and print telemetry once a second."""
    sim.control.target_altitude = min(max(target, sim.config.min_target_altitude),
                                      sim.config.max_target_altitude)
    dt = sim.config.tick_step
    report_every = max(1, int(round(1.0 / dt)))

    state = sim.tick(actions, dt)
    print(f"{'t [s]':>7} {'alt [m]':>9} {'vel [m/s]':>10} {'thrust [N]':>11}")
    while sim.time < duration:
        state = sim.tick((), dt)
        if sim.tick_count % report_every == 0:
            print(f"{sim.time:7.2f} {state.altitude:9.3f} {state.velocity:10.3f} "
                  f"{sim.last_command.thrust:11.3f}")

    print()
    print(f"Final altitude {state.altitude:.3f} m (target {sim.control.target_altitude:.3f} m)")


def run_viewer(sim: Simulation, port: int):
    """Serve the viewer and run the simulation at the display rate."""
    # Imported here so headless runs do not need the viewer stack
    from gui.visualizer import DroneVisualizer
    from gui.plots import PlotManager

    print("[1/2] Starting Viser server...")
    visualizer = DroneVisualizer(params=sim.config.params, port=port)

    print("[2/2] Setting up plots...")
    plot_manager = PlotManager(visualizer.server, visualizer.plot_data)

    print()
    print("-" * 60)
    print(f"  Server running at: http://localhost:{port}")
    print("-" * 60)
    print()
    print("Controls:")
    print("  - 'Toggle Engine' starts in Auto (PID altitude hold)")
    print("  - 'Toggle Auto/Manual' switches to direct thrust control")
    print("  - Raise/Lower Target adjust the altitude setpoint")
    print("  - Attitude buttons nudge pitch/roll/yaw rates")
    print("  - 'Reset Target' only works with the engine off")
    print()
    print("Press Ctrl+C to stop the server.")
    print()

    def on_reset():
        sim.reset()
        print("Drone reset to initial state")

    visualizer.on_reset = on_reset

    target_dt = 1.0 / 60.0  # 60 Hz visualization update
    plot_update_interval = 5  # Update plots every N frames

    last_time = time.time()
    frame_count = 0

    try:
        while True:
            current_time = time.time()
            dt = current_time - last_time

            # Rate limiting - wait if we're running too fast
            if dt < target_dt:
                time.sleep(target_dt - dt)
                current_time = time.time()
                dt = current_time - last_time

            last_time = current_time

            if visualizer.is_paused():
                time.sleep(0.01)
                continue

            # Clamp dt to avoid long catch-up after stalls
            dt = min(dt, 0.1)

            state = sim.advance(dt, visualizer.drain_actions())
            if state is None:
                continue

            visualizer.update(state, sim.last_command, sim.control)

            frame_count += 1
            if frame_count % plot_update_interval == 0:
                plot_manager.update()

    except KeyboardInterrupt:
        print("\nShutting down...")


def main():
    """Main entry point for the hover simulator."""
    args = build_parser().parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    print("=" * 60)
    print("  Drone Hover Simulator")
    print("=" * 60)
    print()

    try:
        config = SimConfig.from_json(args.config) if args.config else SimConfig()
        sim = Simulation(config)
    except (OSError, ValueError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    if args.headless:
        run_headless(sim, args.duration, args.target, args.actions)
    else:
        run_viewer(sim, args.port)

    print("Goodbye!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
