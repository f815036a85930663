#!/usr/bin/env python3
"""
Route replay tool.

Replays a recorded GPX track against a planned GPX route through the
progress tracker and prints progress, splits and a workout summary.

Requirements:
    pip install gpxpy shapely pyproj

"""

from typing import List
import argparse
import logging
import sys
from gpxpy import gpx

from . import __version__
from .config import RunrouteConfig
from .errors import InvalidRouteError
from .geometry import Coordinate
from .metrics import log_metrics
from .pace import DistanceUnit, format_distance, format_duration, format_pace
from .route import Route, read_gpx_coordinates
from .splits import Split
from .tracker import ProgressTracker, RouteProgressState
from .workout import build_workout_entry

logger = logging.getLogger("runroute")


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the command-line argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    defaults = RunrouteConfig()
    parser = argparse.ArgumentParser(
        description="Replay a recorded GPX track against a planned route",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "route",
        type=str,
        nargs="?",
        help="GPX file with the planned route",
    )
    parser.add_argument(
        "track",
        type=str,
        nargs="?",
        help="GPX file with the recorded track",
    )
    parser.add_argument(
        "--off-route-threshold",
        type=float,
        default=defaults.off_route_threshold,
        help=f"Distance from the route in meters that counts as off-route (default: {defaults.off_route_threshold})",
    )
    parser.add_argument(
        "--split-distance",
        type=float,
        default=defaults.split_distance,
        help=f"Split length in meters (default: {defaults.split_distance})",
    )
    parser.add_argument(
        "--unit",
        type=str,
        default=defaults.display_unit,
        choices=[unit.value for unit in DistanceUnit],
        help=f"Display unit (default: {defaults.display_unit})",
    )
    parser.add_argument(
        "--simplify",
        type=float,
        default=defaults.simplify_tolerance,
        help="Simplify the route with this tolerance in meters before tracking (default: off)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=defaults.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help=f"Set logging level (default: {defaults.log_level})",
    )
    parser.add_argument(
        "--metrics",
        action="store_true",
        help="Output structured metrics after processing",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"runroute {__version__}",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> RunrouteConfig:
    """Build a RunrouteConfig from parsed arguments."""
    return RunrouteConfig(
        off_route_threshold=args.off_route_threshold,
        split_distance=args.split_distance,
        simplify_tolerance=args.simplify,
        display_unit=args.unit,
        log_level=args.log_level,
        metrics=args.metrics,
    )


def setup_logging(config: RunrouteConfig) -> None:
    """Setup logging configuration."""
    level = getattr(logging, config.log_level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    # Configure the root logger so all modules inherit the configuration
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)


def format_progress_line(
    index: int, state: RouteProgressState, bearing: float, unit: DistanceUnit
) -> str:
    """
    Format one replayed fix for display.

    Args:
        index: 1-based fix number
        state: Progress after the fix
        bearing: Bearing to the next waypoint in degrees
        unit: Display unit

    Returns:
        A single line of text
    """
    flags = []
    if state.off_route:
        flags.append("OFF ROUTE")
    if state.noise_held:
        flags.append("held")
    suffix = f" [{', '.join(flags)}]" if flags else ""
    return (
        f"{index:5d} {format_distance(state.distance_along_route, unit)} "
        f"{state.progress_fraction * 100:5.1f}% "
        f"remaining {format_distance(state.distance_remaining, unit)} "
        f"off {state.off_route_distance:6.1f} m "
        f"bearing {bearing:5.1f}°{suffix}"
    )


def print_splits(splits: List[Split], unit: DistanceUnit) -> None:
    """Print a split table."""
    if not splits:
        print("No splits recorded")
        return

    print("Splits:")
    for split in splits:
        print(
            f"{split.number:3d} {format_distance(split.distance, unit)} "
            f"{format_duration(split.duration)} {format_pace(split.pace, unit)}"
        )


def replay(
    route: Route, fixes: List[Coordinate], config: RunrouteConfig
) -> ProgressTracker:
    """
    Replay recorded fixes through a tracker session, printing each fix.

    Args:
        route: Planned route
        fixes: Recorded fixes in time order
        config: Tracking configuration

    Returns:
        The tracker, idle again, with the session metrics
    """
    unit = DistanceUnit(config.display_unit)
    tracker = ProgressTracker(config)
    with tracker.session(route):
        for i, fix in enumerate(fixes, start=1):
            state = tracker.update(fix)
            bearing = tracker.bearing_to_next_waypoint(fix)
            print(format_progress_line(i, state, bearing, unit))
    return tracker


def main():
    """
    Parses command-line arguments, loads the route and track,
    and replays the track against the route.
    """
    parser = create_argument_parser()
    args = parser.parse_args()

    if not args.route or not args.track:
        parser.print_help()
        sys.exit(1)

    config = config_from_args(args)
    setup_logging(config)

    if config.split_distance <= 0:
        logger.error(
            f"Split distance must be greater than 0, got {config.split_distance}"
        )
        sys.exit(1)

    try:
        route = Route.from_file(args.route, config.simplify_tolerance)
        with open(args.track, "r", encoding="utf-8") as f:
            fixes = read_gpx_coordinates(f)
    except FileNotFoundError as e:
        logger.error(f"GPX file not found: {e.filename}")
        sys.exit(1)
    except PermissionError as e:
        logger.error(f"Cannot read GPX file (permission denied): {e.filename}")
        sys.exit(1)
    except gpx.GPXException as e:
        logger.error(f"Invalid GPX file: {e}")
        sys.exit(1)
    except InvalidRouteError as e:
        logger.error(f"Invalid route: {e}")
        sys.exit(1)

    logger.info(f"Loaded route with {len(route)} waypoints")
    logger.info(f"Total route distance: {route.total_length / 1000:.2f} km")
    logger.info(f"Replaying {len(fixes)} fixes")

    tracker = replay(route, fixes, config)

    unit = DistanceUnit(config.display_unit)
    entry = build_workout_entry(
        fixes,
        config.split_distance,
        route_progress=(
            tracker.metrics.final_distance_along_route / route.total_length
            if route.total_length > 0
            else 0.0
        ),
    )
    print_splits(entry.splits, unit)
    print(
        f"Workout: {format_distance(entry.distance, unit)} in "
        f"{format_duration(entry.duration)} ({entry.formatted_pace(unit)}), "
        f"route {entry.route_progress * 100:.1f}% complete"
    )

    log_metrics(tracker.metrics, config)


if __name__ == "__main__":
    main()
