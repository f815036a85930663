#!/usr/bin/env python3
"""
Runroute - route matching and progress tracking for running workouts.

This package matches a live stream of GPS fixes against a planned route,
tracks how much of the route has been completed, and turns the resulting
distance/time stream into splits and display strings.
"""
import importlib.metadata

__version__ = importlib.metadata.version("runroute")

# Import main classes for public API
from .errors import InvalidRouteError, InvalidStateError, TrackingError
from .geometry import Coordinate, ProjectionResult
from .geometry_utils import (
    TurnDirection,
    calculate_bearing,
    closest_point_on_segment,
    haversine_distance,
)
from .matcher import match_position
from .route import Route
from .splits import Split, SplitComputer
from .tracker import ProgressTracker, RouteProgressState, TrackerState

__all__ = [
    "Coordinate",
    "InvalidRouteError",
    "InvalidStateError",
    "ProgressTracker",
    "ProjectionResult",
    "Route",
    "RouteProgressState",
    "Split",
    "SplitComputer",
    "TrackerState",
    "TrackingError",
    "TurnDirection",
    "calculate_bearing",
    "closest_point_on_segment",
    "haversine_distance",
    "match_position",
]
