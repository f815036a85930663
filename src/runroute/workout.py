"""
Workout summary populated from a recorded session.

Persisting the entry is left to the caller.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .geometry import Coordinate
from .geometry_utils import calculate_cumulative_distances
from .pace import DistanceUnit, UnitLike, format_pace, pace_min_per_km
from .splits import Split, compute_splits


@dataclass
class WorkoutEntry:
    """Finalized workout values."""

    duration: float  # Seconds
    distance: float  # Meters
    coordinates: List[Coordinate] = field(default_factory=list)
    splits: List[Split] = field(default_factory=list)
    start_time: Optional[float] = None
    route_progress: Optional[float] = None  # Progress fraction if a route was followed

    @property
    def average_pace(self) -> float:
        return pace_min_per_km(self.distance, self.duration)

    def formatted_pace(self, unit: UnitLike = DistanceUnit.KM) -> str:
        return format_pace(self.average_pace, unit)


def build_workout_entry(
    coordinates: Sequence[Coordinate],
    split_distance: float = 1000.0,
    route_progress: Optional[float] = None,
) -> WorkoutEntry:
    """
    Build a WorkoutEntry from recorded fixes.

    Args:
        coordinates: Fixes in time order
        split_distance: Split length in meters
        route_progress: Final progress fraction from a ProgressTracker

    Returns:
        WorkoutEntry; duration and splits are only filled in when every
        fix carries a timestamp
    """
    coords = list(coordinates)
    cumulative = calculate_cumulative_distances(coords)
    distance = cumulative[-1] if cumulative else 0.0

    timed = bool(coords) and all(coord.timestamp is not None for coord in coords)
    duration = coords[-1].timestamp - coords[0].timestamp if timed else 0.0
    splits = compute_splits(coords, split_distance) if timed else []

    return WorkoutEntry(
        duration=duration,
        distance=distance,
        coordinates=coords,
        splits=splits,
        start_time=coords[0].timestamp if coords else None,
        route_progress=route_progress,
    )
