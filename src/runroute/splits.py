#!/usr/bin/env python3
"""
Fixed-distance split computation.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence
import logging

from .geometry import Coordinate
from .geometry_utils import haversine_distance
from .pace import pace_min_per_km

logger = logging.getLogger(__name__)


@dataclass
class Split:
    """One slice of a workout."""

    number: int  # 1-based
    distance: float  # Meters
    duration: float  # Seconds

    @property
    def pace(self) -> float:
        """Pace over the split in decimal minutes per km."""
        return pace_min_per_km(self.distance, self.duration)


class SplitComputer:
    """
    Slices a cumulative distance/time stream into fixed-distance splits.

    Samples are (cumulative distance, elapsed seconds) pairs in time order.
    The time a split boundary is crossed is interpolated linearly between
    the two samples that straddle it.
    """

    def __init__(self, split_distance: float = 1000.0):
        if split_distance <= 0:
            raise ValueError("Split distance must be greater than 0")
        self.split_distance = split_distance
        self._splits: List[Split] = []
        self._last_distance = 0.0
        self._last_elapsed = 0.0
        self._split_start_elapsed = 0.0

    @property
    def splits(self) -> List[Split]:
        """Completed splits so far."""
        return list(self._splits)

    def add(self, distance: float, elapsed: float) -> List[Split]:
        """
        Add a sample.

        Args:
            distance: Cumulative distance in meters
            elapsed: Seconds since the workout started

        Returns:
            Splits completed by this sample (possibly several, usually none)

        Raises:
            ValueError: If distance is lower than the previous sample.
        """
        if distance < self._last_distance:
            raise ValueError(
                f"Cumulative distance decreased from {self._last_distance:.1f} "
                f"to {distance:.1f} m"
            )

        completed: List[Split] = []
        boundary = (len(self._splits) + 1) * self.split_distance
        while distance >= boundary:
            t = (boundary - self._last_distance) / (distance - self._last_distance)
            boundary_elapsed = self._last_elapsed + t * (elapsed - self._last_elapsed)

            split = Split(
                number=len(self._splits) + 1,
                distance=self.split_distance,
                duration=boundary_elapsed - self._split_start_elapsed,
            )
            self._splits.append(split)
            completed.append(split)
            logger.debug(
                f"Split {split.number} completed in {split.duration:.1f} s"
            )

            self._split_start_elapsed = boundary_elapsed
            boundary += self.split_distance

        self._last_distance = distance
        self._last_elapsed = elapsed
        return completed

    def finish(self, elapsed: Optional[float] = None) -> Optional[Split]:
        """
        Return the trailing partial split.

        Args:
            elapsed: Final elapsed seconds; defaults to the last sample's

        Returns:
            Split covering the distance after the last full split, or None
        """
        remaining = self._last_distance - len(self._splits) * self.split_distance
        if remaining <= 0:
            return None
        end = self._last_elapsed if elapsed is None else elapsed
        return Split(
            number=len(self._splits) + 1,
            distance=remaining,
            duration=end - self._split_start_elapsed,
        )


def compute_splits(
    coordinates: Sequence[Coordinate], split_distance: float = 1000.0
) -> List[Split]:
    """
    Compute splits for a recorded sequence of timestamped fixes.

    Args:
        coordinates: Fixes in time order, each with a timestamp
        split_distance: Split length in meters

    Returns:
        Completed splits followed by the trailing partial split, if any

    Raises:
        ValueError: If a coordinate has no timestamp.
    """
    computer = SplitComputer(split_distance)
    if not coordinates:
        return []

    if any(coord.timestamp is None for coord in coordinates):
        raise ValueError("Split computation requires timestamped coordinates")

    start = coordinates[0].timestamp
    distance = 0.0
    for previous, current in zip(coordinates, coordinates[1:]):
        distance += haversine_distance(previous, current)
        computer.add(distance, current.timestamp - start)

    splits = computer.splits
    partial = computer.finish()
    if partial is not None:
        splits.append(partial)
    return splits
