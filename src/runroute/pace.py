"""
Pace, duration and distance formatting for display.
"""

from enum import Enum
from typing import Optional, Tuple, Union
import math

KM_TO_MILES = 0.621371
METERS_PER_MILE = 1609.344


class DistanceUnit(Enum):
    """Display unit for distances and paces."""

    KM = "km"
    MI = "mi"

    def __str__(self) -> str:
        return self.value


UnitLike = Union[DistanceUnit, str]


def _is_missing(value: Optional[float]) -> bool:
    return value is None or math.isnan(value)


def meters_per_second_to_min_per_km(mps: float) -> float:
    """Convert a speed in m/s to a pace in decimal minutes per km (0 if not moving)."""
    if _is_missing(mps) or mps <= 0:
        return 0.0
    return 1000.0 / mps / 60.0


def meters_per_second_to_min_per_mile(mps: float) -> float:
    """Convert a speed in m/s to a pace in decimal minutes per mile (0 if not moving)."""
    if _is_missing(mps) or mps <= 0:
        return 0.0
    return METERS_PER_MILE / mps / 60.0


def pace_min_per_km(distance: float, duration: float) -> float:
    """
    Average pace for a distance covered in a duration.

    Args:
        distance: Meters covered
        duration: Seconds taken

    Returns:
        Decimal minutes per kilometer, or 0.0 if either input is not positive
    """
    if _is_missing(distance) or _is_missing(duration):
        return 0.0
    if distance <= 0 or duration <= 0:
        return 0.0
    return (duration / 60.0) / (distance / 1000.0)


def decimal_minutes_to_time(decimal_minutes: float) -> Tuple[int, int]:
    """Split decimal minutes into whole (minutes, seconds), rounding to the second."""
    if _is_missing(decimal_minutes) or decimal_minutes <= 0:
        return 0, 0
    total_seconds = int(round(decimal_minutes * 60))
    return total_seconds // 60, total_seconds % 60


def format_pace(min_per_km: Optional[float], unit: UnitLike = DistanceUnit.KM) -> str:
    """
    Format a pace for display, e.g. "5:30 /km".

    Args:
        min_per_km: Pace in decimal minutes per kilometer
        unit: Display unit; miles are converted from the per-km pace

    Returns:
        Formatted pace, or "--:-- /<unit>" when the pace is unknown
    """
    unit = DistanceUnit(unit)
    if _is_missing(min_per_km) or min_per_km <= 0:
        return f"--:-- /{unit}"

    pace = min_per_km if unit == DistanceUnit.KM else min_per_km / KM_TO_MILES
    minutes, seconds = decimal_minutes_to_time(pace)
    return f"{minutes}:{seconds:02d} /{unit}"


def format_duration(seconds: Optional[float], include_hours: bool = False) -> str:
    """
    Format seconds as MM:SS, or HH:MM:SS once an hour has passed.

    Args:
        seconds: Duration in seconds
        include_hours: Always include the hours field

    Returns:
        Formatted duration; negative or missing values format as zero
    """
    if _is_missing(seconds) or seconds < 0:
        seconds = 0

    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)

    if hours > 0 or include_hours:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def format_distance(meters: Optional[float], unit: UnitLike = DistanceUnit.KM) -> str:
    """Format a distance in meters as e.g. "10.50 km" or "6.52 mi"."""
    unit = DistanceUnit(unit)
    if _is_missing(meters):
        meters = 0.0

    value = meters / 1000.0 if unit == DistanceUnit.KM else meters / METERS_PER_MILE
    return f"{value:.2f} {unit}"


def parse_pace(pace: str) -> Optional[float]:
    """
    Parse an "mm:ss" pace string.

    Args:
        pace: Pace such as "5:30"

    Returns:
        Decimal minutes, or None if the string is not a valid pace
    """
    parts = pace.strip().split(":")
    if len(parts) != 2:
        return None
    try:
        minutes = int(parts[0])
        seconds = int(parts[1])
    except ValueError:
        return None
    if minutes < 0 or not 0 <= seconds < 60:
        return None
    return minutes + seconds / 60.0
