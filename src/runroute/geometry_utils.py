#!/usr/bin/env python3
"""
Geometry and distance calculation utilities for route tracking.
"""

from enum import Enum
from typing import List, Sequence, Tuple
import logging
import math

from .geometry import Coordinate

logger = logging.getLogger(__name__)

# Mean Earth radius in meters (spherical model)
EARTH_RADIUS = 6371000.0


class TurnDirection(Enum):
    """Turn categories shown next to the compass."""

    STRAIGHT = "straight"
    SLIGHT_LEFT = "slight-left"
    SLIGHT_RIGHT = "slight-right"
    LEFT = "left"
    RIGHT = "right"
    SHARP_LEFT = "sharp-left"
    SHARP_RIGHT = "sharp-right"

    def __str__(self) -> str:
        return self.value


def haversine_distance(pos1: Coordinate, pos2: Coordinate) -> float:
    """
    Calculate the haversine distance between two positions.

    Args:
        pos1: First position
        pos2: Second position

    Returns:
        Distance in meters
    """
    lat1, lon1 = math.radians(pos1.latitude), math.radians(pos1.longitude)
    lat2, lon2 = math.radians(pos2.latitude), math.radians(pos2.longitude)

    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    )
    # Rounding can push a marginally above 1 for antipodal points
    c = 2 * math.asin(math.sqrt(min(1.0, a)))

    return EARTH_RADIUS * c


def calculate_bearing(pos1: Coordinate, pos2: Coordinate) -> float:
    """
    Calculate the initial great-circle bearing from pos1 to pos2.

    Identical positions carry no direction and yield 0.

    Args:
        pos1: Start position
        pos2: End position

    Returns:
        Bearing in degrees, in the range [0, 360)
    """
    if pos1.latitude == pos2.latitude and pos1.longitude == pos2.longitude:
        return 0.0

    lat1 = math.radians(pos1.latitude)
    lat2 = math.radians(pos2.latitude)
    dlon = math.radians(pos2.longitude - pos1.longitude)

    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(
        lat2
    ) * math.cos(dlon)

    bearing = math.degrees(math.atan2(y, x)) % 360.0
    # -0.0 % 360 and tiny negatives can round up to exactly 360.0
    if bearing >= 360.0:
        bearing = 0.0
    return bearing


def bearing_difference(from_bearing: float, to_bearing: float) -> float:
    """
    Signed smallest angle from one bearing to another.

    Args:
        from_bearing: Current heading in degrees
        to_bearing: Target heading in degrees

    Returns:
        Angle in degrees in (-180, 180]; positive means turn right
    """
    diff = (to_bearing - from_bearing) % 360.0
    if diff > 180.0:
        diff -= 360.0
    return diff


def classify_turn(delta: float) -> TurnDirection:
    """
    Bucket a signed bearing change into a turn direction.

    Args:
        delta: Signed bearing change in degrees (see bearing_difference)

    Returns:
        TurnDirection for display
    """
    magnitude = abs(delta)
    if magnitude < 30.0:
        return TurnDirection.STRAIGHT
    if magnitude < 60.0:
        return TurnDirection.SLIGHT_RIGHT if delta > 0 else TurnDirection.SLIGHT_LEFT
    if magnitude < 120.0:
        return TurnDirection.RIGHT if delta > 0 else TurnDirection.LEFT
    return TurnDirection.SHARP_RIGHT if delta > 0 else TurnDirection.SHARP_LEFT


def closest_point_on_segment(
    point: Coordinate, seg_start: Coordinate, seg_end: Coordinate
) -> Tuple[Coordinate, float, float]:
    """
    Find the closest point on a line segment to a given point.

    The projection is done in a local equirectangular frame anchored at
    seg_start, which is accurate at running-route scales. The projection
    parameter is clamped so the result never leaves the segment.

    Args:
        point: Point to project
        seg_start: Start of line segment
        seg_end: End of line segment

    Returns:
        Tuple of (closest_point, distance_m, t) where:
        - closest_point: Coordinate of the closest point on the segment
        - distance_m: Haversine distance from point to closest_point
        - t: Parameter (0-1) along the segment (0=start, 1=end)
    """
    cos_lat_avg = math.cos(math.radians((seg_start.latitude + seg_end.latitude) / 2))

    # Offsets from seg_start in (scaled) degrees; the common factor cancels in t
    x_p = (point.longitude - seg_start.longitude) * cos_lat_avg
    y_p = point.latitude - seg_start.latitude
    dx = (seg_end.longitude - seg_start.longitude) * cos_lat_avg
    dy = seg_end.latitude - seg_start.latitude

    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return seg_start, haversine_distance(point, seg_start), 0.0

    t = (x_p * dx + y_p * dy) / length_sq
    t = max(0.0, min(1.0, t))

    if t == 0.0:
        closest = seg_start
    elif t == 1.0:
        closest = seg_end
    else:
        closest = Coordinate(
            latitude=seg_start.latitude + t * (seg_end.latitude - seg_start.latitude),
            longitude=seg_start.longitude
            + t * (seg_end.longitude - seg_start.longitude),
        )

    return closest, haversine_distance(point, closest), t


def calculate_cumulative_distances(coords: Sequence[Coordinate]) -> List[float]:
    """
    Calculate cumulative distances along a sequence of coordinates.

    Args:
        coords: Coordinates in travel order

    Returns:
        List of cumulative distances in meters, with same length as coords
    """
    if not coords:
        return []

    cumulative_distances = [0.0]
    for i in range(1, len(coords)):
        segment_distance = haversine_distance(coords[i - 1], coords[i])
        cumulative_distances.append(cumulative_distances[-1] + segment_distance)

    return cumulative_distances
