"""
Core data types and projection helpers for route tracking.

This module provides the immutable Coordinate and ProjectionResult types,
plus helpers for creating a route-centred map projection (Transverse
Mercator) and converting coordinate lists to Shapely LineString objects.
"""

from typing import List, NamedTuple, Optional, Tuple
from shapely.geometry import LineString
import pyproj


class Coordinate(NamedTuple):
    """Represents a geographic fix or waypoint in decimal degrees."""

    latitude: float
    longitude: float
    altitude: Optional[float] = None
    timestamp: Optional[float] = None


class ProjectionResult(NamedTuple):
    """Closest point on a route for a single position."""

    point: Coordinate  # Closest point on the matched segment
    distance: float  # Meters from the position to point
    segment_index: int
    fraction: float = 0.0  # Clamped projection parameter along the segment


def create_transverse_mercator_projection(
    bbox: Tuple[float, float, float, float],
) -> pyproj.Proj:
    """
    Create a custom transverse mercator projection centered on the given bounding box.

    Args:
        bbox: Tuple of (south, west, north, east) in decimal degrees

    Returns:
        pyproj.Proj object for the custom projection
    """
    south, west, north, east = bbox

    center_lat = (south + north) / 2.0
    center_lon = (west + east) / 2.0

    proj_string = f"+proj=tmerc +lat_0={center_lat} +lon_0={center_lon} +k=1 +x_0=0 +y_0=0 +datum=WGS84 +units=m +no_defs"
    return pyproj.Proj(proj_string)


def project_coordinates(
    coords: List[Coordinate], projection: pyproj.Proj
) -> List[Tuple[float, float]]:
    """
    Project coordinates to (x, y) tuples in meters.

    Args:
        coords: Coordinates to project
        projection: pyproj.Proj returned by create_transverse_mercator_projection

    Returns:
        List of (x, y) tuples, one per coordinate
    """
    lons = [coord.longitude for coord in coords]
    lats = [coord.latitude for coord in coords]
    x_coords, y_coords = projection(lons, lats)
    return list(zip(x_coords, y_coords))


def coords_to_polyline(
    coords: List[Coordinate], projection: Optional[pyproj.Proj] = None
) -> LineString:
    """
    Convert a list of coordinates to a Shapely LineString.

    Args:
        coords: List of Coordinate objects
        projection: Optional pyproj.Proj object for coordinate transformation.
                   If None, uses (longitude, latitude) directly.

    Returns:
        LineString object in projected coordinates if projection is provided,
        otherwise in geographic coordinates

    Raises:
        ValueError: If coords has less than 2 points
    """
    if len(coords) < 2:
        raise ValueError("At least two positions are required to create a LineString.")

    if projection is not None:
        return LineString(project_coordinates(coords, projection))

    return LineString([(coord.longitude, coord.latitude) for coord in coords])
