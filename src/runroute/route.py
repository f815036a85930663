#!/usr/bin/env python3
"""
Route data model for progress tracking.
"""

from typing import Iterable, List, Optional, TextIO, Tuple
import logging
import gpxpy
import gpxpy.gpx

from .errors import InvalidRouteError
from .geometry import (
    Coordinate,
    create_transverse_mercator_projection,
    coords_to_polyline,
)
from .geometry_utils import calculate_cumulative_distances, haversine_distance

logger = logging.getLogger(__name__)


def _gpx_point_to_coordinate(point) -> Coordinate:
    timestamp = point.time.timestamp() if point.time is not None else None
    return Coordinate(
        latitude=point.latitude,
        longitude=point.longitude,
        altitude=point.elevation,
        timestamp=timestamp,
    )


def read_gpx_coordinates(file_input: TextIO) -> List[Coordinate]:
    """
    Parse GPX data into a flat list of coordinates.

    Track points from all tracks and segments are concatenated. If the file
    has no track points, route points (<rte>) are used, and failing that the
    standalone waypoints.

    Args:
        file_input: File-like object containing GPX data

    Returns:
        List of Coordinate objects in file order (possibly empty)

    Raises:
        gpxpy.gpx.GPXException: If GPX data is malformed.
    """
    gpx_data = gpxpy.parse(file_input)

    coords = [
        _gpx_point_to_coordinate(point)
        for track in gpx_data.tracks
        for segment in track.segments
        for point in segment.points
    ]
    if not coords:
        coords = [
            _gpx_point_to_coordinate(point)
            for gpx_route in gpx_data.routes
            for point in gpx_route.points
        ]
    if not coords:
        coords = [_gpx_point_to_coordinate(point) for point in gpx_data.waypoints]

    logger.debug(f"Parsed {len(coords)} points from GPX data")
    return coords


class Route:
    """An ordered, read-only sequence of waypoints with precomputed distances."""

    def __init__(self, coords: Iterable[Coordinate]):
        """Initializes a Route object.

        Args:
            coords: Waypoints in travel order.

        Raises:
            InvalidRouteError: If coords is empty.
        """
        self.coords: List[Coordinate] = list(coords)
        if not self.coords:
            raise InvalidRouteError("Route must have at least one waypoint")

        self.cumulative_distances = calculate_cumulative_distances(self.coords)
        self.total_length = self.cumulative_distances[-1]
        self.bbox = self._calculate_bbox()

        logger.debug(
            f"Route created with {len(self.coords)} waypoints, "
            f"total length {self.total_length:.1f} m"
        )

    @property
    def segment_count(self) -> int:
        """Number of segments (zero for a single-point route)."""
        return max(0, len(self.coords) - 1)

    def segment(self, index: int) -> Tuple[Coordinate, Coordinate]:
        """Return the (start, end) waypoints of segment index."""
        if not 0 <= index < self.segment_count:
            raise IndexError(f"Segment index {index} out of range")
        return self.coords[index], self.coords[index + 1]

    def distance_at(self, segment_index: int, point: Coordinate) -> float:
        """
        Distance along the route to a point lying on a segment.

        Args:
            segment_index: Index of the segment the point lies on
            point: Point on that segment (e.g. a projection result)

        Returns:
            Meters from the route start, capped at the total length
        """
        distance = self.cumulative_distances[segment_index] + haversine_distance(
            self.coords[segment_index], point
        )
        return min(distance, self.total_length)

    def _calculate_bbox(self) -> Tuple[float, float, float, float]:
        latitudes = [coord.latitude for coord in self.coords]
        longitudes = [coord.longitude for coord in self.coords]
        return (min(latitudes), min(longitudes), max(latitudes), max(longitudes))

    def simplified(self, tolerance: float) -> "Route":
        """
        Return a route with fewer waypoints using Douglas-Peucker simplification.

        Simplification runs in a transverse mercator projection centred on the
        route, so the tolerance is in meters. Only original waypoints are kept,
        and the first and last waypoints are always kept.

        Args:
            tolerance: Maximum deviation in meters; <= 0 disables simplification

        Returns:
            A new Route, or self if nothing can be removed
        """
        if tolerance <= 0 or len(self.coords) < 3:
            return self

        projection = create_transverse_mercator_projection(self.bbox)
        line = coords_to_polyline(self.coords, projection)
        projected = list(line.coords)
        simple_line = line.simplify(tolerance, preserve_topology=True)

        # Simplification keeps a subset of input vertices in order; walk both
        # sequences to recover the original waypoints (and their metadata).
        kept: List[int] = []
        cursor = 0
        for xy in simple_line.coords:
            while cursor < len(projected) and projected[cursor] != tuple(xy):
                cursor += 1
            if cursor == len(projected):
                raise RuntimeError("Simplified geometry contains a non-original vertex")
            kept.append(cursor)
            cursor += 1

        if not kept or kept[0] != 0:
            kept.insert(0, 0)
        if kept[-1] != len(self.coords) - 1:
            kept.append(len(self.coords) - 1)

        if len(kept) == len(self.coords):
            return self

        logger.debug(
            f"Simplified route from {len(self.coords)} to {len(kept)} waypoints "
            f"with {tolerance} m tolerance"
        )
        return Route([self.coords[i] for i in kept])

    @classmethod
    def from_gpx(cls, file_input: TextIO) -> "Route":
        """
        Parse GPX data into a route.

        Args:
            file_input: File-like object containing GPX data

        Returns:
            Route object

        Raises:
            InvalidRouteError: If the GPX data contains no points.
            gpxpy.gpx.GPXException: If GPX data is malformed.
        """
        return cls(read_gpx_coordinates(file_input))

    @classmethod
    def from_file(cls, filename: str, simplify_tolerance: Optional[float] = None) -> "Route":
        """
        Load and parse a GPX file into a route.

        Args:
            filename: Path to GPX file
            simplify_tolerance: Optional simplification tolerance in meters

        Returns:
            Route object representing the route

        Raises:
            InvalidRouteError: If the file contains no points.
            FileNotFoundError: If file doesn't exist.
            PermissionError: If file can't be read.
            gpxpy.gpx.GPXException: If GPX file is malformed.
        """
        logger.debug(f"Reading GPX file: {filename}")
        with open(filename, "r", encoding="utf-8") as f:
            route = cls.from_gpx(f)
        if simplify_tolerance:
            route = route.simplified(simplify_tolerance)
        return route

    def __len__(self) -> int:
        """Return number of waypoints in route."""
        return len(self.coords)

    def __getitem__(self, index):
        """Allow indexing into waypoints."""
        return self.coords[index]

    def __iter__(self):
        """Allow iteration over waypoints."""
        return iter(self.coords)
