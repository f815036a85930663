#!/usr/bin/env python3
"""
Nearest-segment search over a route.

Every segment is checked on each call, so matching is O(N) in the number of
waypoints. That is fine for running routes of a few thousand points; denser
routes should be reduced with Route.simplified() first.
"""

from typing import Sequence, Union
import logging

from .errors import InvalidRouteError
from .geometry import Coordinate, ProjectionResult
from .geometry_utils import closest_point_on_segment, haversine_distance
from .route import Route

logger = logging.getLogger(__name__)

DEFAULT_TIE_EPSILON = 1e-6  # meters


def match_position(
    route: Union[Route, Sequence[Coordinate]],
    position: Coordinate,
    tie_epsilon: float = DEFAULT_TIE_EPSILON,
) -> ProjectionResult:
    """
    Find the closest point on a route to a position.

    When two segments are equally close (within tie_epsilon meters) the one
    with the lower index wins, i.e. the part of the route not yet passed.

    Args:
        route: Route or sequence of waypoints
        position: Current position
        tie_epsilon: Distance in meters under which two candidates tie

    Returns:
        ProjectionResult for the closest segment

    Raises:
        InvalidRouteError: If the route has no waypoints
    """
    coords = route.coords if isinstance(route, Route) else route
    if not coords:
        raise InvalidRouteError("Cannot match a position against an empty route")

    if len(coords) == 1:
        return ProjectionResult(
            point=coords[0],
            distance=haversine_distance(position, coords[0]),
            segment_index=0,
            fraction=0.0,
        )

    best = None
    for i in range(len(coords) - 1):
        closest, distance, t = closest_point_on_segment(
            position, coords[i], coords[i + 1]
        )
        if best is None or distance < best.distance - tie_epsilon:
            best = ProjectionResult(
                point=closest, distance=distance, segment_index=i, fraction=t
            )

    return best
