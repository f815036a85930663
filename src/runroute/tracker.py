#!/usr/bin/env python3
"""
Progress tracking against a planned route.

ProgressTracker is a two-state machine (idle / tracking) that owns the
progress state for one workout session. Feed it one fix at a time from a
single consumer; it does no locking of its own.

Progress never goes backwards: a fix whose projection lands behind the
stored distance-along-route is treated as GPS noise and the stored progress
is held, while the off-route distance for that fix is still reported. A
runner who genuinely backtracks therefore sees no decrease either.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Sequence, Tuple, Union
import logging

from .config import RunrouteConfig
from .errors import InvalidStateError
from .geometry import Coordinate, ProjectionResult
from .geometry_utils import (
    TurnDirection,
    bearing_difference,
    calculate_bearing,
    classify_turn,
    closest_point_on_segment,
    haversine_distance,
)
from .matcher import match_position
from .metrics import TrackingMetrics
from .route import Route

logger = logging.getLogger(__name__)


class TrackerState(Enum):
    """Lifecycle state of a ProgressTracker."""

    IDLE = "idle"
    TRACKING = "tracking"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class RouteProgressState:
    """Progress snapshot returned for every fix."""

    distance_along_route: float  # Meters, never decreases within a session
    segment_index: int
    total_length: float
    off_route_distance: float  # Meters from the fix to the route
    distance_remaining: float
    progress_fraction: float  # 0.0 - 1.0
    projection: ProjectionResult  # Raw match for this fix
    noise_held: bool = False
    off_route: bool = False


class ProgressTracker:
    """
    Stateful progress tracker for a single workout session.

    Usage:
        tracker = ProgressTracker(config)
        with tracker.session(route):
            for fix in fixes:
                state = tracker.update(fix)
    """

    def __init__(self, config: Optional[RunrouteConfig] = None) -> None:
        self.config = config or RunrouteConfig()
        self._state = TrackerState.IDLE
        self._route: Optional[Route] = None
        self._distance_along_route = 0.0
        self._segment_index = 0
        self._progress: Optional[RouteProgressState] = None
        self.metrics = TrackingMetrics()

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def is_tracking(self) -> bool:
        return self._state == TrackerState.TRACKING

    @property
    def route(self) -> Optional[Route]:
        return self._route

    @property
    def progress(self) -> Optional[RouteProgressState]:
        """State returned by the latest update, or None before the first fix."""
        return self._progress

    def load_route(self, route: Union[Route, Sequence[Coordinate]]) -> None:
        """
        Load a route and start tracking with fresh state.

        Args:
            route: Route or sequence of waypoints

        Raises:
            InvalidRouteError: If the route has no waypoints.
        """
        if not isinstance(route, Route):
            route = Route(route)

        self._route = route
        self._distance_along_route = 0.0
        self._segment_index = 0
        self._progress = None
        self.metrics = TrackingMetrics()
        self._state = TrackerState.TRACKING

        logger.debug(
            f"Tracking route with {len(route)} waypoints "
            f"({route.total_length:.1f} m)"
        )

    def reset(self) -> None:
        """Discard all progress and return to idle."""
        self._route = None
        self._distance_along_route = 0.0
        self._segment_index = 0
        self._progress = None
        self._state = TrackerState.IDLE

    def end_session(self) -> None:
        """End the current session; equivalent to reset()."""
        if self.is_tracking:
            logger.info(
                f"Session ended after {self.metrics.fixes} fixes at "
                f"{self._distance_along_route:.1f} m along route"
            )
        self.reset()

    @contextmanager
    def session(
        self, route: Union[Route, Sequence[Coordinate]]
    ) -> Iterator["ProgressTracker"]:
        """
        Track a route for the duration of a with-block.

        Args:
            route: Route or sequence of waypoints

        Yields:
            This tracker, in the tracking state
        """
        self.load_route(route)
        try:
            yield self
        finally:
            self.end_session()

    def update(self, position: Coordinate) -> RouteProgressState:
        """
        Process one fix.

        Args:
            position: Current position

        Returns:
            RouteProgressState for this fix

        Raises:
            InvalidStateError: If no route is loaded.
        """
        if not self.is_tracking or self._route is None:
            raise InvalidStateError("update() called with no route loaded")

        route = self._route
        projection = match_position(route, position, self.config.tie_epsilon)

        if route.segment_count == 0:
            candidate = 0.0
        else:
            candidate = route.distance_at(projection.segment_index, projection.point)

        if candidate < self._distance_along_route:
            forward = self._match_forward(position, projection.distance)
            if forward is not None:
                projection, candidate = forward

        noise_held = candidate < self._distance_along_route
        if noise_held:
            logger.debug(
                f"Holding progress at {self._distance_along_route:.1f} m "
                f"(fix projects to {candidate:.1f} m)"
            )
        else:
            self._distance_along_route = candidate
            self._segment_index = max(self._segment_index, projection.segment_index)

        total_length = route.total_length
        progress_fraction = (
            self._distance_along_route / total_length if total_length > 0 else 0.0
        )

        state = RouteProgressState(
            distance_along_route=self._distance_along_route,
            segment_index=self._segment_index,
            total_length=total_length,
            off_route_distance=projection.distance,
            distance_remaining=max(0.0, total_length - self._distance_along_route),
            progress_fraction=progress_fraction,
            projection=projection,
            noise_held=noise_held,
            off_route=projection.distance > self.config.off_route_threshold,
        )
        self._progress = state
        self.metrics.record(state)
        return state

    def _match_forward(
        self, position: Coordinate, best_distance: float
    ) -> Optional[Tuple[ProjectionResult, float]]:
        """
        Look for a segment at or after the current one that ties with the best match.

        Out-and-back and loop routes cover the same ground twice, and the
        lower-index tie rule pins fixes on the way back to the outbound leg.
        Only segments starting within off_route_threshold of the stored
        progress are considered, so noise early on the outbound leg cannot
        jump to the return leg.

        Args:
            position: Current position
            best_distance: Distance in meters of the lowest-index match

        Returns:
            Tuple of (projection, distance along route), or None if no later
            segment ties without going backwards
        """
        route = self._route
        reach = self._distance_along_route + self.config.off_route_threshold
        for i in range(self._segment_index, route.segment_count):
            if route.cumulative_distances[i] > reach:
                break
            start, end = route.segment(i)
            closest, distance, t = closest_point_on_segment(position, start, end)
            if distance > best_distance + self.config.tie_epsilon:
                continue
            candidate = route.distance_at(i, closest)
            if candidate >= self._distance_along_route:
                logger.debug(f"Fix re-matched forward to segment {i}")
                projection = ProjectionResult(
                    point=closest, distance=distance, segment_index=i, fraction=t
                )
                return projection, candidate
        return None

    @property
    def next_waypoint(self) -> Optional[Coordinate]:
        """The waypoint at the end of the current segment."""
        if self._route is None:
            return None
        index = min(self._segment_index + 1, len(self._route) - 1)
        return self._route[index]

    def bearing_to_next_waypoint(self, position: Coordinate) -> float:
        """
        Compass bearing from a position to the upcoming waypoint.

        Args:
            position: Current position

        Returns:
            Bearing in degrees [0, 360)

        Raises:
            InvalidStateError: If no route is loaded.
        """
        waypoint = self.next_waypoint
        if not self.is_tracking or waypoint is None:
            raise InvalidStateError("No route loaded")
        return calculate_bearing(position, waypoint)

    def distance_to_next_waypoint(self, position: Coordinate) -> float:
        """
        Straight-line distance in meters from a position to the upcoming waypoint.

        Raises:
            InvalidStateError: If no route is loaded.
        """
        waypoint = self.next_waypoint
        if not self.is_tracking or waypoint is None:
            raise InvalidStateError("No route loaded")
        return haversine_distance(position, waypoint)

    def turn_at_next_waypoint(self) -> Optional[TurnDirection]:
        """
        Direction of the turn where the current segment meets the next one.

        Returns:
            TurnDirection, or None on the last segment

        Raises:
            InvalidStateError: If no route is loaded.
        """
        if not self.is_tracking or self._route is None:
            raise InvalidStateError("No route loaded")

        i = self._segment_index
        if i + 2 >= len(self._route):
            return None
        start, corner, after = self._route[i], self._route[i + 1], self._route[i + 2]
        delta = bearing_difference(
            calculate_bearing(start, corner), calculate_bearing(corner, after)
        )
        return classify_turn(delta)
