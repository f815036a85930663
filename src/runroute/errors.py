"""
Exceptions raised by the route tracking engine.
"""


class TrackingError(Exception):
    """Base class for route tracking errors."""


class InvalidRouteError(TrackingError, ValueError):
    """Raised when a route cannot be loaded (e.g. it has no waypoints)."""


class InvalidStateError(TrackingError, RuntimeError):
    """Raised when the tracker is used outside of an active session."""
