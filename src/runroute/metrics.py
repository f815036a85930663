"""
Module for collecting and logging metrics for a tracking session.
"""

import logging
from dataclasses import dataclass

from .config import RunrouteConfig

logger = logging.getLogger(__name__)


@dataclass
class TrackingMetrics:
    """Counters accumulated over one tracking session."""

    fixes: int = 0
    noise_held: int = 0
    off_route_fixes: int = 0
    max_off_route_distance: float = 0.0
    final_distance_along_route: float = 0.0

    def record(self, state) -> None:
        """
        Fold a RouteProgressState into the counters.

        Args:
            state: RouteProgressState returned by ProgressTracker.update
        """
        self.fixes += 1
        if state.noise_held:
            self.noise_held += 1
        if state.off_route:
            self.off_route_fixes += 1
        self.max_off_route_distance = max(
            self.max_off_route_distance, state.off_route_distance
        )
        self.final_distance_along_route = state.distance_along_route


def log_metrics(metrics: TrackingMetrics, config: RunrouteConfig) -> None:
    """
    Log session metrics as structured key=value lines.

    Args:
        metrics: TrackingMetrics for the finished session
        config: RunrouteConfig; nothing is logged unless metrics is enabled
    """
    if not config.metrics:
        return

    logger.debug("=== RUNROUTE_METRICS ===")
    logger.debug(f"fixes_processed={metrics.fixes}")
    logger.debug(f"noise_held_fixes={metrics.noise_held}")
    logger.debug(f"off_route_fixes={metrics.off_route_fixes}")
    logger.debug(f"max_off_route_distance={metrics.max_off_route_distance:.1f}")
    logger.debug(
        f"final_distance_along_route={metrics.final_distance_along_route:.1f}"
    )
    logger.debug("=== END_RUNROUTE_METRICS ===")
