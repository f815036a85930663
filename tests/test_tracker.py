import math
import pytest

from runroute.config import RunrouteConfig
from runroute.errors import InvalidRouteError, InvalidStateError
from runroute.geometry import Coordinate
from runroute.geometry_utils import EARTH_RADIUS, TurnDirection, haversine_distance
from runroute.route import Route
from runroute.tracker import ProgressTracker, TrackerState

MILLIDEGREE = EARTH_RADIUS * math.radians(0.001)

# A single ~111 m segment running due north along the prime meridian
SHORT_ROUTE = [
    Coordinate(latitude=0.0, longitude=0.0),
    Coordinate(latitude=0.001, longitude=0.0),
]

L_ROUTE = [
    Coordinate(latitude=0.0, longitude=0.0),
    Coordinate(latitude=0.001, longitude=0.0),
    Coordinate(latitude=0.001, longitude=0.001),
]

ZIGZAG_ROUTE = [
    Coordinate(latitude=47.000, longitude=8.000),
    Coordinate(latitude=47.002, longitude=8.000),
    Coordinate(latitude=47.002, longitude=8.003),
    Coordinate(latitude=47.005, longitude=8.003),
    Coordinate(latitude=47.005, longitude=8.006),
]


@pytest.fixture
def tracker():
    return ProgressTracker()


class TestLifecycle:

    def test_new_tracker_is_idle(self, tracker):
        assert tracker.state == TrackerState.IDLE
        assert not tracker.is_tracking
        assert tracker.route is None
        assert tracker.progress is None

    def test_load_route_starts_tracking(self, tracker):
        tracker.load_route(SHORT_ROUTE)

        assert tracker.state == TrackerState.TRACKING
        assert isinstance(tracker.route, Route)
        assert tracker.route.total_length == pytest.approx(MILLIDEGREE)

    def test_load_empty_route_is_invalid(self, tracker):
        with pytest.raises(InvalidRouteError):
            tracker.load_route([])
        assert tracker.state == TrackerState.IDLE

    def test_update_before_load_is_invalid_state(self, tracker):
        with pytest.raises(InvalidStateError):
            tracker.update(Coordinate(latitude=0.0, longitude=0.0))

    def test_update_after_reset_is_invalid_state(self, tracker):
        tracker.load_route(SHORT_ROUTE)
        tracker.update(Coordinate(latitude=0.0005, longitude=0.0))

        tracker.reset()

        assert tracker.state == TrackerState.IDLE
        assert tracker.progress is None
        with pytest.raises(InvalidStateError):
            tracker.update(Coordinate(latitude=0.0005, longitude=0.0))

    def test_end_session_returns_to_idle(self, tracker):
        tracker.load_route(SHORT_ROUTE)
        tracker.end_session()
        assert tracker.state == TrackerState.IDLE

    def test_reloading_route_discards_progress(self, tracker):
        tracker.load_route(SHORT_ROUTE)
        tracker.update(Coordinate(latitude=0.0009, longitude=0.0))

        tracker.load_route(SHORT_ROUTE)
        state = tracker.update(Coordinate(latitude=0.0001, longitude=0.0))

        assert state.distance_along_route == pytest.approx(0.1 * MILLIDEGREE)
        assert not state.noise_held

    def test_session_context_manager(self, tracker):
        with tracker.session(SHORT_ROUTE) as active:
            assert active is tracker
            assert tracker.is_tracking
            tracker.update(Coordinate(latitude=0.0005, longitude=0.0))

        assert tracker.state == TrackerState.IDLE

    def test_session_ends_when_block_raises(self, tracker):
        with pytest.raises(KeyError):
            with tracker.session(SHORT_ROUTE):
                raise KeyError("boom")

        assert tracker.state == TrackerState.IDLE

    def test_invalid_state_is_a_runtime_error(self, tracker):
        with pytest.raises(RuntimeError):
            tracker.update(Coordinate(latitude=0.0, longitude=0.0))


class TestScenarios:

    def test_midpoint_of_short_segment(self, tracker):
        tracker.load_route(SHORT_ROUTE)

        state = tracker.update(Coordinate(latitude=0.0005, longitude=0.0))

        assert state.segment_index == 0
        assert state.off_route_distance == pytest.approx(0.0, abs=1e-6)
        assert state.distance_along_route == pytest.approx(55.6, abs=0.1)
        assert state.progress_fraction == pytest.approx(0.5)
        assert state.distance_remaining == pytest.approx(MILLIDEGREE / 2)
        assert state.total_length == pytest.approx(MILLIDEGREE)

    def test_off_route_fix_after_midpoint(self, tracker):
        tracker.load_route(SHORT_ROUTE)
        first = tracker.update(Coordinate(latitude=0.0005, longitude=0.0))

        # ~111 m due east of the midpoint
        state = tracker.update(Coordinate(latitude=0.0005, longitude=0.001))

        assert state.off_route_distance == pytest.approx(MILLIDEGREE, rel=1e-6)
        assert state.projection.point.latitude == pytest.approx(0.0005)
        assert state.projection.point.longitude == pytest.approx(0.0)
        assert state.distance_along_route >= first.distance_along_route
        assert state.distance_along_route == pytest.approx(first.distance_along_route)
        assert state.off_route
        assert not first.off_route

    def test_corner_waypoint_matches_lower_segment(self, tracker):
        tracker.load_route(L_ROUTE)

        state = tracker.update(L_ROUTE[1])

        assert state.segment_index == 0
        assert state.projection.segment_index == 0
        assert state.off_route_distance == pytest.approx(0.0, abs=1e-6)
        assert state.distance_along_route == pytest.approx(
            haversine_distance(L_ROUTE[0], L_ROUTE[1])
        )

    def test_failures(self, tracker):
        with pytest.raises(InvalidRouteError):
            tracker.load_route([])
        with pytest.raises(InvalidStateError):
            ProgressTracker().update(Coordinate(latitude=0.0, longitude=0.0))

    @pytest.mark.parametrize("steps_per_segment", [1, 2, 10])
    def test_tracing_every_waypoint_completes_route(self, tracker, steps_per_segment):
        tracker.load_route(ZIGZAG_ROUTE)

        fixes = []
        for start, end in zip(ZIGZAG_ROUTE, ZIGZAG_ROUTE[1:]):
            for step in range(steps_per_segment):
                t = step / steps_per_segment
                fixes.append(
                    Coordinate(
                        latitude=start.latitude + t * (end.latitude - start.latitude),
                        longitude=start.longitude
                        + t * (end.longitude - start.longitude),
                    )
                )
        fixes.append(ZIGZAG_ROUTE[-1])

        for fix in fixes:
            state = tracker.update(fix)

        assert state.progress_fraction == pytest.approx(1.0)
        assert state.distance_remaining == pytest.approx(0.0, abs=1e-6)
        assert state.segment_index == len(ZIGZAG_ROUTE) - 2


class TestMonotonicity:

    def test_backwards_fix_is_held_as_noise(self, tracker):
        tracker.load_route(SHORT_ROUTE)
        ahead = tracker.update(Coordinate(latitude=0.0008, longitude=0.0))

        behind = tracker.update(Coordinate(latitude=0.0002, longitude=0.00001))

        assert behind.noise_held
        assert behind.distance_along_route == ahead.distance_along_route
        assert behind.progress_fraction == ahead.progress_fraction
        # The raw projection and off-route distance still describe this fix
        assert behind.projection.point.latitude == pytest.approx(0.0002)
        assert behind.off_route_distance == pytest.approx(
            0.01 * MILLIDEGREE, rel=1e-3
        )

    def test_segment_index_never_moves_backward(self, tracker):
        tracker.load_route(L_ROUTE)
        tracker.update(Coordinate(latitude=0.001, longitude=0.0008))

        state = tracker.update(Coordinate(latitude=0.0003, longitude=0.0))

        assert state.segment_index == 1
        assert state.projection.segment_index == 0
        assert state.noise_held

    def test_progress_resumes_after_noise(self, tracker):
        tracker.load_route(SHORT_ROUTE)
        tracker.update(Coordinate(latitude=0.0005, longitude=0.0))
        tracker.update(Coordinate(latitude=0.0003, longitude=0.0))

        state = tracker.update(Coordinate(latitude=0.0007, longitude=0.0))

        assert not state.noise_held
        assert state.distance_along_route == pytest.approx(0.7 * MILLIDEGREE)

    def test_repeated_identical_fix_is_stable(self, tracker):
        tracker.load_route(L_ROUTE)
        position = Coordinate(latitude=0.0006, longitude=0.0001)

        tracker.update(position)
        second = tracker.update(position)
        third = tracker.update(position)

        assert second == third
        assert tracker.progress == third


class TestDegenerateRoutes:

    def test_single_point_route(self, tracker):
        waypoint = Coordinate(latitude=1.0, longitude=1.0)
        tracker.load_route([waypoint])

        state = tracker.update(Coordinate(latitude=1.001, longitude=1.0))

        assert state.total_length == 0.0
        assert state.distance_along_route == 0.0
        assert state.distance_remaining == 0.0
        assert state.progress_fraction == 0.0
        assert state.off_route_distance == pytest.approx(MILLIDEGREE)

    def test_route_with_zero_length_segment(self, tracker):
        tracker.load_route(
            [
                Coordinate(latitude=0.0, longitude=0.0),
                Coordinate(latitude=0.0, longitude=0.0),
                Coordinate(latitude=0.001, longitude=0.0),
            ]
        )

        state = tracker.update(Coordinate(latitude=0.0005, longitude=0.0))

        assert state.progress_fraction == pytest.approx(0.5)


class TestCompassSupport:

    def test_bearing_to_next_waypoint(self, tracker):
        tracker.load_route(L_ROUTE)

        assert tracker.next_waypoint == L_ROUTE[1]
        assert tracker.bearing_to_next_waypoint(L_ROUTE[0]) == pytest.approx(
            0.0, abs=1e-6
        )

        tracker.update(Coordinate(latitude=0.001, longitude=0.0005))

        assert tracker.next_waypoint == L_ROUTE[2]
        assert tracker.bearing_to_next_waypoint(
            Coordinate(latitude=0.001, longitude=0.0005)
        ) == pytest.approx(90.0, abs=1e-3)

    def test_turn_at_next_waypoint(self, tracker):
        tracker.load_route(L_ROUTE)

        assert tracker.turn_at_next_waypoint() == TurnDirection.RIGHT

        tracker.update(Coordinate(latitude=0.001, longitude=0.0005))

        assert tracker.turn_at_next_waypoint() is None

    def test_compass_requires_route(self, tracker):
        with pytest.raises(InvalidStateError):
            tracker.bearing_to_next_waypoint(Coordinate(latitude=0.0, longitude=0.0))
        with pytest.raises(InvalidStateError):
            tracker.turn_at_next_waypoint()


class TestConfigAndMetrics:

    def test_off_route_threshold_from_config(self):
        tracker = ProgressTracker(RunrouteConfig(off_route_threshold=10.0))
        tracker.load_route(SHORT_ROUTE)

        state = tracker.update(Coordinate(latitude=0.0005, longitude=0.0002))

        assert state.off_route_distance == pytest.approx(0.2 * MILLIDEGREE, rel=1e-3)
        assert state.off_route

    def test_metrics_are_collected_per_session(self, tracker):
        tracker.load_route(SHORT_ROUTE)
        tracker.update(Coordinate(latitude=0.0008, longitude=0.0))
        tracker.update(Coordinate(latitude=0.0002, longitude=0.0))
        tracker.update(Coordinate(latitude=0.0009, longitude=0.001))

        metrics = tracker.metrics
        assert metrics.fixes == 3
        assert metrics.noise_held == 1
        assert metrics.off_route_fixes == 1
        assert metrics.max_off_route_distance == pytest.approx(MILLIDEGREE, rel=1e-3)
        assert metrics.final_distance_along_route == pytest.approx(0.9 * MILLIDEGREE)

        tracker.load_route(SHORT_ROUTE)
        assert tracker.metrics.fixes == 0


class TestRepeatedGround:

    OUT_AND_BACK = [
        Coordinate(latitude=0.0, longitude=0.0),
        Coordinate(latitude=0.001, longitude=0.0),
        Coordinate(latitude=0.0, longitude=0.0),
    ]

    SQUARE_LOOP = [
        Coordinate(latitude=0.0, longitude=0.0),
        Coordinate(latitude=0.001, longitude=0.0),
        Coordinate(latitude=0.001, longitude=0.001),
        Coordinate(latitude=0.0, longitude=0.001),
        Coordinate(latitude=0.0, longitude=0.0),
    ]

    def test_out_and_back_completes(self, tracker):
        tracker.load_route(self.OUT_AND_BACK)

        for waypoint in self.OUT_AND_BACK:
            state = tracker.update(waypoint)

        assert state.progress_fraction == pytest.approx(1.0)
        assert state.segment_index == 1
        assert not state.noise_held

    def test_return_leg_fix_counts_as_progress(self, tracker):
        tracker.load_route(self.OUT_AND_BACK)
        tracker.update(self.OUT_AND_BACK[1])

        state = tracker.update(Coordinate(latitude=0.0005, longitude=0.0))

        assert not state.noise_held
        assert state.segment_index == 1
        assert state.projection.segment_index == 1
        assert state.progress_fraction == pytest.approx(0.75)

    def test_outbound_noise_does_not_jump_to_return_leg(self, tracker):
        # Legs of ~1.1 km, so the turnaround is far beyond the on-route band
        tracker.load_route(
            [
                Coordinate(latitude=0.0, longitude=0.0),
                Coordinate(latitude=0.01, longitude=0.0),
                Coordinate(latitude=0.0, longitude=0.0),
            ]
        )
        tracker.update(Coordinate(latitude=0.005, longitude=0.0))

        state = tracker.update(Coordinate(latitude=0.004, longitude=0.0))

        assert state.noise_held
        assert state.segment_index == 0
        assert state.progress_fraction == pytest.approx(0.25)

    def test_closed_loop_completes(self, tracker):
        tracker.load_route(self.SQUARE_LOOP)

        for waypoint in self.SQUARE_LOOP:
            state = tracker.update(waypoint)

        assert state.progress_fraction == pytest.approx(1.0)
        assert state.distance_remaining == pytest.approx(0.0, abs=1e-6)
        assert state.segment_index == 3


class TestDistanceToNextWaypoint:

    def test_distance_from_route_start(self, tracker):
        tracker.load_route(L_ROUTE)

        assert tracker.distance_to_next_waypoint(L_ROUTE[0]) == pytest.approx(
            MILLIDEGREE
        )

    def test_distance_follows_current_segment(self, tracker):
        tracker.load_route(L_ROUTE)
        position = Coordinate(latitude=0.001, longitude=0.0005)
        tracker.update(position)

        assert tracker.distance_to_next_waypoint(position) == pytest.approx(
            haversine_distance(position, L_ROUTE[2])
        )

    def test_distance_requires_route(self, tracker):
        with pytest.raises(InvalidStateError):
            tracker.distance_to_next_waypoint(Coordinate(latitude=0.0, longitude=0.0))
