"""Tests for RateGovernor spacing and throttling."""

import pytest

from gitlab_mr_refs.config import RateLimitConfig
from gitlab_mr_refs.rate_limit import GovernorState, RateGovernor
from tests.fixtures.rate_limit_responses import (
    HEADERS_CAUTIOUS,
    HEADERS_CRITICAL,
    HEADERS_HEALTHY,
    HEADERS_LEGACY_CAUTIOUS,
    HEADERS_MALFORMED,
    HEADERS_THROTTLED,
    HEADERS_THROTTLED_NO_RETRY_AFTER,
)


def remaining(value: int) -> dict[str, str]:
    return {"RateLimit-Remaining": str(value)}


class TestSpacing:
    """Ambient spacing between request starts."""

    def test_first_request_does_not_wait(self, governor, fake_clock):
        assert governor.before_request() == 0.0
        assert fake_clock.sleeps == []
        assert governor.last_request_at == fake_clock.now

    def test_back_to_back_requests_wait_baseline(self, governor, fake_clock):
        governor.before_request()
        waited = governor.before_request()

        assert waited == pytest.approx(0.1)
        assert fake_clock.sleeps == [pytest.approx(0.1)]

    def test_only_remainder_of_interval_is_slept(self, governor, fake_clock):
        governor.before_request()
        fake_clock.advance(0.04)

        assert governor.before_request() == pytest.approx(0.06)

    def test_no_wait_once_interval_elapsed(self, governor, fake_clock):
        governor.before_request()
        fake_clock.advance(0.5)

        assert governor.before_request() == 0.0
        assert fake_clock.sleeps == []

    def test_spacing_measured_start_to_start(self, governor, fake_clock):
        """Time spent waiting for the response counts towards the interval."""
        governor.before_request()
        fake_clock.advance(0.08)  # request in flight
        governor.after_response(HEADERS_HEALTHY, 200)

        assert governor.before_request() == pytest.approx(0.02)

    def test_consecutive_starts_never_closer_than_interval(self, governor, fake_clock):
        starts = []
        for _ in range(5):
            governor.before_request()
            starts.append(fake_clock.now)
            governor.after_response({}, 200)

        gaps = [b - a for a, b in zip(starts, starts[1:], strict=False)]
        assert all(gap >= 0.1 - 1e-9 for gap in gaps)

    def test_zero_interval_never_sleeps(self, fake_clock):
        governor = RateGovernor(
            RateLimitConfig(baseline_interval_ms=0),
            clock=fake_clock,
            sleep=fake_clock.sleep,
        )
        for _ in range(3):
            governor.before_request()

        assert fake_clock.sleeps == []


class TestEscalation:
    """Remaining-quota escalation."""

    def test_starts_normal(self, governor):
        assert governor.state == GovernorState.NORMAL
        assert governor.min_interval == pytest.approx(0.1)

    def test_healthy_quota_keeps_baseline(self, governor):
        governor.after_response(HEADERS_HEALTHY, 200)

        assert governor.state == GovernorState.NORMAL
        assert governor.min_interval == pytest.approx(0.1)

    def test_no_headers_no_change(self, governor):
        governor.after_response({}, 200)
        assert governor.state == GovernorState.NORMAL

    def test_cautious_threshold(self, governor):
        governor.after_response(remaining(10), 200)

        assert governor.state == GovernorState.CAUTIOUS
        assert governor.min_interval == pytest.approx(1.0)

    def test_critical_threshold_is_reachable(self, governor):
        """A reading of 5 is also <= 10; the stricter tier must win."""
        governor.after_response(HEADERS_CRITICAL, 200)

        assert governor.state == GovernorState.CRITICAL
        assert governor.min_interval == pytest.approx(5.0)

    def test_critical_scenario_spaces_next_request(self, governor, fake_clock):
        """remaining=5 after the first request: the second starts >= 5s later."""
        governor.before_request()
        first_start = fake_clock.now
        governor.after_response(remaining(5), 200)

        governor.before_request()

        assert fake_clock.now - first_start >= 5.0

    def test_legacy_header_name(self, governor):
        governor.after_response(HEADERS_LEGACY_CAUTIOUS, 200)
        assert governor.state == GovernorState.CAUTIOUS

    def test_primary_header_preferred(self, governor):
        governor.after_response(
            {"RateLimit-Remaining": "500", "X-RateLimit-Remaining": "1"},
            200,
        )
        assert governor.state == GovernorState.NORMAL

    def test_never_relaxes(self, governor):
        governor.after_response(HEADERS_CRITICAL, 200)
        governor.after_response(HEADERS_CAUTIOUS, 200)
        governor.after_response(HEADERS_HEALTHY, 200)

        assert governor.state == GovernorState.CRITICAL
        assert governor.min_interval == pytest.approx(5.0)

    def test_monotone_over_any_sequence(self, governor):
        readings = [500, 9, 700, 3, 8, 1000, 10, 0, 600]
        intervals = []
        ranks = []
        for value in readings:
            governor.after_response(remaining(value), 200)
            intervals.append(governor.min_interval)
            ranks.append(governor.state.rank)

        assert intervals == sorted(intervals)
        assert ranks == sorted(ranks)

    def test_cautious_then_critical(self, governor):
        governor.after_response(HEADERS_CAUTIOUS, 200)
        governor.after_response(HEADERS_CRITICAL, 200)

        assert governor.state == GovernorState.CRITICAL

    def test_malformed_headers_ignored(self, governor, fake_clock):
        assert governor.after_response(HEADERS_MALFORMED, 200) == 0.0

        assert governor.state == GovernorState.NORMAL
        assert fake_clock.sleeps == []

    def test_equal_thresholds_go_critical(self, fake_clock):
        config = RateLimitConfig(cautious_threshold=5, critical_threshold=5)
        governor = RateGovernor(config, clock=fake_clock, sleep=fake_clock.sleep)

        governor.after_response(remaining(5), 200)

        assert governor.state == GovernorState.CRITICAL

    def test_interval_never_lowered_by_small_tier(self, fake_clock):
        """A baseline larger than the cautious interval is kept."""
        config = RateLimitConfig(baseline_interval_ms=2000, cautious_interval_ms=1000)
        governor = RateGovernor(config, clock=fake_clock, sleep=fake_clock.sleep)

        governor.after_response(remaining(9), 200)

        assert governor.state == GovernorState.CAUTIOUS
        assert governor.min_interval == pytest.approx(2.0)


class TestHardStop:
    """429 handling."""

    def test_retry_after_honoured(self, governor, fake_clock):
        waited = governor.after_response(HEADERS_THROTTLED, 429)

        assert waited == 3.0
        assert fake_clock.sleeps == [3.0]

    def test_default_wait_without_retry_after(self, governor, fake_clock):
        waited = governor.after_response(HEADERS_THROTTLED_NO_RETRY_AFTER, 429)

        assert waited == 60.0
        assert fake_clock.total_slept == 60.0

    def test_configured_default_wait(self, fake_clock):
        config = RateLimitConfig(default_retry_after_seconds=15)
        governor = RateGovernor(config, clock=fake_clock, sleep=fake_clock.sleep)

        assert governor.after_response({}, 429) == 15.0

    def test_hard_stop_leaves_tier_unchanged(self, governor):
        governor.after_response({"Retry-After": "3"}, 429)

        assert governor.state == GovernorState.NORMAL
        assert governor.min_interval == pytest.approx(0.1)

    def test_quota_signal_on_429_also_escalates(self, governor):
        governor.after_response(HEADERS_THROTTLED, 429)
        assert governor.state == GovernorState.CRITICAL

    def test_hard_stop_is_one_time(self, governor, fake_clock):
        """After the stop, the next request only waits the ambient interval."""
        governor.before_request()
        governor.after_response({"Retry-After": "3"}, 429)

        assert governor.before_request() == 0.0
        assert fake_clock.sleeps == [3.0]

    def test_success_never_hard_stops(self, governor, fake_clock):
        assert governor.after_response({"Retry-After": "30"}, 200) == 0.0
        assert fake_clock.sleeps == []


class TestDiagnostics:
    def test_to_dict(self, governor, fake_clock):
        governor.before_request()
        governor.after_response(HEADERS_CAUTIOUS, 200)

        state = governor.to_dict()

        assert state["state"] == "cautious"
        assert state["min_interval_seconds"] == pytest.approx(1.0)
        assert state["last_request_at"] == fake_clock.now

    def test_governor_uses_settings_by_default(self):
        governor = RateGovernor()
        assert governor.config.baseline_interval_ms == 100
