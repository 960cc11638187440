"""Request spacing driven by server throttling signals.

The governor combines two independent policies:

    ambient spacing   consecutive requests start at least ``min_interval``
                      apart; the interval ratchets up (never down) as the
                      reported remaining quota crosses two thresholds
    hard stop         a 429 response blocks for Retry-After seconds (or a
                      default) before the caller continues

Usage:
    governor = RateGovernor()

    governor.before_request()
    response = http.get(url)
    governor.after_response(response.headers, response.status_code)
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from gitlab_mr_refs.config import RateLimitConfig, get_settings
from gitlab_mr_refs.logging import get_logger

from .schemas import GovernorState, RateLimitHeaders

logger = get_logger(__name__)

TOO_MANY_REQUESTS = 429

Clock = Callable[[], float]
Sleeper = Callable[[float], None]


@dataclass
class RateState:
    """Mutable spacing state owned by exactly one governor."""

    min_interval: float
    last_request_at: float | None = None
    state: GovernorState = GovernorState.NORMAL


class RateGovernor:
    """Paces outbound requests for a single sequential caller.

    Not thread-safe: one governor belongs to one client, which never has
    more than one request in flight.
    """

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        *,
        clock: Clock = time.monotonic,
        sleep: Sleeper = time.sleep,
    ) -> None:
        """Initialize the governor.

        Args:
            config: Optional rate limit configuration (uses settings if not provided)
            clock: Monotonic time source in seconds
            sleep: Blocking sleep function
        """
        self._config = config or get_settings().rate_limit
        self._clock = clock
        self._sleep = sleep
        self._state = RateState(min_interval=self._config.baseline_interval)

    @property
    def config(self) -> RateLimitConfig:
        """Get the rate limit configuration."""
        return self._config

    @property
    def state(self) -> GovernorState:
        """Current spacing tier."""
        return self._state.state

    @property
    def min_interval(self) -> float:
        """Current minimum spacing between request starts, in seconds."""
        return self._state.min_interval

    @property
    def last_request_at(self) -> float | None:
        """Clock reading of the most recent request start."""
        return self._state.last_request_at

    # -------------------------------------------------------------------------
    # Request Lifecycle
    # -------------------------------------------------------------------------
    def before_request(self) -> float:
        """Block until the next request may start, then mark it started.

        Returns:
            Seconds spent sleeping (0.0 when no wait was needed)
        """
        waited = 0.0
        last = self._state.last_request_at
        if last is not None:
            elapsed = self._clock() - last
            if elapsed < self._state.min_interval:
                waited = self._state.min_interval - elapsed
                logger.debug(
                    "Respecting API rate limits, waiting {:.3f}s before next request",
                    waited,
                )
                self._sleep(waited)

        self._state.last_request_at = self._clock()
        return waited

    def after_response(self, headers: Mapping[str, str], status_code: int) -> float:
        """Update spacing from a response and honour throttling.

        Both signals are consulted on every response: remaining quota may
        escalate the spacing tier, and a 429 status triggers a one-time
        blocking wait that leaves the tier unchanged.

        Args:
            headers: Response headers
            status_code: Response HTTP status

        Returns:
            Seconds spent in the throttling hard stop (0.0 if none)
        """
        signals = RateLimitHeaders.from_headers(headers)

        if signals.remaining is not None:
            self._apply_remaining(signals.remaining, signals)

        if status_code == TOO_MANY_REQUESTS:
            return self._hard_stop(signals)
        return 0.0

    # -------------------------------------------------------------------------
    # Policy
    # -------------------------------------------------------------------------
    def _apply_remaining(self, remaining: int, signals: RateLimitHeaders) -> None:
        # Critical first: a reading at or below it also satisfies the cautious bound
        if remaining <= self._config.critical_threshold:
            target, interval = GovernorState.CRITICAL, self._config.critical_interval
        elif remaining <= self._config.cautious_threshold:
            target, interval = GovernorState.CAUTIOUS, self._config.cautious_interval
        else:
            return

        if target.rank < self._state.state.rank:
            return

        new_interval = max(self._state.min_interval, interval)
        if target != self._state.state:
            reset = signals.reset_at.isoformat() if signals.reset_at else "unknown"
            logger.warning(
                "Rate limit {}: only {} requests remaining (resets {}), "
                "spacing requests {:.1f}s apart",
                target.value,
                remaining,
                reset,
                new_interval,
            )
        self._state.state = target
        self._state.min_interval = new_interval

    def _hard_stop(self, signals: RateLimitHeaders) -> float:
        if signals.retry_after is not None:
            wait = signals.retry_after
            logger.warning("API rate limit exceeded, waiting {}s as requested by server", wait)
        else:
            wait = self._config.default_retry_after_seconds
            logger.warning("API rate limit exceeded, waiting {}s before continuing", wait)
        self._sleep(wait)
        return wait

    def to_dict(self) -> dict[str, Any]:
        """Export current state as dictionary (for logging/diagnostics)."""
        return {
            "state": self._state.state.value,
            "min_interval_seconds": self._state.min_interval,
            "last_request_at": self._state.last_request_at,
        }
