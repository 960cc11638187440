"""Pydantic schemas for rate limit signals.

These schemas represent throttling information from response headers:
- RateLimit-* headers sent by GitLab
- X-RateLimit-* headers (older GitLab versions, GitHub)
- Retry-After on 429 responses
"""

from collections.abc import Mapping
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from enum import StrEnum
from typing import Self

from pydantic import BaseModel, Field


class GovernorState(StrEnum):
    """Request spacing tier.

    Transitions are monotone within a run:
    - NORMAL: baseline spacing, no low-quota signal seen
    - CAUTIOUS: remaining quota dropped to the cautious threshold
    - CRITICAL: remaining quota dropped to the critical threshold
    """

    NORMAL = "normal"
    CAUTIOUS = "cautious"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Position in the escalation order (higher is stricter)."""
        return _STATE_ORDER.index(self)


_STATE_ORDER = [GovernorState.NORMAL, GovernorState.CAUTIOUS, GovernorState.CRITICAL]


def _first_header(headers: Mapping[str, str], *names: str) -> str | None:
    """Return the first non-empty value among ``names`` (case-insensitive)."""
    for name in names:
        value = headers.get(name.lower())
        if value is not None and value.strip():
            return value.strip()
    return None


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _parse_seconds(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def _parse_reset(http_date: str | None, epoch: str | None) -> datetime | None:
    if http_date is not None:
        try:
            return parsedate_to_datetime(http_date).astimezone(UTC)
        except (TypeError, ValueError):
            pass
    reset_ts = _parse_int(epoch)
    if reset_ts is not None and reset_ts > 0:
        return datetime.fromtimestamp(reset_ts, tz=UTC)
    return None


class RateLimitHeaders(BaseModel):
    """Throttling signals extracted from a single response.

    Every field is optional: a response without rate limit headers
    simply carries no signal.
    """

    limit: int | None = Field(default=None, description="Request budget of the window")
    remaining: int | None = Field(default=None, description="Requests left in the window")
    reset_at: datetime | None = Field(default=None, description="UTC time the window resets")
    retry_after: float | None = Field(
        default=None,
        ge=0,
        description="Seconds the server asked us to wait (Retry-After)",
    )

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> Self:
        """Parse from HTTP response headers.

        GitLab sends RateLimit-Limit, RateLimit-Remaining, RateLimit-Reset
        and RateLimit-ResetTime. The X-RateLimit-* names are tried when the
        primary ones are absent. Malformed values are treated as absent.

        Args:
            headers: HTTP response headers (httpx.Headers or a plain dict)

        Returns:
            RateLimitHeaders instance
        """
        lowered = {str(key).lower(): str(value) for key, value in headers.items()}

        return cls(
            limit=_parse_int(_first_header(lowered, "RateLimit-Limit", "X-RateLimit-Limit")),
            remaining=_parse_int(
                _first_header(lowered, "RateLimit-Remaining", "X-RateLimit-Remaining")
            ),
            reset_at=_parse_reset(
                _first_header(lowered, "RateLimit-ResetTime"),
                _first_header(lowered, "RateLimit-Reset", "X-RateLimit-Reset"),
            ),
            retry_after=_parse_seconds(_first_header(lowered, "Retry-After")),
        )

    @property
    def has_quota(self) -> bool:
        """Whether a remaining-quota value was reported."""
        return self.remaining is not None
