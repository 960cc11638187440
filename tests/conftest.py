"""Pytest configuration and shared fixtures.

Usage Guide:
- For GitLab payloads: import factories from tests.factories
- For HTTP-level tests: use the gitlab_transport fixture with
  httpx.MockTransport routes
- For governor tests: use fake_clock, whose sleep() advances time
"""

from __future__ import annotations

from collections.abc import Callable, Generator

import httpx
import pytest

from gitlab_mr_refs.config import RateLimitConfig, get_settings
from loguru import logger
from gitlab_mr_refs.rate_limit import RateGovernor

# -----------------------------------------------------------------------------
# Test Constants
# -----------------------------------------------------------------------------
GITLAB_TOKEN = "glpat-test-token"
GITHUB_TOKEN = "ghp_test_token"
PROJECT_PATH = "group/project"
ENCODED_PROJECT = "group%2Fproject"


# -----------------------------------------------------------------------------
# Environment
# -----------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path) -> Generator[None, None, None]:
    """Run every test without real tokens or a stray .env file."""
    monkeypatch.chdir(tmp_path)
    for name in ("GITLAB_TOKEN", "GITHUB_TOKEN", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    logger.remove()


@pytest.fixture
def gitlab_token(monkeypatch) -> str:
    """Expose a GitLab token through the environment."""
    monkeypatch.setenv("GITLAB_TOKEN", GITLAB_TOKEN)
    get_settings.cache_clear()
    return GITLAB_TOKEN


@pytest.fixture
def github_token(monkeypatch) -> str:
    """Expose a GitHub token through the environment."""
    monkeypatch.setenv("GITHUB_TOKEN", GITHUB_TOKEN)
    get_settings.cache_clear()
    return GITHUB_TOKEN


# -----------------------------------------------------------------------------
# Rate Governor Fixtures
# -----------------------------------------------------------------------------
class FakeClock:
    """Deterministic monotonic clock; sleeping advances it."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds

    @property
    def total_slept(self) -> float:
        return sum(self.sleeps)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rate_config() -> RateLimitConfig:
    """Default governor configuration."""
    return RateLimitConfig()


@pytest.fixture
def governor(fake_clock: FakeClock, rate_config: RateLimitConfig) -> RateGovernor:
    """Governor on the fake clock: no test ever really sleeps."""
    return RateGovernor(rate_config, clock=fake_clock, sleep=fake_clock.sleep)


# -----------------------------------------------------------------------------
# HTTP Fixtures
# -----------------------------------------------------------------------------
Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def recorded_requests() -> list[httpx.Request]:
    return []


@pytest.fixture
def make_transport(
    recorded_requests: list[httpx.Request],
) -> Callable[[Handler], httpx.MockTransport]:
    """Build a MockTransport that records every request it answers."""

    def _make(handler: Handler) -> httpx.MockTransport:
        def _record(request: httpx.Request) -> httpx.Response:
            recorded_requests.append(request)
            return handler(request)

        return httpx.MockTransport(_record)

    return _make
