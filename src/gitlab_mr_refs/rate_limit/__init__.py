"""Rate limit handling shared by the GitLab and GitHub clients.

The governor paces requests from response headers alone, so it
needs no extra API calls to learn the remaining budget.
"""

from .governor import RateGovernor, RateState
from .schemas import GovernorState, RateLimitHeaders

__all__ = [
    "GovernorState",
    "RateGovernor",
    "RateLimitHeaders",
    "RateState",
]
