"""Per-user rate limiting for questions."""

import time

from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter

from opsassist.utils.logging import get_logger

logger = get_logger(__name__)


class UserRateLimiter:
    """Moving-window limit on asks per user."""

    def __init__(self, limit: str = "5/minute"):
        """Initialize rate limiter.

        Args:
            limit: Rate limit string such as "5/minute"
        """
        self.storage = MemoryStorage()
        self.limiter = MovingWindowRateLimiter(self.storage)
        self.limit = parse(limit)

    def hit(self, user_id: str) -> bool:
        """Record a request, returning False if the user is over the limit."""
        allowed = self.limiter.hit(self.limit, "ask", user_id)
        if not allowed:
            logger.warning(f"Rate limit exceeded for user {user_id} ({self.limit})")
        return allowed

    def seconds_until_reset(self, user_id: str) -> int:
        """Seconds until the user's oldest request leaves the window."""
        stats = self.limiter.get_window_stats(self.limit, "ask", user_id)
        return max(0, int(stats.reset_time - time.time()) + 1)

    def reset(self) -> None:
        self.storage.reset()
