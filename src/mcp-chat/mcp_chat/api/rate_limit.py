"""RequestRateLimiter — fixed-window request budget per client address."""

from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter

from mcp_chat.config.domain.server import RateLimitConfig

RATE_LIMITED_MESSAGE = "Too many requests, please try again later."


class RequestRateLimiter:
    """Counts requests per client in memory; one instance per app."""

    def __init__(self, config: RateLimitConfig) -> None:
        self._item = RateLimitItemPerSecond(config.requests, config.window_seconds)
        self._limiter = FixedWindowRateLimiter(MemoryStorage())

    def allow(self, client: str) -> bool:
        """Record one request from client; False once its window budget is spent."""
        return self._limiter.hit(self._item, client)
