"""Per-client rate limiting for the API and the contact form.

Implements:
- Fixed-window hit counters per client key, one TTLCache per scope
- Client identification by socket peer, with forwarded addresses honoured
  only from configured trusted proxies
- Middleware applying the general API limit to ``/api/`` paths
- Dependency applying the stricter contact form limit
- Reset function for testing
"""

import logging
import time
from collections.abc import Callable, Iterable

from cachetools import TTLCache  # type: ignore[import-untyped]
from fastapi import Depends, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from config.settings import Settings, get_settings
from core.exceptions import CatalogServiceError

logger = logging.getLogger(__name__)

API_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."
CONTACT_LIMIT_MESSAGE = "Too many contact form submissions. Please try again later."

# One limiter per scope ("api", "contact")
_limiters: dict[str, "FixedWindowLimiter"] = {}


class RateLimitExceededError(CatalogServiceError):
    """Raised when a client exhausts its request budget."""

    status_code = 429


class FixedWindowLimiter:
    """At most ``limit`` hits per client key within each ``window`` seconds.

    A client's window opens on its first hit and its counter expires with
    the window, so idle clients drop out of the cache. When the cache is
    full the least recently used client is evicted.
    """

    def __init__(
        self,
        limit: int,
        window: float,
        maxsize: int = 10_000,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window = window
        self._hits: TTLCache = TTLCache(maxsize=maxsize, ttl=window, timer=timer)

    def hit(self, key: str) -> bool:
        """Count one hit for ``key``; False when its window is already full."""
        # Mutated in place so the entry keeps the expiry of its first hit
        counter = self._hits.get(key)
        if counter is None:
            counter = [0]
            self._hits[key] = counter
        if counter[0] >= self.limit:
            return False
        counter[0] += 1
        return True

    def __len__(self) -> int:
        self._hits.expire()
        return len(self._hits)


def client_key(request: Request, trusted_proxies: Iterable[str] = ()) -> str:
    """Identify the caller by its socket peer.

    When the peer is a trusted proxy, ``X-Forwarded-For`` is walked from the
    right and the first untrusted address is used instead.
    """
    peer = request.client.host if request.client else "unknown"
    trusted = set(trusted_proxies)
    if peer not in trusted:
        return peer

    forwarded = request.headers.get("x-forwarded-for")
    if not forwarded:
        return peer
    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    for hop in reversed(hops):
        if hop not in trusted:
            return hop
    return hops[0] if hops else peer


def get_limiter(scope: str, limit: int, window: float, maxsize: int = 10_000) -> FixedWindowLimiter:
    """Get the limiter for a scope, replacing it if its configuration changed."""
    limiter = _limiters.get(scope)
    if limiter is None or limiter.limit != limit or limiter.window != window:
        limiter = FixedWindowLimiter(limit, window, maxsize=maxsize)
        _limiters[scope] = limiter
        logger.debug(f"Created {scope} rate limiter: {limit}/{window}s")
    return limiter


class ApiRateLimitMiddleware(BaseHTTPMiddleware):
    """Apply the general per-IP budget to every ``/api/`` request."""

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith("/api/"):
            return await call_next(request)

        settings = get_settings()
        key = client_key(request, settings.trusted_proxies)
        limiter = get_limiter(
            "api",
            settings.api_rate_limit,
            settings.api_rate_window_seconds,
            settings.rate_limit_max_clients,
        )
        if not limiter.hit(key):
            logger.warning(f"API rate limit exceeded for {key}")
            return JSONResponse(
                status_code=429,
                content={"success": False, "error": API_LIMIT_MESSAGE},
            )
        return await call_next(request)


async def contact_rate_limit(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> None:
    """Dependency limiting contact form submissions per client."""
    key = client_key(request, settings.trusted_proxies)
    limiter = get_limiter(
        "contact",
        settings.contact_rate_limit,
        settings.contact_rate_window_seconds,
        settings.rate_limit_max_clients,
    )
    if not limiter.hit(key):
        logger.warning(f"Contact rate limit exceeded for {key}")
        raise RateLimitExceededError(CONTACT_LIMIT_MESSAGE)


def reset_rate_limiting() -> None:
    """Reset rate limiting state for testing."""
    _limiters.clear()
    logger.debug("Reset rate limiting state")
