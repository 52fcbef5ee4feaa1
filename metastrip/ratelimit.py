# metastrip/ratelimit.py
"""Per-client request rate limiting.

Each client key owns a token bucket holding ``capacity`` tokens. Every
accepted request takes one token; once ``window_seconds`` have passed since
the last refill the bucket is topped up to full again. Buckets are created on
first sight of a client and kept for the life of the process.
"""

import logging
import threading
import time
from typing import Callable, Dict, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

# Checked in order; the first usable value identifies the client
CLIENT_IP_HEADERS = (
    "X-Forwarded-For",
    "X-Real-IP",
    "Proxy-Client-IP",
    "WL-Proxy-Client-IP",
    "HTTP_X_FORWARDED_FOR",
    "HTTP_X_FORWARDED",
    "HTTP_X_CLUSTER_CLIENT_IP",
    "HTTP_CLIENT_IP",
    "HTTP_FORWARDED_FOR",
    "HTTP_FORWARDED",
    "HTTP_VIA",
    "REMOTE_ADDR",
)


def client_identifier(headers: Mapping[str, str], remote_addr: Optional[str]) -> str:
    """Resolve the client address behind proxies and load balancers.

    Returns the first entry of the first non-empty, non-"unknown" proxy
    header, else the connected peer, else "unknown".
    """
    for name in CLIENT_IP_HEADERS:
        value = headers.get(name)
        if value and value.strip() and value.strip().lower() != "unknown":
            return value.split(",")[0].strip()
    return remote_addr or "unknown"


class TokenBucket:
    """Fixed-capacity bucket refilled in full once per window."""

    def __init__(self, capacity: int, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.capacity = capacity
        self.window_seconds = window_seconds
        self._clock = clock
        self._tokens = capacity
        self._refilled_at = clock()
        self._lock = threading.Lock()

    def _refill(self, now: float) -> None:
        elapsed = now - self._refilled_at
        if elapsed >= self.window_seconds:
            windows = int(elapsed // self.window_seconds)
            self._refilled_at += windows * self.window_seconds
            self._tokens = self.capacity

    def try_consume(self) -> Tuple[bool, int]:
        """Take one token if available; returns (accepted, tokens left)."""
        with self._lock:
            self._refill(self._clock())
            if self._tokens <= 0:
                return False, 0
            self._tokens -= 1
            return True, self._tokens

    def seconds_until_refill(self) -> float:
        with self._lock:
            now = self._clock()
            self._refill(now)
            return max(0.0, self._refilled_at + self.window_seconds - now)


class RateLimiter:
    """Thread-safe store of token buckets keyed by client identifier."""

    def __init__(self, capacity: int = 10, window_seconds: float = 60, clock: Callable[[], float] = time.monotonic):
        self.capacity = capacity
        self.window_seconds = window_seconds
        self._clock = clock
        self._buckets: Dict[str, TokenBucket] = {}
        self._lock = threading.Lock()

    def resolve_bucket(self, key: str) -> TokenBucket:
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                logger.info(f"Creating new rate limit bucket for IP: {key}")
                bucket = TokenBucket(self.capacity, self.window_seconds, self._clock)
                self._buckets[key] = bucket
            return bucket

    def allow_request(self, key: str) -> Tuple[bool, int]:
        """Consume one token for `key`; returns (accepted, remaining)."""
        allowed, remaining = self.resolve_bucket(key).try_consume()
        if not allowed:
            logger.warning(f"Rate limit exceeded for IP: {key}")
        return allowed, remaining

    def seconds_until_refill(self, key: str) -> float:
        return self.resolve_bucket(key).seconds_until_refill()

    def bucket_count(self) -> int:
        with self._lock:
            return len(self._buckets)
