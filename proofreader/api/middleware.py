"""
API Middleware
==============
Rate limiting for the endpoints that trigger AI calls.

The call serializer already spaces out requests to the AI service; this
limiter keeps a runaway page from piling hundreds of tasks onto its queue.
"""
import math
import time
import threading
from collections import defaultdict, deque
from functools import wraps
from typing import Callable, Deque, Dict, Optional, Tuple
from flask import request, jsonify, g

from proofreader.config import config
from proofreader.utils.logging import get_logger

WINDOW_SECONDS = 60


class RateLimiter:
    """Sliding one-minute window of request timestamps per client address."""

    def __init__(self, requests_per_minute: int = 60, clock: Callable[[], float] = time.monotonic):
        self.requests_per_minute = requests_per_minute
        self.clock = clock
        self.hits: Dict[str, Deque[float]] = defaultdict(deque)
        self.lock = threading.Lock()
        self.logger = get_logger().api_logger

    @staticmethod
    def client_id() -> str:
        forwarded = request.headers.get('X-Forwarded-For')
        if forwarded:
            return forwarded.split(',')[0].strip()
        return request.remote_addr or 'unknown'

    def check(self, client_id: str) -> Tuple[bool, dict]:
        """
        Record a hit for client_id if the window has room.

        Returns:
            Tuple of (allowed, info) where info holds limit, remaining and
            reset (seconds until the oldest hit leaves the window)
        """
        now = self.clock()
        with self.lock:
            hits = self.hits[client_id]
            while hits and hits[0] <= now - WINDOW_SECONDS:
                hits.popleft()

            allowed = len(hits) < self.requests_per_minute
            if allowed:
                hits.append(now)
            reset = math.ceil(hits[0] + WINDOW_SECONDS - now) if hits else WINDOW_SECONDS
            info = {
                'limit': self.requests_per_minute,
                'remaining': max(0, self.requests_per_minute - len(hits)),
                'reset': max(1, reset),
            }

        if not allowed:
            self.logger.warning(f"Rate limit hit for {client_id}")
        return allowed, info


_rate_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = RateLimiter(config.security.rate_limit_per_minute)
    return _rate_limiter


def reset_rate_limiter() -> None:
    """Drop the shared limiter so the next request starts a fresh window."""
    global _rate_limiter
    _rate_limiter = None


def rate_limit(f: Callable) -> Callable:
    """Reject the request with 429 once the client's window is full."""
    @wraps(f)
    def decorated(*args, **kwargs):
        limiter = get_rate_limiter()
        allowed, info = limiter.check(limiter.client_id())
        g.rate_limit_info = info

        if not allowed:
            return jsonify({
                'error': 'Rate limit exceeded',
                'retry_after': info['reset']
            }), 429

        return f(*args, **kwargs)

    return decorated


def add_rate_limit_headers(response):
    """Expose the limiter state on rate-limited responses."""
    info = g.get('rate_limit_info')
    if info:
        response.headers['X-RateLimit-Limit'] = str(info['limit'])
        response.headers['X-RateLimit-Remaining'] = str(info['remaining'])
        response.headers['X-RateLimit-Reset'] = str(info['reset'])
    return response
