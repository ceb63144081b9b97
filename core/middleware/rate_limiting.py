"""
Rate limiting middleware.

Two backends share one interface: a fixed-window in-process limiter for
single-instance deployments and a Redis sliding-window limiter for
anything running more than one worker.
"""

import hashlib
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol

import redis.asyncio as redis
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from redis.exceptions import RedisError, ConnectionError as RedisConnectionError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


class RateLimitStrategy(str, Enum):
    """Rate limiting strategy types."""
    IP_ADDRESS = "ip"
    USER_ID = "user"
    ENDPOINT = "endpoint"
    GLOBAL = "global"


class RateLimitWindow(str, Enum):
    """Time window types for rate limiting."""
    SECOND = "second"
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"


WINDOW_SECONDS = {
    RateLimitWindow.SECOND: 1,
    RateLimitWindow.MINUTE: 60,
    RateLimitWindow.HOUR: 3600,
    RateLimitWindow.DAY: 86400,
}


@dataclass
class RateLimitRule:
    """Rate limit rule configuration."""
    strategy: RateLimitStrategy
    window: RateLimitWindow
    max_requests: int
    paths: Optional[List[str]] = None  # Path prefixes the rule applies to
    methods: Optional[List[str]] = None
    exempt_ips: Optional[List[str]] = None


class RateLimiter(Protocol):
    async def is_allowed(
        self, key: str, max_requests: int, window_seconds: int, cost: int = 1
    ) -> tuple[bool, Dict[str, Any]]: ...

    async def reset(self, key: str) -> bool: ...


@dataclass
class _Window:
    count: int
    reset_time: float


class InMemoryRateLimiter:
    """
    Fixed-window counter kept in process memory.

    A key's window starts with its first request and resets once
    ``window_seconds`` have passed. Expired windows are swept at most once
    per ``sweep_interval`` seconds, so memory tracks recently active keys.
    """

    def __init__(self, sweep_interval: float = 60.0):
        self._windows: Dict[str, _Window] = {}
        self._sweep_interval = sweep_interval
        self._next_sweep = 0.0

    async def is_allowed(
        self,
        key: str,
        max_requests: int,
        window_seconds: int,
        cost: int = 1,
    ) -> tuple[bool, Dict[str, Any]]:
        return self.hit(key, max_requests, window_seconds, cost)

    def hit(
        self,
        key: str,
        max_requests: int,
        window_seconds: float,
        cost: int = 1,
    ) -> tuple[bool, Dict[str, Any]]:
        now = time.time()
        if now >= self._next_sweep:
            self._sweep(now)

        window = self._windows.get(key)

        if window is None or now > window.reset_time:
            window = _Window(count=0, reset_time=now + window_seconds)
            self._windows[key] = window

        allowed = window.count + cost <= max_requests
        if allowed:
            window.count += cost

        return allowed, {
            'limit': max_requests,
            'remaining': max(0, max_requests - window.count),
            'reset': int(window.reset_time),
            'retry_after': 0 if allowed else max(0, int(window.reset_time - now) + 1),
            'current': window.count,
        }

    def _sweep(self, now: float) -> None:
        expired = [key for key, window in self._windows.items() if now > window.reset_time]
        for key in expired:
            del self._windows[key]
        self._next_sweep = now + self._sweep_interval

    async def reset(self, key: str) -> bool:
        return self._windows.pop(key, None) is not None

    def clear(self) -> None:
        self._windows.clear()


class SlidingWindowRateLimiter:
    """
    Redis-based sliding window rate limiter.

    Each request is a member of a sorted set scored by its timestamp, so
    the count always covers exactly the last ``window_seconds``.
    """

    def __init__(self, redis_client: Redis):
        self.redis = redis_client

    async def is_allowed(
        self,
        key: str,
        max_requests: int,
        window_seconds: int,
        cost: int = 1,
    ) -> tuple[bool, Dict[str, Any]]:
        """
        Check if request is allowed under rate limit.

        Returns:
            Tuple of (is_allowed, metadata) where metadata holds limit,
            remaining, reset and retry_after
        """
        now = time.time()
        window_start = now - window_seconds

        try:
            pipe = self.redis.pipeline()
            pipe.zremrangebyscore(key, 0, window_start)
            pipe.zcard(key)
            request_id = f"{now}:{hashlib.md5(str(now).encode()).hexdigest()[:8]}"
            pipe.zadd(key, {request_id: now})
            pipe.expire(key, window_seconds + 60)
            results = await pipe.execute()

            # Count before this request was added
            current_count = results[1]
            remaining = max(0, max_requests - current_count - cost)
            is_allowed = (current_count + cost) <= max_requests

            retry_after = 0
            if not is_allowed:
                oldest_scores = await self.redis.zrange(key, 0, 0, withscores=True)
                if oldest_scores:
                    retry_after = int(oldest_scores[0][1] + window_seconds - now)
                else:
                    retry_after = window_seconds
                await self.redis.zrem(key, request_id)

            return is_allowed, {
                'limit': max_requests,
                'remaining': remaining,
                'reset': int(now + window_seconds),
                'retry_after': max(0, retry_after),
                'current': current_count,
            }

        except RedisConnectionError as e:
            logger.error(f"Redis connection error in rate limiter: {e}")
            return True, self._fail_open(max_requests, now, window_seconds, 'redis_unavailable')

        except RedisError as e:
            logger.error(f"Redis error in rate limiter: {e}")
            return True, self._fail_open(max_requests, now, window_seconds, 'redis_error')

    @staticmethod
    def _fail_open(max_requests: int, now: float, window_seconds: int, reason: str) -> Dict[str, Any]:
        return {
            'limit': max_requests,
            'remaining': max_requests,
            'reset': int(now + window_seconds),
            'retry_after': 0,
            'error': reason,
        }

    async def reset(self, key: str) -> bool:
        try:
            await self.redis.delete(key)
            return True
        except RedisError as e:
            logger.error(f"Failed to reset rate limit for {key}: {e}")
            return False


_default_limiter = InMemoryRateLimiter()


def check_rate_limit(identifier: str, max_requests: int = 100, window_ms: int = 60000) -> bool:
    """
    Count one request for ``identifier`` against the shared in-memory limiter.

    Returns False once ``max_requests`` have been made inside the current
    window.
    """
    allowed, _ = _default_limiter.hit(
        f"check:{identifier}", max_requests, window_ms / 1000
    )
    return allowed


def reset_rate_limits() -> None:
    _default_limiter.clear()


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Applies every matching rule to a request and adds ``X-RateLimit-*`` headers.

    Requests are keyed by the authenticated profile when there is one, so
    this middleware must run after authentication.
    """

    def __init__(
        self,
        app: ASGIApp,
        backend: str = "memory",
        redis_url: Optional[str] = None,
        rules: Optional[List[RateLimitRule]] = None,
        default_per_minute: int = 100,
        admin_per_minute: int = 20,
        key_prefix: str = "ratelimit",
        enable_headers: bool = True,
    ):
        super().__init__(app)
        self.backend = backend
        self.redis_url = redis_url
        self.redis_client: Optional[Redis] = None
        self.limiter: Optional[RateLimiter] = InMemoryRateLimiter() if backend == "memory" else None
        self.rules = rules or self._default_rules(default_per_minute, admin_per_minute)
        self.key_prefix = key_prefix
        self.enable_headers = enable_headers
        self._initialized = backend == "memory"

    async def _initialize(self):
        """Connect to Redis lazily; stay disabled if that fails."""
        self._initialized = True
        try:
            self.redis_client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_keepalive=True,
                health_check_interval=30,
            )
            await self.redis_client.ping()
            self.limiter = SlidingWindowRateLimiter(self.redis_client)
            logger.info("Redis rate limiter initialized")
        except RedisError as e:
            logger.error(f"Failed to initialize rate limiter, requests will not be limited: {e}")

    @staticmethod
    def _default_rules(per_minute: int, admin_per_minute: int) -> List[RateLimitRule]:
        return [
            RateLimitRule(
                strategy=RateLimitStrategy.USER_ID,
                window=RateLimitWindow.MINUTE,
                max_requests=admin_per_minute,
                paths=['/api/v1/admin/create-user', '/api/v1/admin/delete-user'],
            ),
            RateLimitRule(
                strategy=RateLimitStrategy.USER_ID,
                window=RateLimitWindow.MINUTE,
                max_requests=per_minute,
            ),
        ]

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self._initialized:
            await self._initialize()

        if not self.limiter or request.url.path in ('/health', '/ready'):
            return await call_next(request)

        result = await self._check_rate_limits(request)

        if not result['allowed']:
            logger.warning(
                f"Rate limit exceeded: {request.method} {request.url.path} "
                f"key={self._identity(request)}"
            )
            response = JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    'error': {
                        'code': 'RATE_LIMIT_EXCEEDED',
                        'message': 'Too many requests. Please try again later.',
                        'retry_after': result['retry_after'],
                    }
                },
            )
        else:
            response = await call_next(request)

        if self.enable_headers:
            self._add_rate_limit_headers(response, result)
        return response

    async def _check_rate_limits(self, request: Request) -> Dict[str, Any]:
        results = {'allowed': True, 'limit': 0, 'remaining': 0, 'reset': 0, 'retry_after': 0}

        for rule in self._get_applicable_rules(request):
            if rule.exempt_ips and self._get_client_ip(request) in rule.exempt_ips:
                continue

            allowed, metadata = await self.limiter.is_allowed(
                key=self._generate_key(request, rule),
                max_requests=rule.max_requests,
                window_seconds=WINDOW_SECONDS[rule.window],
            )

            if not allowed:
                results['allowed'] = False
                results['retry_after'] = max(results['retry_after'], metadata['retry_after'])

            # Report the most restrictive rule
            if results['limit'] == 0 or metadata['remaining'] < results['remaining']:
                results['limit'] = metadata['limit']
                results['remaining'] = metadata['remaining']
                results['reset'] = metadata['reset']

        return results

    def _get_applicable_rules(self, request: Request) -> List[RateLimitRule]:
        return [
            rule for rule in self.rules
            if (not rule.paths or any(request.url.path.startswith(p) for p in rule.paths))
            and (not rule.methods or request.method in rule.methods)
        ]

    def _generate_key(self, request: Request, rule: RateLimitRule) -> str:
        parts = [self.key_prefix, rule.strategy.value, rule.window.value]

        if rule.strategy == RateLimitStrategy.IP_ADDRESS:
            parts.append(self._get_client_ip(request))
        elif rule.strategy == RateLimitStrategy.USER_ID:
            parts.append(self._identity(request))
        elif rule.strategy == RateLimitStrategy.ENDPOINT:
            parts.append(request.url.path)
        else:
            parts.append("global")

        if rule.paths:
            parts.append(hashlib.md5(",".join(rule.paths).encode()).hexdigest()[:8])

        return ":".join(parts)

    def _identity(self, request: Request) -> str:
        user = request.scope.get('user')
        if user is not None and getattr(user, 'id', None):
            return str(user.id)
        return f"ip:{self._get_client_ip(request)}"

    def _get_client_ip(self, request: Request) -> str:
        forwarded_for = request.headers.get('x-forwarded-for')
        if forwarded_for:
            return forwarded_for.split(',')[0].strip()

        real_ip = request.headers.get('x-real-ip')
        if real_ip:
            return real_ip

        return request.client.host if request.client else 'unknown'

    def _add_rate_limit_headers(self, response: Response, result: Dict[str, Any]):
        if not result['limit']:
            return
        response.headers['X-RateLimit-Limit'] = str(result['limit'])
        response.headers['X-RateLimit-Remaining'] = str(result['remaining'])
        response.headers['X-RateLimit-Reset'] = str(result['reset'])

        if not result['allowed']:
            response.headers['Retry-After'] = str(result['retry_after'])

    async def close(self):
        if self.redis_client:
            await self.redis_client.aclose()
            logger.info("Rate limiter closed")
