"""In-memory rate limiter and the request throttle built on it."""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable, Optional

from fastapi import HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials
from sqlmodel import Session

from ..auth import bearer_scheme, user_from_token
from ..config import settings
from ..database import engine
from .. import models


class InMemoryRateLimiter:
    """Sliding-window limiter per key.

    Each key keeps the timestamps of its recent hits. Keys whose window
    has fully elapsed are dropped by a periodic sweep, so the map only
    holds clients seen within their last window.
    """

    def __init__(self, sweep_interval: float = 60.0, clock: Callable[[], float] = time.monotonic):
        self._hits: dict[str, deque] = {}
        self._windows: dict[str, int] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._last_sweep = clock()

    def allow(self, key: str, max_requests: int, window_seconds: int) -> tuple[bool, int]:
        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self._sweep_interval:
                self._sweep(now)
            q = self._hits.setdefault(key, deque())
            self._windows[key] = window_seconds
            self._prune(q, now, window_seconds)
            if len(q) >= max_requests:
                return False, max(1, int(window_seconds - (now - q[0])))
            q.append(now)
        return True, 0

    @staticmethod
    def _prune(q: deque, now: float, window_seconds: int) -> None:
        cutoff = now - window_seconds
        while q and q[0] < cutoff:
            q.popleft()

    def _sweep(self, now: float) -> None:
        for key in list(self._hits):
            q = self._hits[key]
            self._prune(q, now, self._windows[key])
            if not q:
                del self._hits[key]
                del self._windows[key]
        self._last_sweep = now

    def __len__(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
            self._windows.clear()


limiter = InMemoryRateLimiter()


def throttle_key(request: Request, user: Optional[models.User]) -> str:
    """Users are throttled per account, anonymous clients per host."""
    if user is not None:
        return f"user:{user.id}"
    return f"anon:{request.client.host if request.client else 'unknown'}"


def _throttle_user(credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[models.User]:
    """Resolve the user for throttling only; a bad token counts as anonymous.

    Rejecting the token is left to the endpoints that require auth, so a
    client holding a stale token can still log in again.
    """
    if credentials is None:
        return None
    with Session(engine) as session:
        try:
            return user_from_token(credentials.credentials, session)
        except HTTPException:
            return None


def throttle(request: Request, credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme)) -> None:
    """FastAPI dependency enforcing the anonymous/user throttle rates."""
    user = _throttle_user(credentials)
    max_requests, window = settings.user_rate if user is not None else settings.anon_rate
    allowed, retry_after = limiter.allow(throttle_key(request, user), max_requests, window)
    if not allowed:
        raise HTTPException(
            status_code=429,
            detail=f"rate limit exceeded; retry after {retry_after}s",
            headers={"Retry-After": str(retry_after)},
        )
