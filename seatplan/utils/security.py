"""
Security utilities and authentication
"""

import time
from collections import defaultdict, deque
from typing import Deque, Dict

from fastapi import HTTPException, Depends, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from seatplan.core.config import settings
from seatplan.utils.responses import rate_limit_error

security = HTTPBearer()

def verify_admin_token(credentials: HTTPAuthorizationCredentials = Depends(security)):
    """Verify the planner's bearer token"""
    if credentials.credentials != settings.ADMIN_TOKEN:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin token"
        )
    return credentials.credentials

class RateLimiter:
    """Sliding one-minute window of request times per client"""

    def __init__(self, window_seconds: float = 60.0):
        self.window_seconds = window_seconds
        self._requests: Dict[str, Deque[float]] = defaultdict(deque)

    def allow(self, client_id: str, limit: int = None) -> bool:
        if limit is None:
            limit = settings.RATE_LIMIT_PER_MINUTE

        now = time.time()
        requests = self._requests[client_id]
        while requests and requests[0] <= now - self.window_seconds:
            requests.popleft()

        if len(requests) >= limit:
            return False
        requests.append(now)
        return True

    def reset(self) -> None:
        self._requests.clear()

rate_limiter = RateLimiter()

def get_client_ip(request: Request) -> str:
    """Extract client IP from request"""
    # Check for forwarded IP first (for reverse proxy setups)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"

def enforce_rate_limit(request: Request) -> None:
    """Dependency for public read endpoints"""
    if not rate_limiter.allow(get_client_ip(request)):
        rate_limit_error()
