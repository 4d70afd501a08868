"""Shared-password check and per-IP rate limiting."""
import os
import time
from typing import Optional
from collections import defaultdict

from fastapi import Header, HTTPException, Request

# --- Config ---
APP_PASSWORD = os.environ.get("CIKU_PASSWORD", "ciku2026")

# --- Rate Limiting ---
RATE_LIMIT_REQUESTS = 30
RATE_LIMIT_WINDOW = 60
_rate_buckets: dict = defaultdict(list)
_rate_check_counter = 0


def get_rate_limit_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def rate_limit_check(ip: str) -> bool:
    """Return True if the request is allowed, False if rate-limited."""
    now = time.time()
    cutoff = now - RATE_LIMIT_WINDOW
    _rate_buckets[ip] = [t for t in _rate_buckets[ip] if t > cutoff]
    if len(_rate_buckets[ip]) >= RATE_LIMIT_REQUESTS:
        return False
    _rate_buckets[ip].append(now)
    return True


def rate_limit_cleanup():
    global _rate_check_counter
    _rate_check_counter += 1
    if _rate_check_counter % 100 == 0:
        now = time.time()
        cutoff = now - RATE_LIMIT_WINDOW
        stale = [ip for ip, ts in _rate_buckets.items() if not ts or ts[-1] < cutoff]
        for ip in stale:
            del _rate_buckets[ip]


def rate_limit_reset():
    _rate_buckets.clear()


async def require_password(x_app_password: Optional[str] = Header(default=None)):
    """FastAPI dependency that validates the X-App-Password header."""
    if x_app_password != APP_PASSWORD:
        raise HTTPException(401, "Unauthorized")


async def enforce_rate_limit(request: Request):
    """FastAPI dependency applying the sliding-window limit to the caller's IP."""
    rate_limit_cleanup()
    if not rate_limit_check(get_rate_limit_key(request)):
        raise HTTPException(429, "Too many requests. Please wait a minute.")
