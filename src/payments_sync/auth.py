"""Bearer-key authentication and rate limiting for the trigger API."""

import os
import secrets
import logging
from typing import List

from fastapi import HTTPException, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from slowapi import Limiter
from slowapi.util import get_remote_address

logger = logging.getLogger(__name__)

security = HTTPBearer()

DEFAULT_RATE_LIMIT = "60/minute"
SYNC_RATE_LIMIT = os.getenv("SYNC_RATE_LIMIT", "6/minute")

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[os.getenv("RATE_LIMIT", DEFAULT_RATE_LIMIT)],
)


def get_configured_api_keys() -> List[str]:
    """Accepted keys: ``API_KEY`` plus the comma-separated ``API_KEYS`` used during rotation."""
    keys = [os.getenv("API_KEY", "")]
    keys.extend(os.getenv("API_KEYS", "").split(","))
    return [key.strip() for key in keys if key.strip()]


async def verify_api_key(credentials: HTTPAuthorizationCredentials = Security(security)) -> str:
    """Check the bearer token against the configured API keys.

    Raises:
        HTTPException: 500 if no key is configured, 401 if the token does not match.
    """
    presented = credentials.credentials
    accepted = get_configured_api_keys()
    if not accepted:
        logger.error("Neither API_KEY nor API_KEYS is configured")
        raise HTTPException(status_code=500, detail="Server configuration error")
    matches = [secrets.compare_digest(presented, key) for key in accepted]
    if not any(matches):
        raise HTTPException(status_code=401, detail="Invalid API key")
    return presented
