import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import jwt, JWTError
from mogumogu_api.core.config import SUPABASE_JWT_SECRET, JWT_ALGORITHM

logger = logging.getLogger(__name__)


def decode_access_token(token: str) -> dict:
    """
    Check an HS256 access token locally and return its claims.

    Raises:
        JWTError: If the signature, expiry or format is invalid
    """
    if not SUPABASE_JWT_SECRET:
        logger.error("SUPABASE_JWT_SECRET not configured - cannot verify tokens")
        raise JWTError("Token verification not configured")

    # Identity-service tokens carry aud="authenticated"; audience is not pinned here
    return jwt.decode(
        token,
        SUPABASE_JWT_SECRET,
        algorithms=[JWT_ALGORITHM],
        options={"verify_aud": False},
    )


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Mint a token in the identity service's format (operator tooling and tests)."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=60))
    to_encode.update({"exp": expire, "aud": "authenticated"})
    return jwt.encode(to_encode, SUPABASE_JWT_SECRET, algorithm=JWT_ALGORITHM)
