"""
Bearer-token authentication for user-facing endpoints.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import Depends, Request
from jose import JWTError

from mogumogu_api.api.deps import get_identity_client
from mogumogu_api.clients.identity_client import IdentityClient
from mogumogu_api.core.config import SUPABASE_JWT_SECRET
from mogumogu_api.core.errors import Unauthenticated, InvalidToken
from mogumogu_api.core.security import decode_access_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Authenticated caller as reported by the identity service."""
    user_id: str
    email: Optional[str] = None


def extract_bearer_token(request: Request) -> str:
    """Return the bearer token or raise Unauthenticated without any external call."""
    auth_header = request.headers.get("Authorization") or ""
    if not auth_header.startswith("Bearer "):
        raise Unauthenticated()

    token = auth_header[len("Bearer "):].strip()
    if not token:
        raise Unauthenticated()
    return token


def verify_token(token: str, identity_client: IdentityClient) -> Identity:
    """
    Exchange a token for the caller's identity.

    With SUPABASE_JWT_SECRET set, malformed or expired HS256 tokens are
    rejected locally before the identity service is called.
    """
    if SUPABASE_JWT_SECRET:
        try:
            decode_access_token(token)
        except JWTError as e:
            logger.info(f"Token rejected before exchange: {e}")
            raise InvalidToken()

    if not identity_client.configured:
        logger.error("SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not configured - cannot verify tokens")
        raise InvalidToken()

    try:
        user = identity_client.get_user(token)
    except httpx.HTTPError as e:
        logger.error(f"Identity service call failed: {e}")
        raise InvalidToken()

    if not user:
        raise InvalidToken()

    return Identity(user_id=str(user["id"]), email=user.get("email"))


def get_current_identity(
    request: Request,
    identity_client: IdentityClient = Depends(get_identity_client),
) -> Identity:
    """FastAPI dependency: authenticate the caller."""
    return verify_token(extract_bearer_token(request), identity_client)
