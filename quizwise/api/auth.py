"""
Bearer token authentication.

Tokens are HS256 JWTs carrying the user id in `sub`. Issuing tokens for real
users (login, OAuth) happens outside this service; `create_token` exists for
the CLI and for tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import Settings, get_settings
from quizwise.core.exceptions import AuthenticationError

bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthUser:
    user_id: str


def create_token(user_id: str, ttl_minutes: int | None = None, settings: Settings | None = None) -> str:
    settings = settings or get_settings()
    now = datetime.now(timezone.utc)
    ttl = ttl_minutes if ttl_minutes is not None else settings.access_token_ttl_minutes
    payload = {
        "sub": user_id,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=ttl)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings | None = None) -> AuthUser:
    """
    Verify a token and return the user it was issued for.

    Raises:
        AuthenticationError: Bad signature, expired, or no subject
    """
    settings = settings or get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationError("Token expired") from e
    except jwt.InvalidTokenError as e:
        raise AuthenticationError("Invalid token") from e

    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not user_id:
        raise AuthenticationError("Token has no subject")
    return AuthUser(user_id=user_id)


def get_current_user(creds: HTTPAuthorizationCredentials | None = Depends(bearer)) -> AuthUser:
    """FastAPI dependency resolving the caller from the Authorization header."""
    if creds is None or not creds.credentials:
        raise AuthenticationError("Missing bearer token")
    return decode_token(creds.credentials)
