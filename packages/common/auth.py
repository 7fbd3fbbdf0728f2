"""Auth helpers for FastAPI endpoints.

Provides:
- `User` Pydantic model for the JWT subject (the student or staff identity)
- `verify_jwt` to decode/validate RS256 JWTs issued by the identity provider
- `get_current_user` FastAPI dependency using HTTP Bearer auth
"""

import logging
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import jwt
from pydantic import BaseModel
from .config import get_settings

log = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)

# Longest token subject stored as a student or staff id
MAX_SUBJECT_LENGTH = 255


class User(BaseModel):
    """Authenticated user extracted from a validated JWT."""
    sub: str
    email: str | None = None
    roles: list[str] = []


def verify_jwt(token: str) -> User:
    """Decode and validate a JWT and return a `User`.

    Validates signature (RS256), issuer, audience and expiration using settings,
    and that the subject fits the stored student id columns.
    Raises HTTP 401 on any validation failure.

    Args:
        token: Bearer token string (JWT).

    Returns:
        User: Parsed user info from token claims.
    """
    s = get_settings()
    try:
        payload = jwt.decode(
            token,
            s.JWT_PUBLIC_KEY,
            algorithms=["RS256"],
            audience=s.OIDC_AUDIENCE,
            issuer=s.OIDC_ISSUER,
            options={"verify_exp": True, "require": ["sub", "exp"]},
        )
    except jwt.PyJWTError as exc:
        log.warning("rejected bearer token", extra={"reason": type(exc).__name__})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )
    sub = str(payload["sub"])
    if not sub or len(sub) > MAX_SUBJECT_LENGTH:
        log.warning("rejected bearer token", extra={"reason": "bad_subject", "subject_length": len(sub)})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )
    return User(
        sub=sub,
        email=payload.get("email"),
        roles=payload.get("roles", []),
    )


def get_current_user(creds: HTTPAuthorizationCredentials = Depends(security)) -> User:
    """FastAPI dependency to extract the current user from Authorization header.

    Args:
        creds: Parsed HTTP Bearer credentials injected by FastAPI.

    Returns:
        User: The authenticated user.

    Raises:
        HTTPException: 401 if credentials are missing or token is invalid.
    """
    if not creds:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing credentials",
        )
    return verify_jwt(creds.credentials)
