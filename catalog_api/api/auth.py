"""Caller identity for the catalog API.

Bearer tokens are JWTs signed with ``auth_secret``. Claims: ``sub`` (user
id), ``role`` (``admin`` or ``user``), ``iat`` and ``exp``.

Usage:
    @router.post("", dependencies=[Depends(require_admin)])
    async def create(...): ...
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from catalog_api.infrastructure.config import settings

logger = structlog.get_logger()

ROLE_ADMIN = "admin"
ROLE_USER = "user"

_bearer = HTTPBearer(auto_error=False)


class InvalidTokenError(Exception):
    """Raised when a bearer token is malformed, expired or badly signed."""


@dataclass(frozen=True)
class Caller:
    """Authenticated caller."""

    user_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def issue_token(
    user_id: str,
    role: str = ROLE_USER,
    secret: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Mint a signed access token.

    Args:
        user_id: Subject of the token.
        role: Caller role.
        secret: Signing key, ``auth_secret`` when omitted.
        expires_delta: Lifetime, ``access_token_expire_minutes`` when omitted.
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    issued_at = datetime.now(timezone.utc)
    claims = {
        "sub": user_id,
        "role": role,
        "iat": issued_at,
        "exp": issued_at + expires_delta,
    }
    return jwt.encode(
        claims, secret or settings.auth_secret, algorithm=settings.auth_algorithm
    )


def verify_token(token: str, secret: str | None = None) -> Caller:
    """Check a token's signature and expiry and decode its claims.

    Raises:
        InvalidTokenError: Malformed, expired, badly signed or missing subject.
    """
    try:
        claims = jwt.decode(
            token,
            secret or settings.auth_secret,
            algorithms=[settings.auth_algorithm],
        )
    except ExpiredSignatureError as e:
        raise InvalidTokenError("Token expired") from e
    except JWTError as e:
        raise InvalidTokenError(str(e)) from e

    user_id = claims.get("sub")
    if not isinstance(user_id, str) or not user_id:
        raise InvalidTokenError("Missing subject")
    return Caller(user_id=user_id, role=str(claims.get("role", ROLE_USER)))


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> Caller:
    """Resolve the caller from the Authorization header."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="You are not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return verify_token(credentials.credentials)
    except InvalidTokenError as e:
        logger.warning("Invalid bearer token", reason=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is not valid",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


async def require_user(caller: Caller = Depends(get_current_user)) -> Caller:
    """Any authenticated caller."""
    return caller


async def require_admin(caller: Caller = Depends(get_current_user)) -> Caller:
    """Authenticated caller with the admin role."""
    if not caller.is_admin:
        logger.warning("Admin access denied", user_id=caller.user_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not allowed to do that",
        )
    return caller
