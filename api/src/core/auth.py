"""
Caller Identity

FastAPI dependencies resolving the caller of a marketplace request from a
bearer token (or the ``access_token`` cookie set by the web client).

Tokens only say who the caller is. What the caller may do with an
application depends on their role in the owning company, which is looked up
per request by the services (see VisibilityProjector).
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Annotated, Any
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.core.database import DbSession
from src.core.security import decode_token

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "access_token"
PLATFORM_USER_TYPE = "PLATFORM"

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class UserPrincipal:
    """Authenticated caller, built from token claims only."""

    user_id: UUID
    email: str
    name: str = ""
    is_platform_admin: bool = False


@dataclass
class RequestContext:
    """Caller and database session of one HTTP request."""

    user: UserPrincipal
    db: "AsyncSession"

    @property
    def user_id(self) -> UUID:
        return self.user.user_id


def principal_from_claims(claims: dict[str, Any]) -> UserPrincipal | None:
    """
    Build a principal from decoded token claims.

    Returns None when the subject is not a user id or the email claim is
    missing; such tokens are treated as anonymous.
    """
    subject = claims.get("sub")
    if not subject:
        return None

    try:
        user_id = UUID(str(subject))
    except ValueError:
        logger.warning(f"Ignoring token with non-UUID subject {subject!r}")
        return None

    email = claims.get("email")
    if not email:
        logger.warning(f"Ignoring token for user {user_id} without an email claim")
        return None

    return UserPrincipal(
        user_id=user_id,
        email=email,
        name=claims.get("name", ""),
        is_platform_admin=bool(claims.get("is_superuser"))
        or claims.get("user_type") == PLATFORM_USER_TYPE,
    )


async def get_current_user_optional(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> UserPrincipal | None:
    """Resolve the caller, or None for anonymous or invalid tokens."""
    if credentials:
        token = credentials.credentials
    else:
        token = request.cookies.get(TOKEN_COOKIE)
    if not token:
        return None

    claims = decode_token(token, expected_type="access")
    if claims is None:
        return None
    return principal_from_claims(claims)


async def get_current_user(
    user: Annotated[UserPrincipal | None, Depends(get_current_user_optional)],
) -> UserPrincipal:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_current_superuser(
    user: Annotated[UserPrincipal, Depends(get_current_user)],
) -> UserPrincipal:
    """Require a platform admin (used by the legacy migration endpoint)."""
    if not user.is_platform_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Platform admin privileges required",
        )
    return user


async def get_request_context(
    user: Annotated[UserPrincipal, Depends(get_current_user)],
    db: DbSession,
) -> RequestContext:
    return RequestContext(user=user, db=db)


CurrentUser = Annotated[UserPrincipal, Depends(get_current_user)]
CurrentSuperuser = Annotated[UserPrincipal, Depends(get_current_superuser)]
Context = Annotated[RequestContext, Depends(get_request_context)]
