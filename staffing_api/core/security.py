"""Bearer-token authentication and the admin gate used by every admin route."""

from __future__ import annotations

import logging

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from staffing_api.core.config import settings
from staffing_api.core.exceptions import ForbiddenError, UnauthorizedError
from staffing_api.db.base import get_db
from staffing_api.domain.profile import Profile
from staffing_api.repositories.agency import ProfileRepository

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"

bearer_scheme = HTTPBearer(auto_error=False)


def decode_token(token: str) -> dict:
    """Decode and validate a bearer token; raises UnauthorizedError."""
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options={"require": ["sub"], "verify_aud": settings.jwt_audience is not None},
        )
    except jwt.PyJWTError as exc:
        logger.warning("Rejected bearer token: %s", exc)
        raise UnauthorizedError("Invalid or expired token") from exc


async def get_current_caller(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Return the caller's profile id from the ``sub`` claim."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError()
    payload = decode_token(credentials.credentials)
    caller_id = str(payload.get("sub") or "")
    if not caller_id:
        raise UnauthorizedError("Token missing subject claim")
    return caller_id


async def require_admin(
    caller_id: str = Depends(get_current_caller),
    session: AsyncSession = Depends(get_db),
) -> Profile:
    """Resolve the caller's profile and require the admin role."""
    profile = await ProfileRepository(session).get_by_id(caller_id)
    if profile is None or profile.role != ADMIN_ROLE:
        logger.warning("Non-admin caller %s denied admin access", caller_id)
        raise ForbiddenError()
    return profile
