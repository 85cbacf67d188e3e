"""Admin access to the dashboard queries.

The storefront's identity provider issues HS256 JWTs. When
``ADMIN_JWT_SECRET`` is set, the query endpoint requires such a token whose
subject is a user profile flagged ``is_admin``. Ingestion is always public.
"""

from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scent_analytics.core.config import settings
from scent_analytics.core.database import get_db
from scent_analytics.core.exceptions import ForbiddenError, NotAuthenticatedError
from scent_analytics.models.user_profile import UserProfile

ALGORITHM = "HS256"
bearer_scheme = HTTPBearer(auto_error=False)


def verify_token(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            settings.ADMIN_JWT_SECRET,
            algorithms=[ALGORITHM],
            audience=settings.ADMIN_JWT_AUDIENCE,
        )
    except JWTError:
        raise NotAuthenticatedError("Invalid or expired token")


async def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> UserProfile | None:
    """Dependency: the admin profile behind the bearer token.

    Returns None without checking anything when admin auth is disabled.
    """
    if not settings.ADMIN_JWT_SECRET:
        return None
    if credentials is None:
        raise NotAuthenticatedError()

    payload = verify_token(credentials.credentials)
    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise NotAuthenticatedError("Invalid token payload")

    result = await db.execute(select(UserProfile).where(UserProfile.id == user_id))
    profile = result.scalar_one_or_none()
    if profile is None or not profile.is_admin:
        raise ForbiddenError()
    return profile
