"""Authentication for user and admin endpoints."""

import jwt
from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from invest_api.database import get_session
from invest_api.models import User
from invest_api.services.security import decode_access_token

# Bearer token scheme
bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Validate the bearer token and return the activated user it belongs to.

    Args:
        credentials: Token from the Authorization header
        session: Database session

    Returns:
        The authenticated user

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired, or
            the user no longer exists; 403 if the account is not activated
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("No token provided")

    try:
        user_id = decode_access_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired, please login again")
    except jwt.InvalidTokenError:
        raise _unauthorized("Token is not valid")

    user = await session.get(User, user_id)
    if user is None:
        raise _unauthorized("User not found")

    if not user.is_activated:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Please activate your account before accessing this resource",
        )

    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Allow only admin accounts through."""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user
