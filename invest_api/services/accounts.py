"""Account service - registration, activation and credential changes."""

import logging
from datetime import timedelta

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from invest_api import config, telemetry
from invest_api.database import utcnow
from invest_api.models import NotificationType, User
from invest_api.schemas.auth import RegisterRequest, UpdateInfoRequest
from invest_api.services.notifications import add_notification
from invest_api.services.security import (
    generate_activation_key,
    generate_id,
    generate_reset_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def find_by_email_or_username(session: AsyncSession, identifier: str) -> User | None:
    """Look a user up by email (case-insensitive) or exact username."""
    result = await session.execute(
        select(User).where(
            or_(User.email == identifier.lower(), User.username == identifier)
        )
    )
    return result.scalars().first()


async def register_user(session: AsyncSession, data: RegisterRequest) -> tuple[User, str]:
    """Create an unactivated account.

    Args:
        session: Database session
        data: Registration data

    Returns:
        Tuple of (created user, activation key)

    Raises:
        ValueError: If the email or username is taken
        IntegrityError: If a concurrent registration won the unique index
    """
    result = await session.execute(
        select(User.id).where(
            or_(User.email == data.email.lower(), User.username == data.username)
        )
    )
    if result.first() is not None:
        raise ValueError("User with this email or username already exists")

    activation_key = generate_activation_key()
    user = User(
        id=generate_id(),
        username=data.username,
        email=data.email.lower(),
        phone=data.phone,
        nationality=data.nationality,
        fullname=data.fullname,
        password_hash=hash_password(data.password),
        balance="0",
        profit="0",
        is_activated=False,
        is_admin=False,
        activation_key=activation_key,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)

    telemetry.record_registration()
    logger.info("Registered user %s", user.username)
    return user, activation_key


async def authenticate(session: AsyncSession, identifier: str, password: str) -> User | None:
    """Return the user if the credentials match, None otherwise.

    Activation is not checked here; the caller decides how to report it.
    """
    user = await find_by_email_or_username(session, identifier)
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


async def activate_account(session: AsyncSession, activation_key: str) -> User:
    """Consume an activation key.

    Raises:
        ValueError: If the key matches no account or the account is active
    """
    result = await session.execute(
        select(User).where(User.activation_key == activation_key)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise ValueError("Invalid activation key")
    if user.is_activated:
        raise ValueError("Account is already activated")

    user.is_activated = True
    user.activation_key = None
    add_notification(
        session, user.id, NotificationType.ACTIVATION, "Account activated successfully"
    )
    await session.commit()

    telemetry.record_activation()
    return user


async def regenerate_activation_key(session: AsyncSession, user: User) -> str:
    """Replace the activation key of an unactivated account.

    Raises:
        ValueError: If the account is already activated
    """
    if user.is_activated:
        raise ValueError("This account is already activated")
    activation_key = generate_activation_key()
    user.activation_key = activation_key
    await session.commit()
    return activation_key


async def start_password_reset(session: AsyncSession, user: User) -> str:
    """Issue a reset token valid for RESET_TOKEN_TTL_SECONDS."""
    token = generate_reset_token()
    user.reset_password_token = token
    user.reset_token_expiry = utcnow() + timedelta(seconds=config.RESET_TOKEN_TTL_SECONDS)
    await session.commit()
    return token


async def reset_password(session: AsyncSession, token: str, new_password: str) -> User:
    """Set a new password using an unexpired reset token.

    Raises:
        ValueError: If the token is unknown or expired
    """
    result = await session.execute(
        select(User).where(
            User.reset_password_token == token,
            User.reset_token_expiry > utcnow(),
        )
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise ValueError("Invalid or expired reset token")

    user.password_hash = hash_password(new_password)
    user.reset_password_token = None
    user.reset_token_expiry = None
    add_notification(
        session, user.id, NotificationType.PASSWORD_CHANGE, "Password changed via reset token"
    )
    await session.commit()
    return user


async def change_password(
    session: AsyncSession, user: User, current_password: str, new_password: str
) -> User:
    """Change the password of an authenticated user.

    Raises:
        ValueError: If the current password does not match
    """
    if not verify_password(current_password, user.password_hash):
        raise ValueError("Current password is incorrect")

    user.password_hash = hash_password(new_password)
    add_notification(
        session,
        user.id,
        NotificationType.PASSWORD_CHANGE,
        "Password changed from authenticated session",
    )
    await session.commit()
    return user


async def update_info(session: AsyncSession, user: User, data: UpdateInfoRequest) -> User:
    """Update the profile fields that were provided."""
    if data.phone:
        user.phone = data.phone
    if data.nationality:
        user.nationality = data.nationality
    if data.fullname:
        user.fullname = data.fullname
    await session.commit()
    await session.refresh(user)
    return user
