"""Account API endpoints - registration, login, activation and credentials."""

import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from invest_api import config
from invest_api.auth import get_current_user
from invest_api.database import get_session
from invest_api.models import User
from invest_api.schemas.auth import (
    ActivateRequest,
    EmailRequest,
    ForgotPasswordData,
    ForgotPasswordResponse,
    LoginData,
    LoginRequest,
    LoginResponse,
    RegisterData,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    UpdateInfoRequest,
    UpdatePasswordRequest,
    UserData,
    UserResponse,
)
from invest_api.schemas.common import MessageResponse, UserProfile
from invest_api.services import accounts as accounts_service
from invest_api.services import email as email_service
from invest_api.services import notifications as notification_service
from invest_api.services.security import create_access_token

logger = logging.getLogger(__name__)

router = APIRouter()


def _user_response(message: str, user: User) -> UserResponse:
    return UserResponse(message=message, data=UserData(user=UserProfile.model_validate(user)))


async def _send_password_alert(request: Request, user: User) -> None:
    """Password change alert. Failures are logged, the change stands."""
    try:
        await email_service.send_password_change_alert(
            user.email,
            user_name=user.fullname or user.username,
            ip_address=request.client.host if request.client else None,
            device_info=request.headers.get("user-agent"),
        )
    except email_service.EmailDeliveryError as e:
        logger.warning("Password change alert for %s not sent: %s", user.username, e)


# ============================================================================
# Registration & login
# ============================================================================


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register an account",
)
async def register(
    data: RegisterRequest,
    session: AsyncSession = Depends(get_session),
) -> RegisterResponse:
    """Create an unactivated account and email its activation key."""
    try:
        user, activation_key = await accounts_service.register_user(session, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except IntegrityError:
        await session.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User with this email or username already exists",
        )

    try:
        await email_service.send_activation_email(
            user.email, user_name=user.fullname or user.username, activation_key=activation_key
        )
    except email_service.EmailDeliveryError as e:
        logger.warning("Activation email for %s not sent: %s", user.username, e)

    return RegisterResponse(
        message="Registration successful",
        data=RegisterData(
            user=UserProfile.model_validate(user),
            message="Please check your email for activation instructions",
        ),
    )


@router.post("/login", response_model=LoginResponse, summary="Log in")
async def login(
    data: LoginRequest,
    session: AsyncSession = Depends(get_session),
) -> LoginResponse:
    """Exchange an email or username plus password for a bearer token."""
    user = await accounts_service.authenticate(session, data.identifier, data.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )
    if not user.is_activated:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Please activate your account before logging in",
        )

    return LoginResponse(
        message="Login successful",
        data=LoginData(
            user=UserProfile.model_validate(user),
            token=create_access_token(user.id),
        ),
    )


@router.get("/me", response_model=UserResponse, summary="Get my profile")
async def me(user: User = Depends(get_current_user)) -> UserResponse:
    return _user_response("User fetched successfully", user)


# ============================================================================
# Activation
# ============================================================================


@router.post("/activate", response_model=UserResponse, summary="Activate an account")
async def activate(
    data: ActivateRequest,
    session: AsyncSession = Depends(get_session),
) -> UserResponse:
    """Consume an activation key. A key can only be used once."""
    if not data.activation_key:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Activation key is required",
        )

    try:
        user = await accounts_service.activate_account(session, data.activation_key)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return _user_response("Account activated successfully", user)


@router.post(
    "/actkeyrequest",
    response_model=MessageResponse,
    summary="Request a new activation key",
)
async def request_activation_key(
    data: EmailRequest,
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    user = await accounts_service.get_user_by_email(session, data.email)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No account found with this email address",
        )

    try:
        activation_key = await accounts_service.regenerate_activation_key(session, user)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        await email_service.send_activation_email(
            user.email, user_name=user.fullname or user.username, activation_key=activation_key
        )
    except email_service.EmailDeliveryError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send activation email",
        )

    return MessageResponse(message="Activation key sent successfully")


# ============================================================================
# Passwords
# ============================================================================


@router.post(
    "/forgotpwd",
    response_model=ForgotPasswordResponse,
    response_model_exclude_none=True,
    summary="Start a password reset",
)
async def forgot_password(
    data: EmailRequest,
    session: AsyncSession = Depends(get_session),
) -> ForgotPasswordResponse:
    """Email a reset link. The response does not reveal whether the email exists."""
    user = await accounts_service.get_user_by_email(session, data.email)
    if user is None:
        return ForgotPasswordResponse(
            message="If an account with this email exists, a password reset link has been sent"
        )

    token = await accounts_service.start_password_reset(session, user)
    query = urlencode({"token": token, "email": user.email})
    reset_link = f"{config.FRONTEND_URL}/reset-password?{query}"

    try:
        await email_service.send_forgotten_password_email(
            user.email, user_name=user.fullname or user.username, reset_link=reset_link
        )
    except email_service.EmailDeliveryError as e:
        logger.warning("Reset email for %s not sent: %s", user.username, e)

    return ForgotPasswordResponse(
        message="Password reset instructions sent",
        data=ForgotPasswordData(
            message="Please check your email for password reset instructions",
            reset_token=token if config.is_development() else None,
        ),
    )


@router.post("/changepwd", response_model=MessageResponse, summary="Reset password with a token")
async def change_password(
    data: ResetPasswordRequest,
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    try:
        user = await accounts_service.reset_password(session, data.token, data.new_password)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    await _send_password_alert(request, user)
    return MessageResponse(message="Password changed successfully")


@router.post("/updatepwd", response_model=MessageResponse, summary="Change my password")
async def update_password(
    data: UpdatePasswordRequest,
    request: Request,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    try:
        await accounts_service.change_password(
            session, user, data.current_password, data.new_password
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    await _send_password_alert(request, user)
    return MessageResponse(message="Password updated successfully")


@router.post("/updateinfo", response_model=UserResponse, summary="Update my profile")
async def update_info(
    data: UpdateInfoRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> UserResponse:
    """Change phone, nationality or full name. Omitted fields are left alone."""
    user = await accounts_service.update_info(session, user, data)
    return _user_response("User information updated successfully", user)


# ============================================================================
# Notifications
# ============================================================================


@router.delete(
    "/notifications/{notification_id}",
    response_model=UserResponse,
    summary="Delete one notification",
)
async def delete_notification(
    notification_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> UserResponse:
    await notification_service.delete_notification(session, user.id, notification_id)
    return _user_response("Notification deleted", user)


@router.post(
    "/notifications/clear",
    response_model=UserResponse,
    summary="Delete all my notifications",
)
async def clear_notifications(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> UserResponse:
    await notification_service.clear_notifications(session, user.id)
    return _user_response("All notifications cleared", user)
