"""Admin API endpoints - overrides, user notifications and record tables.

Every route requires an authenticated admin account.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from invest_api.auth import require_admin
from invest_api.database import get_session
from invest_api.models import User
from invest_api.schemas.admin import (
    AdminTradeView,
    AdminTransactionView,
    AdminUserView,
    NotifyUserRequest,
    TradeStatusUpdate,
    TradesTableResponse,
    TradeUpdatedResponse,
    TransactionStatusUpdate,
    TransactionsTableResponse,
    TransactionUpdatedResponse,
    UsersTableResponse,
    UserUpdate,
    UserUpdatedResponse,
)
from invest_api.schemas.common import MessageResponse
from invest_api.services import admin as admin_service
from invest_api.services.email import EmailDeliveryError

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


def _not_found(what: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found")


# ============================================================================
# Overrides
# ============================================================================


@router.post("/user/update", response_model=UserUpdatedResponse, summary="Set balance/profit")
async def update_user(
    data: UserUpdate,
    session: AsyncSession = Depends(get_session),
) -> UserUpdatedResponse:
    """Overwrite a user's balance and/or profit.

    - **balance**, **profit**: Absolute values, not deltas
    """
    user = await admin_service.update_user(
        session, data.user_id, balance=data.balance, profit=data.profit
    )
    if user is None:
        raise _not_found("User")
    return UserUpdatedResponse(message="User updated", user=AdminUserView.model_validate(user))


@router.post(
    "/transaction/update",
    response_model=TransactionUpdatedResponse,
    summary="Set a transaction status",
)
async def update_transaction_status(
    data: TransactionStatusUpdate,
    admin: User = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
) -> TransactionUpdatedResponse:
    """Set any status on a transaction. Approving a deposit does not credit the balance."""
    transaction = await admin_service.update_transaction_status(
        session, data.transaction_id, data.status, processed_by=admin.id
    )
    if transaction is None:
        raise _not_found("Transaction")
    return TransactionUpdatedResponse(
        message="Transaction updated",
        transaction=AdminTransactionView.model_validate(transaction),
    )


@router.post("/trade/update", response_model=TradeUpdatedResponse, summary="Set a trade status")
async def update_trade_status(
    data: TradeStatusUpdate,
    session: AsyncSession = Depends(get_session),
) -> TradeUpdatedResponse:
    trade = await admin_service.update_trade_status(session, data.trade_id, data.status)
    if trade is None:
        raise _not_found("Trade")
    return TradeUpdatedResponse(message="Trade updated", trade=AdminTradeView.model_validate(trade))


@router.post("/user/notify", response_model=MessageResponse, summary="Notify a user")
async def notify_user(
    data: NotifyUserRequest,
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Append a notification; also email it when subject and body are given."""
    try:
        user = await admin_service.notify_user(
            session,
            data.user_id,
            data.title,
            data.text,
            email_subject=data.email_subject,
            email_body=data.email_body,
        )
    except EmailDeliveryError as e:
        logger.error("Notification email to user %s failed: %s", data.user_id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Notification saved but email failed",
        )

    if user is None:
        raise _not_found("User")
    return MessageResponse(message="Notification and email sent successfully")


# ============================================================================
# Tables
# ============================================================================


@router.get("/users", response_model=UsersTableResponse, summary="List all users")
async def list_users(session: AsyncSession = Depends(get_session)) -> UsersTableResponse:
    users = await admin_service.list_users(session)
    return UsersTableResponse(users=[AdminUserView.model_validate(u) for u in users])


@router.get("/trades", response_model=TradesTableResponse, summary="List all trades")
async def list_trades(session: AsyncSession = Depends(get_session)) -> TradesTableResponse:
    trades = await admin_service.list_trades(session)
    return TradesTableResponse(trades=[AdminTradeView.model_validate(t) for t in trades])


@router.get(
    "/transactions",
    response_model=TransactionsTableResponse,
    summary="List all transactions",
)
async def list_transactions(
    session: AsyncSession = Depends(get_session),
) -> TransactionsTableResponse:
    transactions = await admin_service.list_transactions(session)
    return TransactionsTableResponse(
        transactions=[AdminTransactionView.model_validate(t) for t in transactions]
    )


# ============================================================================
# Deletes
# ============================================================================


@router.delete("/user/{user_id}", response_model=MessageResponse, summary="Delete a user")
async def delete_user(
    user_id: str,
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Delete a user with all their trades, transactions and notifications."""
    try:
        deleted = await admin_service.delete_user(session, user_id)
    except SQLAlchemyError as e:
        logger.error("Failed to delete user %s: %s", user_id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete user",
        )

    if not deleted:
        raise _not_found("User")
    return MessageResponse(message="User and all associated data deleted successfully")


@router.delete(
    "/transaction/{transaction_id}",
    response_model=MessageResponse,
    summary="Delete a transaction",
)
async def delete_transaction(
    transaction_id: str,
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    if not await admin_service.delete_transaction(session, transaction_id):
        raise _not_found("Transaction")
    return MessageResponse(message="Transaction deleted successfully")


@router.delete("/trade/{trade_id}", response_model=MessageResponse, summary="Delete a trade")
async def delete_trade(
    trade_id: str,
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    if not await admin_service.delete_trade(session, trade_id):
        raise _not_found("Trade")
    return MessageResponse(message="Trade deleted successfully")
