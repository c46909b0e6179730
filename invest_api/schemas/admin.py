"""Pydantic schemas for admin endpoints."""

from datetime import datetime
from decimal import Decimal

from pydantic import Field

from invest_api.models import NotificationType, TradeStatus, TransactionStatus
from invest_api.schemas.common import (
    NotificationResponse,
    OwnerSummary,
    RequestModel,
    ResponseModel,
)
from invest_api.schemas.trading import MAX_AMOUNT, TradeSummary, TransactionSummary


class UserUpdate(RequestModel):
    """Absolute balance/profit values. Omitted fields are left alone."""

    user_id: str = Field(..., min_length=1)
    balance: Decimal | None = Field(default=None, gt=-MAX_AMOUNT, lt=MAX_AMOUNT)
    profit: Decimal | None = Field(default=None, gt=-MAX_AMOUNT, lt=MAX_AMOUNT)


class TransactionStatusUpdate(RequestModel):
    transaction_id: str = Field(..., min_length=1, description="Transaction document ID")
    status: TransactionStatus


class TradeStatusUpdate(RequestModel):
    trade_id: str = Field(..., min_length=1)
    status: TradeStatus


class NotifyUserRequest(RequestModel):
    """Append a notification and optionally email the user.

    The email goes out only when both subject and body are given.
    """

    user_id: str = Field(..., min_length=1)
    title: NotificationType = NotificationType.ADMIN
    text: str = Field(..., min_length=1)
    email_subject: str | None = Field(default=None, max_length=200)
    email_body: str | None = None


class AdminUserView(ResponseModel):
    """Full account view for the admin table."""

    id: str
    username: str
    email: str
    phone: str
    nationality: str
    fullname: str
    is_activated: bool
    is_admin: bool
    balance: str
    profit: str
    activation_key: str | None
    reset_password_token: str | None
    reset_token_expiry: datetime | None
    created_at: datetime
    updated_at: datetime
    notifications: list[NotificationResponse] = Field(default_factory=list)


class AdminTradeView(TradeSummary):
    user: OwnerSummary | None = None
    updated_at: datetime


class AdminTransactionView(TransactionSummary):
    user: OwnerSummary | None = None
    wallet_address: str | None
    reference: str | None
    notes: str | None
    processed_at: datetime | None
    processed_by: str | None
    updated_at: datetime


class UserUpdatedResponse(ResponseModel):
    message: str
    user: AdminUserView


class TradeUpdatedResponse(ResponseModel):
    message: str
    trade: AdminTradeView


class TransactionUpdatedResponse(ResponseModel):
    message: str
    transaction: AdminTransactionView


class UsersTableResponse(ResponseModel):
    users: list[AdminUserView] = Field(default_factory=list)


class TradesTableResponse(ResponseModel):
    trades: list[AdminTradeView] = Field(default_factory=list)


class TransactionsTableResponse(ResponseModel):
    transactions: list[AdminTransactionView] = Field(default_factory=list)
