"""Pydantic schemas for trading, deposit and withdrawal endpoints."""

import enum
from datetime import datetime
from decimal import Decimal

from pydantic import AliasChoices, Field

from invest_api.models import TradePlan, TradeStatus, TransactionStatus, TransactionType
from invest_api.schemas.common import (
    NotificationResponse,
    Pagination,
    RequestModel,
    ResponseModel,
)


# Ledger amounts must fit Numeric(20, 8)
MAX_AMOUNT = Decimal("1e12")


class AccountType(str, enum.Enum):
    """Which ledger field a withdrawal is taken from."""

    BALANCE = "balance"
    PROFIT = "profit"


# ============================================================================
# Requests
# ============================================================================


class TradeCreate(RequestModel):
    """Request schema for initiating a plan trade.

    Maturity values are computed by the client and stored as given.
    """

    plan: TradePlan = Field(..., alias="type", description="Starter, Pro or Elite")
    amount: Decimal = Field(..., gt=0, lt=MAX_AMOUNT, description="Amount taken from the balance")
    fee: Decimal = Field(default=Decimal("0"), ge=0, lt=MAX_AMOUNT)
    duration: str = Field(..., min_length=1, max_length=64, description='e.g. "7 days"')
    maturity_amount: Decimal = Field(..., gt=0, lt=MAX_AMOUNT)
    maturity_date: datetime
    profit: Decimal = Field(..., gt=-MAX_AMOUNT, lt=MAX_AMOUNT)
    date: datetime
    invoice: str = Field(..., min_length=1, max_length=128)
    notes: str | None = Field(default=None, max_length=500)


class DepositCreate(RequestModel):
    """Request schema for a deposit request."""

    amount: Decimal = Field(..., gt=0, lt=MAX_AMOUNT)
    method: str = Field(..., min_length=1, max_length=64)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    wallet_address: str | None = Field(default=None, max_length=255)
    reference: str | None = Field(default=None, max_length=255)


class WithdrawalCreate(DepositCreate):
    """Request schema for a withdrawal request.

    ``amount`` is in ``currency``; ``usd_amount`` is what gets debited from
    the chosen account field.
    """

    account_type: AccountType
    usd_amount: Decimal = Field(..., gt=0, lt=MAX_AMOUNT)


# ============================================================================
# Responses
# ============================================================================


class TradeSummary(ResponseModel):
    """Response schema for a trade."""

    id: str
    plan: TradePlan = Field(
        validation_alias=AliasChoices("plan", "type"), serialization_alias="type"
    )
    amount: float
    duration: str
    # Kept snake_case on the wire, as the dashboards read them
    maturity_amount: float = Field(alias="maturity_amount")
    maturity_date: datetime = Field(alias="maturity_date")
    profit: float
    date: datetime
    invoice: str
    notes: str | None
    total_value: float
    fees: float
    status: TradeStatus
    created_at: datetime


class TransactionSummary(ResponseModel):
    """Response schema for a deposit or withdrawal."""

    id: str
    type: TransactionType
    amount: float
    currency: str
    status: TransactionStatus
    method: str
    transaction_id: str
    created_at: datetime


class TradeData(ResponseModel):
    trade: TradeSummary


class TradeCreatedResponse(ResponseModel):
    message: str
    data: TradeData


class TransactionData(ResponseModel):
    transaction: TransactionSummary


class TransactionCreatedResponse(ResponseModel):
    message: str
    data: TransactionData


class TradeStatsResponse(ResponseModel):
    """Aggregates over a user's trades."""

    total_trades: int = 0
    total_volume: float = 0
    total_fees: float = 0
    completed_trades: int = 0
    pending_trades: int = 0
    by_plan: dict[str, int] = Field(default_factory=dict)


class TransactionTotalsResponse(ResponseModel):
    """Aggregates over one transaction type."""

    total_amount: float = 0
    total_count: int = 0
    pending_amount: float = 0
    approved_amount: float = 0
    rejected_amount: float = 0


class TransactionStatsResponse(ResponseModel):
    deposits: TransactionTotalsResponse
    withdrawals: TransactionTotalsResponse


class TradesData(ResponseModel):
    trades: list[TradeSummary] = Field(default_factory=list)
    pagination: Pagination
    stats: TradeStatsResponse


class TradesResponse(ResponseModel):
    message: str
    data: TradesData


class ActivitiesData(ResponseModel):
    notifications: list[NotificationResponse] = Field(default_factory=list)
    recent_trades: list[TradeSummary] = Field(default_factory=list)
    recent_transactions: list[TransactionSummary] = Field(default_factory=list)
    transaction_stats: TransactionStatsResponse
    pagination: Pagination


class ActivitiesResponse(ResponseModel):
    message: str
    data: ActivitiesData


class StatsData(ResponseModel):
    trades: TradeStatsResponse
    transactions: TransactionStatsResponse


class StatsResponse(ResponseModel):
    message: str
    data: StatsData
