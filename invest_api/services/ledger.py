"""Ledger service - trade initiation, deposit/withdrawal requests and statistics.

This is the only place where a user's balance or profit changes outside of
admin overrides. Each operation writes the balance change, the ledger record
and the notification in one transaction. The user row is version-checked on
update, so a request working from a stale balance fails with
``ConcurrentUpdateError`` instead of overwriting a newer value.
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from invest_api import telemetry
from invest_api.models import (
    Notification,
    NotificationType,
    Trade,
    TradePlan,
    TradeStatus,
    Transaction,
    TransactionStatus,
    TransactionType,
    User,
)
from invest_api.schemas.trading import AccountType, DepositCreate, TradeCreate, WithdrawalCreate
from invest_api.services import email as email_service
from invest_api.services.notifications import add_notification, list_notifications
from invest_api.services.security import generate_id, generate_transaction_id

logger = logging.getLogger(__name__)

# Balance after a trade is kept to cents, after a withdrawal to 7 places
TRADE_PRECISION = Decimal("0.01")
WITHDRAWAL_PRECISION = Decimal("0.0000001")

# Significant digits a stored amount may carry
AMOUNT_DIGITS = 28

RECENT_LIMIT = 5


class ConcurrentUpdateError(Exception):
    """The account changed between read and write."""


def parse_amount(value: str | None) -> Decimal:
    """Read a stored decimal string, treating empty values as zero."""
    if not value:
        return Decimal("0")
    try:
        return Decimal(value)
    except InvalidOperation:
        raise ValueError(f"Stored amount is not a number: {value!r}")


def to_naive_utc(value: datetime) -> datetime:
    """Normalize a client timestamp to the naive UTC form used for storage."""
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value


def format_amount(value: Decimal, precision: Decimal) -> str:
    """Round and render a ledger value for storage.

    Raises:
        ValueError: If the value has too many digits to store
    """
    with localcontext() as ctx:
        ctx.prec = AMOUNT_DIGITS
        try:
            return str(value.quantize(precision, rounding=ROUND_HALF_UP))
        except InvalidOperation:
            raise ValueError("Amount is too large")


@dataclass
class TradeStats:
    """Aggregates over a user's trades."""

    total_trades: int = 0
    total_volume: Decimal = Decimal("0")
    total_fees: Decimal = Decimal("0")
    completed_trades: int = 0
    pending_trades: int = 0
    by_plan: dict[str, int] = field(default_factory=dict)


@dataclass
class TransactionTotals:
    """Aggregates over one transaction type."""

    total_amount: Decimal = Decimal("0")
    total_count: int = 0
    pending_amount: Decimal = Decimal("0")
    approved_amount: Decimal = Decimal("0")
    rejected_amount: Decimal = Decimal("0")


@dataclass
class TransactionStats:
    deposits: TransactionTotals = field(default_factory=TransactionTotals)
    withdrawals: TransactionTotals = field(default_factory=TransactionTotals)


@dataclass
class Activities:
    """One page of the activity feed plus recent ledger records."""

    notifications: list[Notification]
    total_notifications: int
    recent_trades: list[Trade]
    recent_transactions: list[Transaction]
    transaction_stats: TransactionStats


async def _commit(session: AsyncSession) -> None:
    try:
        await session.commit()
    except StaleDataError as e:
        await session.rollback()
        raise ConcurrentUpdateError(
            "Account was modified by another request, please retry"
        ) from e


# ============================================================================
# Ledger operations
# ============================================================================


async def initiate_trade(
    session: AsyncSession, user_id: str, data: TradeCreate
) -> Trade | None:
    """Debit the trade amount from the balance and record a pending trade.

    Args:
        session: Database session
        user_id: ID of the investing user
        data: Trade data (maturity values are stored as supplied)

    Returns:
        The created trade, or None if the user does not exist

    Raises:
        ValueError: If the balance does not cover the amount
        ConcurrentUpdateError: If the balance changed concurrently
    """
    user = await session.get(User, user_id)
    if user is None:
        return None

    current_balance = parse_amount(user.balance)
    if current_balance < data.amount:
        raise ValueError("Insufficient balance")

    user.balance = format_amount(current_balance - data.amount, TRADE_PRECISION)

    trade = Trade(
        id=generate_id(),
        user_id=user.id,
        plan=data.plan,
        amount=data.amount,
        duration=data.duration,
        maturity_amount=data.maturity_amount,
        maturity_date=to_naive_utc(data.maturity_date),
        profit=data.profit,
        date=to_naive_utc(data.date),
        invoice=data.invoice,
        notes=data.notes,
        fees=data.fee,
        status=TradeStatus.PENDING,
    )
    session.add(trade)

    add_notification(
        session,
        user.id,
        NotificationType.TRADE,
        f"New {data.plan.value} trade initiated for {data.amount} with invoice {data.invoice}.",
    )
    await _commit(session)
    await session.refresh(trade)

    telemetry.record_trade_initiated(data.plan.value, data.amount)
    logger.info(
        "Trade %s initiated by %s: %s %s, balance now %s",
        trade.id, user.username, data.plan.value, data.amount, user.balance,
    )
    return trade


async def create_deposit(session: AsyncSession, user: User, data: DepositCreate) -> Transaction:
    """Log a pending deposit request.

    The balance is not touched; it is credited by hand once the deposit is
    confirmed, and approving the transaction does not credit it either.
    """
    deposit = Transaction(
        id=generate_id(),
        user_id=user.id,
        type=TransactionType.DEPOSIT,
        amount=data.amount,
        status=TransactionStatus.PENDING,
        method=data.method,
        currency=data.currency,
        transaction_id=generate_transaction_id(),
        wallet_address=data.wallet_address,
        reference=data.reference,
    )
    session.add(deposit)
    add_notification(
        session,
        user.id,
        NotificationType.DEPOSIT,
        f"Deposit request of {data.amount} {data.currency} via {data.method}",
    )
    await session.commit()
    await session.refresh(deposit)

    telemetry.record_deposit_requested(data.currency)
    try:
        await email_service.send_deposit_confirmation(
            user.email,
            user_name=user.fullname or user.username,
            amount=data.amount,
            currency=data.currency,
            wallet_id=data.wallet_address,
            date=deposit.created_at,
        )
    except email_service.EmailDeliveryError as e:
        logger.warning("Deposit email for %s not sent: %s", user.username, e)
    return deposit


async def create_withdrawal(
    session: AsyncSession, user: User, data: WithdrawalCreate
) -> Transaction:
    """Debit the chosen account field and log a pending withdrawal.

    The debit is taken as given: there is no floor, so a withdrawal larger
    than the field leaves it negative.

    Raises:
        ConcurrentUpdateError: If the account changed concurrently
    """
    if data.account_type == AccountType.BALANCE:
        user.balance = format_amount(
            parse_amount(user.balance) - data.usd_amount, WITHDRAWAL_PRECISION
        )
    else:
        user.profit = format_amount(
            parse_amount(user.profit) - data.usd_amount, WITHDRAWAL_PRECISION
        )

    withdrawal = Transaction(
        id=generate_id(),
        user_id=user.id,
        type=TransactionType.WITHDRAWAL,
        amount=data.amount,
        status=TransactionStatus.PENDING,
        method=data.method,
        currency=data.currency,
        transaction_id=generate_transaction_id(),
        wallet_address=data.wallet_address,
        reference=data.reference,
    )
    session.add(withdrawal)
    add_notification(
        session,
        user.id,
        NotificationType.WITHDRAWAL,
        f"Withdrawal request of {data.amount} {data.currency} via {data.method}",
    )
    await _commit(session)
    await session.refresh(withdrawal)

    telemetry.record_withdrawal_requested(data.account_type.value)
    try:
        await email_service.send_withdrawal_notification(
            user.email,
            user_name=user.fullname or user.username,
            transaction_id=withdrawal.transaction_id,
            amount=data.amount,
            status=withdrawal.status.value,
            currency=data.currency,
            date=withdrawal.created_at,
        )
    except email_service.EmailDeliveryError as e:
        logger.warning("Withdrawal email for %s not sent: %s", user.username, e)
    logger.info(
        "Withdrawal %s by %s: %s USD from %s",
        withdrawal.transaction_id, user.username, data.usd_amount, data.account_type.value,
    )
    return withdrawal


# ============================================================================
# Queries
# ============================================================================


async def list_trades(
    session: AsyncSession,
    user_id: str,
    page: int = 1,
    limit: int = 10,
    status: TradeStatus | None = None,
    plan: TradePlan | None = None,
) -> tuple[list[Trade], int]:
    """Get one page of a user's trades, newest first.

    Returns:
        Tuple of (trades on the page, total matching trades)
    """
    conditions = [Trade.user_id == user_id]
    if status:
        conditions.append(Trade.status == status)
    if plan:
        conditions.append(Trade.plan == plan)

    total = await session.scalar(select(func.count()).select_from(Trade).where(*conditions))

    result = await session.execute(
        select(Trade)
        .where(*conditions)
        .order_by(Trade.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total or 0


async def recent_trades(session: AsyncSession, user_id: str, limit: int = RECENT_LIMIT) -> list[Trade]:
    trades, _ = await list_trades(session, user_id, page=1, limit=limit)
    return trades


async def recent_transactions(
    session: AsyncSession, user_id: str, limit: int = RECENT_LIMIT
) -> list[Transaction]:
    result = await session.execute(
        select(Transaction)
        .where(Transaction.user_id == user_id)
        .order_by(Transaction.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_trade_stats(session: AsyncSession, user_id: str) -> TradeStats:
    """Aggregate a user's trades."""
    result = await session.execute(
        select(
            func.count(Trade.id),
            func.coalesce(func.sum(Trade.total_value), 0),
            func.coalesce(func.sum(Trade.fees), 0),
            func.coalesce(func.sum(case((Trade.status == TradeStatus.COMPLETED, 1), else_=0)), 0),
            func.coalesce(func.sum(case((Trade.status == TradeStatus.PENDING, 1), else_=0)), 0),
        ).where(Trade.user_id == user_id)
    )
    total, volume, fees, completed, pending = result.one()

    plan_rows = await session.execute(
        select(Trade.plan, func.count(Trade.id))
        .where(Trade.user_id == user_id)
        .group_by(Trade.plan)
    )

    return TradeStats(
        total_trades=total,
        total_volume=Decimal(str(volume)),
        total_fees=Decimal(str(fees)),
        completed_trades=completed,
        pending_trades=pending,
        by_plan={plan.value: count for plan, count in plan_rows.all()},
    )


async def get_transaction_stats(session: AsyncSession, user_id: str) -> TransactionStats:
    """Aggregate a user's transactions per type."""

    def amount_when(status: TransactionStatus):
        return func.coalesce(
            func.sum(case((Transaction.status == status, Transaction.amount), else_=0)), 0
        )

    result = await session.execute(
        select(
            Transaction.type,
            func.coalesce(func.sum(Transaction.amount), 0),
            func.count(Transaction.id),
            amount_when(TransactionStatus.PENDING),
            amount_when(TransactionStatus.APPROVED),
            amount_when(TransactionStatus.REJECTED),
        )
        .where(Transaction.user_id == user_id)
        .group_by(Transaction.type)
    )

    stats = TransactionStats()
    for tx_type, total, count, pending, approved, rejected in result.all():
        totals = TransactionTotals(
            total_amount=Decimal(str(total)),
            total_count=count,
            pending_amount=Decimal(str(pending)),
            approved_amount=Decimal(str(approved)),
            rejected_amount=Decimal(str(rejected)),
        )
        if tx_type == TransactionType.DEPOSIT:
            stats.deposits = totals
        else:
            stats.withdrawals = totals
    return stats


async def get_activities(
    session: AsyncSession,
    user_id: str,
    page: int = 1,
    limit: int = 20,
    type: NotificationType | None = None,
) -> Activities:
    """Build the activity page: paginated notifications plus recent records.

    Notifications are paginated in memory.
    """
    notifications = await list_notifications(session, user_id, type=type)
    skip = (page - 1) * limit

    return Activities(
        notifications=notifications[skip:skip + limit],
        total_notifications=len(notifications),
        recent_trades=await recent_trades(session, user_id),
        recent_transactions=await recent_transactions(session, user_id),
        transaction_stats=await get_transaction_stats(session, user_id),
    )
