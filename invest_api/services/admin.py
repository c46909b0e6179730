"""Admin service - direct overrides of ledger fields, statuses and records.

Overrides bypass the normal lifecycle: balance/profit take absolute values
and statuses accept any enum value regardless of the current one.
"""

import logging
from decimal import Decimal

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from invest_api import telemetry
from invest_api.database import utcnow
from invest_api.models import (
    Notification,
    NotificationType,
    Trade,
    TradeStatus,
    Transaction,
    TransactionStatus,
    User,
)
from invest_api.services import email as email_service
from invest_api.services.notifications import add_notification
from invest_api.services.security import generate_id, hash_password

logger = logging.getLogger(__name__)


async def get_user_with_notifications(session: AsyncSession, user_id: str) -> User | None:
    result = await session.execute(
        select(User).options(selectinload(User.notifications)).where(User.id == user_id)
    )
    return result.scalar_one_or_none()


async def update_user(
    session: AsyncSession,
    user_id: str,
    balance: Decimal | None = None,
    profit: Decimal | None = None,
) -> User | None:
    """Overwrite balance and/or profit with absolute values.

    Returns:
        The updated user, or None if not found
    """
    user = await get_user_with_notifications(session, user_id)
    if user is None:
        return None

    if balance is not None:
        user.balance = str(balance)
    if profit is not None:
        user.profit = str(profit)
    await session.commit()

    telemetry.record_admin_override("user_update")
    logger.info("Admin set balance=%s profit=%s for %s", user.balance, user.profit, user.id)
    return user


async def update_transaction_status(
    session: AsyncSession,
    transaction_id: str,
    status: TransactionStatus,
    processed_by: str | None = None,
) -> Transaction | None:
    """Set a transaction status without any transition check.

    The owner's balance is left as is, including on deposit approval.

    Returns:
        The updated transaction, or None if not found
    """
    result = await session.execute(
        select(Transaction)
        .options(selectinload(Transaction.user))
        .where(Transaction.id == transaction_id)
    )
    transaction = result.scalar_one_or_none()
    if transaction is None:
        return None

    transaction.status = status
    transaction.processed_at = utcnow()
    transaction.processed_by = processed_by
    await session.commit()

    telemetry.record_admin_override("transaction_status")
    logger.info("Admin set transaction %s to %s", transaction.transaction_id, status.value)
    return transaction


async def update_trade_status(
    session: AsyncSession, trade_id: str, status: TradeStatus
) -> Trade | None:
    """Set a trade status without any transition check.

    Returns:
        The updated trade, or None if not found
    """
    result = await session.execute(
        select(Trade).options(selectinload(Trade.user)).where(Trade.id == trade_id)
    )
    trade = result.scalar_one_or_none()
    if trade is None:
        return None

    trade.status = status
    await session.commit()

    telemetry.record_admin_override("trade_status")
    logger.info("Admin set trade %s to %s", trade.id, status.value)
    return trade


async def notify_user(
    session: AsyncSession,
    user_id: str,
    type: NotificationType,
    text: str,
    email_subject: str | None = None,
    email_body: str | None = None,
) -> User | None:
    """Append a notification and optionally email the user.

    The notification is committed before the email is attempted, so a
    delivery failure does not undo it.

    Returns:
        The notified user, or None if not found

    Raises:
        EmailDeliveryError: If the email could not be sent
    """
    user = await session.get(User, user_id)
    if user is None:
        return None

    add_notification(session, user.id, type, text)
    await session.commit()
    telemetry.record_admin_override("notify")

    if user.email and email_subject and email_body:
        await email_service.send_admin_notification_email(
            user.email, user_name=user.username, title=email_subject, message=email_body
        )
    return user


async def list_users(session: AsyncSession) -> list[User]:
    """Get all users with their notifications."""
    result = await session.execute(
        select(User).options(selectinload(User.notifications)).order_by(User.created_at)
    )
    return list(result.scalars().all())


async def list_trades(session: AsyncSession) -> list[Trade]:
    """Get all trades with their owners, newest first."""
    result = await session.execute(
        select(Trade).options(selectinload(Trade.user)).order_by(Trade.created_at.desc())
    )
    return list(result.scalars().all())


async def list_transactions(session: AsyncSession) -> list[Transaction]:
    """Get all transactions with their owners, newest first."""
    result = await session.execute(
        select(Transaction)
        .options(selectinload(Transaction.user))
        .order_by(Transaction.created_at.desc())
    )
    return list(result.scalars().all())


async def delete_user(session: AsyncSession, user_id: str) -> bool:
    """Delete a user together with their trades, transactions and notifications.

    Everything is removed in one transaction; if any step fails nothing is
    deleted.

    Returns:
        True if the user existed
    """
    try:
        await session.execute(delete(Trade).where(Trade.user_id == user_id))
        await session.execute(delete(Transaction).where(Transaction.user_id == user_id))
        await session.execute(delete(Notification).where(Notification.user_id == user_id))
        result = await session.execute(delete(User).where(User.id == user_id))
        if result.rowcount == 0:
            await session.rollback()
            return False
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    telemetry.record_admin_override("user_delete")
    logger.info("Admin deleted user %s and associated records", user_id)
    return True


async def delete_transaction(session: AsyncSession, transaction_id: str) -> bool:
    result = await session.execute(delete(Transaction).where(Transaction.id == transaction_id))
    await session.commit()
    return result.rowcount > 0


async def delete_trade(session: AsyncSession, trade_id: str) -> bool:
    result = await session.execute(delete(Trade).where(Trade.id == trade_id))
    await session.commit()
    return result.rowcount > 0


async def create_admin(
    session: AsyncSession,
    username: str,
    email: str,
    password: str,
    fullname: str = "Administrator",
    phone: str = "0000000000",
    nationality: str = "N/A",
) -> User:
    """Create an activated admin account (used by manage.py).

    Raises:
        IntegrityError: If the username or email is taken
    """
    user = User(
        id=generate_id(),
        username=username,
        email=email.lower(),
        phone=phone,
        nationality=nationality,
        fullname=fullname,
        password_hash=hash_password(password),
        balance="0",
        profit="0",
        is_activated=True,
        is_admin=True,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user
