"""
Tests for SQLAlchemy models.

Tests defaults and database constraints for all models.
"""

from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

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
from invest_api.services.security import generate_id, generate_transaction_id


def _trade(user_id: str, **overrides) -> Trade:
    values = dict(
        id=generate_id(),
        user_id=user_id,
        plan=TradePlan.STARTER,
        amount=Decimal("100"),
        duration="7 days",
        maturity_amount=Decimal("110"),
        maturity_date=datetime(2030, 1, 8),
        profit=Decimal("10"),
        date=datetime(2030, 1, 1),
        invoice="INV-1",
    )
    values.update(overrides)
    return Trade(**values)


# ============================================================================
# User Tests
# ============================================================================


@pytest.mark.asyncio
async def test_user_defaults(test_session):
    """New accounts start unactivated with zero ledger fields."""
    user = User(
        id=generate_id(),
        username="bob",
        email="bob@example.com",
        phone="+15550001234",
        nationality="Canada",
        fullname="Bob Tester",
        password_hash="x",
    )
    test_session.add(user)
    await test_session.commit()

    saved = (await test_session.execute(select(User).where(User.username == "bob"))).scalar_one()

    assert saved.balance == "0"
    assert saved.profit == "0"
    assert saved.is_activated is False
    assert saved.is_admin is False
    assert saved.version == 1
    assert saved.created_at is not None


@pytest.mark.asyncio
async def test_user_version_bumps_on_update(test_session, sample_user):
    assert sample_user.version == 1

    sample_user.balance = "5"
    await test_session.commit()

    assert sample_user.version == 2


@pytest.mark.asyncio
async def test_username_unique(test_session, make_user):
    await make_user(username="dupe")

    test_session.add(
        User(
            id=generate_id(),
            username="dupe",
            email="other@example.com",
            phone="+15550001234",
            nationality="Canada",
            fullname="Other",
            password_hash="x",
        )
    )
    with pytest.raises(IntegrityError):
        await test_session.commit()


# ============================================================================
# Trade Tests
# ============================================================================


@pytest.mark.asyncio
async def test_trade_total_value_follows_maturity_amount(test_session, sample_user):
    trade = _trade(sample_user.id)
    test_session.add(trade)
    await test_session.commit()

    assert trade.total_value == Decimal("110")
    assert trade.status == TradeStatus.PENDING

    trade.maturity_amount = Decimal("125")
    assert trade.total_value == Decimal("125")


@pytest.mark.asyncio
async def test_trade_amount_positive(test_session, sample_user):
    test_session.add(_trade(sample_user.id, amount=Decimal("0")))

    with pytest.raises(IntegrityError):
        await test_session.commit()


# ============================================================================
# Transaction Tests
# ============================================================================


@pytest.mark.asyncio
async def test_transaction_defaults(test_session, sample_user):
    tx = Transaction(
        id=generate_id(),
        user_id=sample_user.id,
        type=TransactionType.DEPOSIT,
        amount=Decimal("50"),
        method="BTC",
        transaction_id=generate_transaction_id(),
    )
    test_session.add(tx)
    await test_session.commit()

    assert tx.status == TransactionStatus.PENDING
    assert tx.currency == "USD"
    assert tx.processed_at is None


@pytest.mark.asyncio
async def test_transaction_id_unique(test_session, sample_user):
    for _ in range(2):
        test_session.add(
            Transaction(
                id=generate_id(),
                user_id=sample_user.id,
                type=TransactionType.WITHDRAWAL,
                amount=Decimal("1"),
                method="BTC",
                transaction_id="TXN1SAME00",
            )
        )

    with pytest.raises(IntegrityError):
        await test_session.commit()


# ============================================================================
# Notification Tests
# ============================================================================


@pytest.mark.asyncio
async def test_notification_defaults(test_session, sample_user):
    n = Notification(
        id=generate_id(),
        user_id=sample_user.id,
        type=NotificationType.PASSWORD_CHANGE,
        message="changed",
    )
    test_session.add(n)
    await test_session.commit()

    assert n.read is False
    assert n.date is not None
    assert n.type.value == "password-change"
