"""Tests for admin API endpoints."""

from datetime import datetime
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from invest_api.models import (
    Notification,
    NotificationType,
    Trade,
    TradePlan,
    Transaction,
    TransactionStatus,
    TransactionType,
    User,
)
from invest_api.services import admin as admin_service
from invest_api.services import email as email_service
from invest_api.services.security import generate_id, generate_transaction_id


@pytest_asyncio.fixture
async def trade(test_session, sample_user):
    t = Trade(
        id=generate_id(),
        user_id=sample_user.id,
        plan=TradePlan.ELITE,
        amount=Decimal("500"),
        duration="30 days",
        maturity_amount=Decimal("650"),
        maturity_date=datetime(2030, 2, 1),
        profit=Decimal("150"),
        date=datetime(2030, 1, 1),
        invoice="INV-ADMIN",
    )
    test_session.add(t)
    await test_session.commit()
    return t


@pytest_asyncio.fixture
async def deposit(test_session, sample_user):
    tx = Transaction(
        id=generate_id(),
        user_id=sample_user.id,
        type=TransactionType.DEPOSIT,
        amount=Decimal("300"),
        method="USDT",
        transaction_id=generate_transaction_id(),
    )
    test_session.add(tx)
    await test_session.commit()
    return tx


async def _count(session, model, **filters) -> int:
    query = select(func.count()).select_from(model)
    for name, value in filters.items():
        query = query.where(getattr(model, name) == value)
    return await session.scalar(query)


# ============================================================================
# Access
# ============================================================================


class TestAccess:
    @pytest.mark.asyncio
    async def test_non_admin_forbidden(self, test_client, user_headers):
        response = await test_client.get("/api/admin/users", headers=user_headers)

        assert response.status_code == 403
        assert response.json()["detail"] == "Admin access required"

    @pytest.mark.asyncio
    async def test_anonymous_unauthorized(self, test_client):
        response = await test_client.get("/api/admin/users")
        assert response.status_code == 401


# ============================================================================
# Overrides
# ============================================================================


class TestUserUpdate:
    @pytest.mark.asyncio
    async def test_absolute_values(self, test_client, sample_user, admin_headers):
        response = await test_client.post(
            "/api/admin/user/update",
            json={"userId": sample_user.id, "balance": "2500.50", "profit": "12"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["balance"] == "2500.50"
        assert user["profit"] == "12"
        assert "password_hash" not in user
        assert "passwordHash" not in user

    @pytest.mark.asyncio
    async def test_omitted_field_untouched(self, test_client, sample_user, admin_headers):
        response = await test_client.post(
            "/api/admin/user/update",
            json={"userId": sample_user.id, "profit": "7"},
            headers=admin_headers,
        )

        assert response.json()["user"]["balance"] == "1000"

    @pytest.mark.asyncio
    async def test_unknown_user(self, test_client, admin_headers):
        response = await test_client.post(
            "/api/admin/user/update",
            json={"userId": "missing", "balance": "1"},
            headers=admin_headers,
        )
        assert response.status_code == 404


class TestTransactionUpdate:
    @pytest.mark.asyncio
    async def test_approving_deposit_does_not_credit(
        self, test_client, test_session, sample_user, admin_user, deposit, admin_headers
    ):
        user_id = sample_user.id
        response = await test_client.post(
            "/api/admin/transaction/update",
            json={"transactionId": deposit.id, "status": "approved"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        tx = response.json()["transaction"]
        assert tx["status"] == "approved"
        assert tx["processedBy"] == admin_user.id
        assert tx["processedAt"] is not None
        assert tx["user"]["username"] == "alice"

        test_session.expire_all()
        user = await test_session.get(User, user_id)
        assert user.balance == "1000"

    @pytest.mark.asyncio
    async def test_any_transition_allowed(self, test_client, deposit, admin_headers):
        for new_status in ("rejected", "pending", "cancelled"):
            response = await test_client.post(
                "/api/admin/transaction/update",
                json={"transactionId": deposit.id, "status": new_status},
                headers=admin_headers,
            )
            assert response.json()["transaction"]["status"] == new_status

    @pytest.mark.asyncio
    async def test_invalid_status(self, test_client, deposit, admin_headers):
        response = await test_client.post(
            "/api/admin/transaction/update",
            json={"transactionId": deposit.id, "status": "refunded"},
            headers=admin_headers,
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_transaction(self, test_client, admin_headers):
        response = await test_client.post(
            "/api/admin/transaction/update",
            json={"transactionId": "missing", "status": "approved"},
            headers=admin_headers,
        )
        assert response.status_code == 404


class TestTradeUpdate:
    @pytest.mark.asyncio
    async def test_set_status(self, test_client, trade, admin_headers):
        response = await test_client.post(
            "/api/admin/trade/update",
            json={"tradeId": trade.id, "status": "completed"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["trade"]["status"] == "completed"
        assert response.json()["trade"]["type"] == "Elite"

    @pytest.mark.asyncio
    async def test_unknown_trade(self, test_client, admin_headers):
        response = await test_client.post(
            "/api/admin/trade/update",
            json={"tradeId": "missing", "status": "failed"},
            headers=admin_headers,
        )
        assert response.status_code == 404


class TestNotify:
    @pytest.mark.asyncio
    async def test_notification_only(self, test_client, test_session, sample_user, admin_headers):
        response = await test_client.post(
            "/api/admin/user/notify",
            json={"userId": sample_user.id, "text": "Your KYC was approved"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        notes = (await test_session.execute(
            select(Notification).where(Notification.user_id == sample_user.id)
        )).scalars().all()
        assert [(n.type, n.message) for n in notes] == [
            (NotificationType.ADMIN, "Your KYC was approved")
        ]

    @pytest.mark.asyncio
    async def test_email_sent_with_subject_and_body(
        self, test_client, sample_user, admin_headers, monkeypatch
    ):
        sent = []

        async def capture(to, user_name, title, message):
            sent.append((to, title, message))

        monkeypatch.setattr(email_service, "send_admin_notification_email", capture)

        await test_client.post(
            "/api/admin/user/notify",
            json={
                "userId": sample_user.id,
                "title": "general",
                "text": "Maintenance tonight",
                "emailSubject": "Maintenance",
                "emailBody": "We will be down from 2 to 3.",
            },
            headers=admin_headers,
        )

        assert sent == [("alice@example.com", "Maintenance", "We will be down from 2 to 3.")]

    @pytest.mark.asyncio
    async def test_no_email_without_body(self, test_client, sample_user, admin_headers, monkeypatch):
        sent = []

        async def capture(*args, **kwargs):
            sent.append(args)

        monkeypatch.setattr(email_service, "send_admin_notification_email", capture)

        await test_client.post(
            "/api/admin/user/notify",
            json={"userId": sample_user.id, "text": "hi", "emailSubject": "Hi"},
            headers=admin_headers,
        )

        assert sent == []

    @pytest.mark.asyncio
    async def test_email_failure_keeps_notification(
        self, test_client, test_session, sample_user, admin_headers, monkeypatch
    ):
        async def fail(*args, **kwargs):
            raise email_service.EmailDeliveryError("smtp down")

        monkeypatch.setattr(email_service, "send_admin_notification_email", fail)

        response = await test_client.post(
            "/api/admin/user/notify",
            json={
                "userId": sample_user.id,
                "text": "hello",
                "emailSubject": "Hello",
                "emailBody": "Hello there",
            },
            headers=admin_headers,
        )

        assert response.status_code == 500
        assert response.json()["detail"] == "Notification saved but email failed"
        assert await _count(test_session, Notification, user_id=sample_user.id) == 1


# ============================================================================
# Tables
# ============================================================================


class TestTables:
    @pytest.mark.asyncio
    async def test_users(self, test_client, sample_user, admin_headers):
        response = await test_client.get("/api/admin/users", headers=admin_headers)

        assert response.status_code == 200
        usernames = {u["username"] for u in response.json()["users"]}
        assert usernames == {"alice", "admin"}

    @pytest.mark.asyncio
    async def test_trades_include_owner(self, test_client, trade, admin_headers):
        response = await test_client.get("/api/admin/trades", headers=admin_headers)

        trades = response.json()["trades"]
        assert len(trades) == 1
        assert trades[0]["user"] == {
            "id": trade.user_id, "username": "alice", "email": "alice@example.com"
        }

    @pytest.mark.asyncio
    async def test_transactions_include_owner(self, test_client, deposit, admin_headers):
        response = await test_client.get("/api/admin/transactions", headers=admin_headers)

        transactions = response.json()["transactions"]
        assert len(transactions) == 1
        assert transactions[0]["user"]["username"] == "alice"


# ============================================================================
# Deletes
# ============================================================================


class TestDeletes:
    @pytest.mark.asyncio
    async def test_delete_user_cascades(
        self, test_client, test_session, sample_user, trade, deposit, admin_headers
    ):
        await test_client.post(
            "/api/admin/user/notify",
            json={"userId": sample_user.id, "text": "bye"},
            headers=admin_headers,
        )

        response = await test_client.delete(
            f"/api/admin/user/{sample_user.id}", headers=admin_headers
        )

        assert response.status_code == 200
        assert await _count(test_session, User, id=sample_user.id) == 0
        assert await _count(test_session, Trade, user_id=sample_user.id) == 0
        assert await _count(test_session, Transaction, user_id=sample_user.id) == 0
        assert await _count(test_session, Notification, user_id=sample_user.id) == 0

    @pytest.mark.asyncio
    async def test_failed_delete_keeps_everything(
        self, test_client, test_session, sample_user, trade, deposit, admin_headers, monkeypatch
    ):
        real_delete = admin_service.delete

        def failing_delete(model):
            if model is User:
                raise OperationalError("DELETE FROM users", {}, Exception("database is locked"))
            return real_delete(model)

        monkeypatch.setattr(admin_service, "delete", failing_delete)

        response = await test_client.delete(
            f"/api/admin/user/{sample_user.id}", headers=admin_headers
        )

        assert response.status_code == 500
        assert await _count(test_session, User, id=sample_user.id) == 1
        assert await _count(test_session, Trade, user_id=sample_user.id) == 1
        assert await _count(test_session, Transaction, user_id=sample_user.id) == 1

    @pytest.mark.asyncio
    async def test_delete_unknown_user(self, test_client, admin_headers):
        response = await test_client.delete("/api/admin/user/missing", headers=admin_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_trade(self, test_client, test_session, trade, admin_headers):
        response = await test_client.delete(f"/api/admin/trade/{trade.id}", headers=admin_headers)

        assert response.status_code == 200
        assert await _count(test_session, Trade) == 0

        response = await test_client.delete(f"/api/admin/trade/{trade.id}", headers=admin_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_transaction(self, test_client, test_session, deposit, admin_headers):
        response = await test_client.delete(
            f"/api/admin/transaction/{deposit.id}", headers=admin_headers
        )

        assert response.status_code == 200
        assert await _count(test_session, Transaction) == 0
