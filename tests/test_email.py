"""Tests for the email service."""

import smtplib

import pytest

from invest_api import config
from invest_api.services import email as email_service


class TestTemplates:
    def test_activation(self):
        html = email_service.render_template(
            "activation", user_name="Alice", email="alice@example.com", activation_key="K3Y9ZZ"
        )

        assert "K3Y9ZZ" in html
        assert "Alice" in html
        assert config.COMPANY_NAME in html

    def test_values_are_escaped(self):
        html = email_service.render_template(
            "admin-notification",
            user_name="<script>",
            notification_title="t",
            notification_message="m",
            current_date="",
            current_time="",
        )

        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_reset_link(self):
        html = email_service.render_template(
            "forgot-password", user_name="Alice", reset_link="https://app/reset?token=abc"
        )
        assert "https://app/reset?token=abc" in html

    def test_deposit(self):
        html = email_service.render_template(
            "deposit",
            user_name="Alice",
            amount="250",
            currency="USD",
            wallet_id="0xabc",
            date="January 01, 2030",
        )

        assert "250 USD" in html
        assert "0xabc" in html

    def test_withdrawal(self):
        html = email_service.render_template(
            "withdrawal",
            user_name="Alice",
            transaction_id="TXN123",
            amount="0.5",
            currency="BTC",
            status="pending",
            date="January 01, 2030",
        )

        assert "TXN123" in html
        assert "pending" in html


class TestSendEmail:
    @pytest.mark.asyncio
    async def test_disabled_skips_smtp(self, monkeypatch):
        monkeypatch.setattr(config, "EMAIL_ENABLED", False)

        def explode(message):
            raise AssertionError("SMTP must not be used")

        monkeypatch.setattr(email_service, "_deliver", explode)

        await email_service.send_email("a@example.com", "Hi", "<p>Hi</p>")

    @pytest.mark.asyncio
    async def test_enabled_delivers(self, monkeypatch):
        monkeypatch.setattr(config, "EMAIL_ENABLED", True)
        delivered = []
        monkeypatch.setattr(email_service, "_deliver", delivered.append)

        await email_service.send_password_change_alert("a@example.com", user_name="Alice")

        assert len(delivered) == 1
        message = delivered[0]
        assert message["To"] == "a@example.com"
        assert message["Subject"] == "Password Changed - Security Alert"

    @pytest.mark.asyncio
    async def test_withdrawal_subject(self, monkeypatch):
        monkeypatch.setattr(config, "EMAIL_ENABLED", True)
        delivered = []
        monkeypatch.setattr(email_service, "_deliver", delivered.append)

        await email_service.send_withdrawal_notification(
            "a@example.com",
            user_name="Alice",
            transaction_id="TXN123",
            amount="50",
            status="pending",
        )

        assert delivered[0]["Subject"] == "Withdrawal pending - Transaction TXN123"

    @pytest.mark.asyncio
    async def test_smtp_failure_raises(self, monkeypatch):
        monkeypatch.setattr(config, "EMAIL_ENABLED", True)

        def refuse(message):
            raise smtplib.SMTPRecipientsRefused({"a@example.com": (550, b"no such user")})

        monkeypatch.setattr(email_service, "_deliver", refuse)

        with pytest.raises(email_service.EmailDeliveryError):
            await email_service.send_email("a@example.com", "Hi", "<p>Hi</p>")
