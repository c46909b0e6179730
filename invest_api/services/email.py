"""Email service - renders HTML templates and delivers them over SMTP.

Delivery is off unless EMAIL_ENABLED is set; in that case messages are
rendered and logged so that callers behave the same in every environment.
"""

import asyncio
import logging
import smtplib
from datetime import datetime
from email.message import EmailMessage
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from invest_api import config

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent.parent / "templates" / "email"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)


class EmailDeliveryError(Exception):
    """Raised when a message could not be handed to the SMTP server."""


def render_template(name: str, **context) -> str:
    """Render ``templates/email/<name>.html`` with the company name preset."""
    context.setdefault("company_name", config.COMPANY_NAME)
    return _env.get_template(f"{name}.html").render(**context)


def _deliver(message: EmailMessage) -> None:
    with smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT, timeout=10) as server:
        server.starttls()
        if config.SMTP_USER:
            server.login(config.SMTP_USER, config.SMTP_PASS)
        server.send_message(message)


async def send_email(to: str, subject: str, html: str) -> None:
    """Send an HTML email.

    Raises:
        EmailDeliveryError: If the SMTP exchange fails
    """
    if not config.EMAIL_ENABLED:
        logger.info("Email delivery disabled, skipping %r to %s", subject, to)
        return

    message = EmailMessage()
    message["From"] = config.EMAIL_FROM
    message["To"] = to
    message["Subject"] = subject
    message.set_content("This message requires an HTML capable email client.")
    message.add_alternative(html, subtype="html")

    try:
        await asyncio.to_thread(_deliver, message)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Failed to send %r to %s: %s", subject, to, e)
        raise EmailDeliveryError(str(e)) from e

    logger.info("Email %r sent to %s", subject, to)


async def send_activation_email(to: str, user_name: str, activation_key: str) -> None:
    html = render_template(
        "activation", email=to, user_name=user_name, activation_key=activation_key
    )
    await send_email(to, f"Activate Your {config.COMPANY_NAME} Account", html)


async def send_forgotten_password_email(to: str, user_name: str, reset_link: str) -> None:
    html = render_template("forgot-password", user_name=user_name, reset_link=reset_link)
    await send_email(to, f"Password Reset Request - {config.COMPANY_NAME}", html)


async def send_password_change_alert(
    to: str,
    user_name: str,
    ip_address: str | None = None,
    device_info: str | None = None,
) -> None:
    html = render_template(
        "password-change",
        user_name=user_name,
        ip_address=ip_address or "Unknown",
        timestamp=datetime.now().isoformat(timespec="seconds"),
        device_info=device_info or "Unknown device",
    )
    await send_email(to, "Password Changed - Security Alert", html)


async def send_admin_notification_email(
    to: str, user_name: str, title: str, message: str
) -> None:
    now = datetime.now()
    html = render_template(
        "admin-notification",
        user_name=user_name,
        notification_title=title,
        notification_message=message,
        current_date=now.strftime("%B %d, %Y"),
        current_time=now.strftime("%H:%M"),
    )
    await send_email(to, f"{title} - {config.COMPANY_NAME}", html)


async def send_deposit_confirmation(
    to: str,
    user_name: str,
    amount,
    currency: str = "USD",
    wallet_id: str | None = None,
    date: datetime | None = None,
) -> None:
    html = render_template(
        "deposit",
        user_name=user_name,
        amount=amount,
        currency=currency,
        wallet_id=wallet_id,
        date=(date or datetime.now()).strftime("%B %d, %Y"),
    )
    await send_email(to, f"Deposit Request Received - {amount} {currency}", html)


async def send_withdrawal_notification(
    to: str,
    user_name: str,
    transaction_id: str,
    amount,
    status: str,
    currency: str = "USD",
    date: datetime | None = None,
) -> None:
    html = render_template(
        "withdrawal",
        user_name=user_name,
        transaction_id=transaction_id,
        amount=amount,
        currency=currency,
        status=status,
        date=(date or datetime.now()).strftime("%B %d, %Y"),
    )
    await send_email(to, f"Withdrawal {status} - Transaction {transaction_id}", html)
