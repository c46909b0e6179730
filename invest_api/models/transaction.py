"""
Transaction model - deposit and withdrawal requests.

Requests are logged with status PENDING and move only when an admin sets a
new status. Approving a deposit does not credit the balance; reconciling
against the payment rail is a manual step.
"""

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from invest_api.database import Base, utcnow


class TransactionType(str, enum.Enum):
    """Direction of the money movement."""

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class TransactionStatus(str, enum.Enum):
    """Transaction lifecycle status."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class Transaction(Base):
    """A deposit or withdrawal request."""

    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String, primary_key=True)

    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id"), nullable=False, index=True
    )

    type: Mapped[TransactionType] = mapped_column(
        Enum(TransactionType), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(20, 8), nullable=False)
    status: Mapped[TransactionStatus] = mapped_column(
        Enum(TransactionStatus), nullable=False, default=TransactionStatus.PENDING, index=True
    )

    method: Mapped[str] = mapped_column(String(64), nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="USD")

    # External reference, TXN<epoch ms><6 random chars>
    transaction_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)

    wallet_address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    reference: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Set by admin status overrides
    processed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    processed_by: Mapped[str | None] = mapped_column(
        String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    user: Mapped["User"] = relationship(back_populates="transactions", foreign_keys=[user_id])

    __table_args__ = (
        CheckConstraint("amount > 0", name="check_transaction_amount_positive"),
    )

    def __repr__(self) -> str:
        return (
            f"Transaction(id={self.id!r}, {self.type.value} {self.amount} {self.currency}, "
            f"status={self.status.value})"
        )


# Import at end to avoid circular imports
from invest_api.models.user import User
