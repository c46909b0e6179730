"""
Trade model - a fixed-plan investment record.

Trades are created by trade initiation with status PENDING. Maturity values
are supplied by the client and stored as given; nothing advances a trade
when its maturity date passes, only an admin status override does.
"""

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from invest_api.database import Base, utcnow


class TradePlan(str, enum.Enum):
    """Investment plan tier."""

    STARTER = "Starter"
    PRO = "Pro"
    ELITE = "Elite"


class TradeStatus(str, enum.Enum):
    """Trade lifecycle status."""

    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class Trade(Base):
    """A fixed-plan investment placed by a user."""

    __tablename__ = "trades"

    id: Mapped[str] = mapped_column(String, primary_key=True)

    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id"), nullable=False, index=True
    )

    plan: Mapped[TradePlan] = mapped_column(Enum(TradePlan), nullable=False)

    # Amount taken from the user's balance
    amount: Mapped[Decimal] = mapped_column(Numeric(20, 8), nullable=False)

    # Free text, e.g. "7 days"
    duration: Mapped[str] = mapped_column(String(64), nullable=False)

    maturity_amount: Mapped[Decimal] = mapped_column(Numeric(20, 8), nullable=False)
    maturity_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    profit: Mapped[Decimal] = mapped_column(Numeric(20, 8), nullable=False)

    # Client-side placement date
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    invoice: Mapped[str] = mapped_column(String(128), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[TradeStatus] = mapped_column(
        Enum(TradeStatus), nullable=False, default=TradeStatus.PENDING, index=True
    )

    total_value: Mapped[Decimal] = mapped_column(
        Numeric(20, 8), nullable=False, default=Decimal("0")
    )
    fees: Mapped[Decimal] = mapped_column(Numeric(20, 8), nullable=False, default=Decimal("0"))

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    user: Mapped["User"] = relationship(back_populates="trades")

    __table_args__ = (
        CheckConstraint("amount > 0", name="check_trade_amount_positive"),
    )

    @validates("maturity_amount")
    def _track_total_value(self, key, value):
        # Total value is the maturity amount
        self.total_value = value
        return value

    def __repr__(self) -> str:
        return (
            f"Trade(id={self.id!r}, {self.plan.value} {self.amount}, "
            f"status={self.status.value})"
        )


# Import at end to avoid circular imports
from invest_api.models.user import User
