"""
User model - an investor (or admin) account on the platform.

Balance and profit are kept as decimal strings and are overwritten in place;
there is no journal beyond the notification feed. The ``version`` column is
bumped on every update so that two writers working from the same snapshot
cannot both succeed.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from invest_api.database import Base, utcnow


class User(Base):
    """A registered account."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True)

    username: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    nationality: Mapped[str] = mapped_column(String(64), nullable=False)
    fullname: Mapped[str] = mapped_column(String(100), nullable=False)

    password_hash: Mapped[str] = mapped_column(String, nullable=False)

    # Ledger fields, decimal strings (e.g. "100.00")
    balance: Mapped[str] = mapped_column(String, nullable=False, default="0")
    profit: Mapped[str] = mapped_column(String, nullable=False, default="0")

    is_activated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    activation_key: Mapped[str | None] = mapped_column(String(16), nullable=True, index=True)
    reset_password_token: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    reset_token_expiry: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    # Optimistic concurrency counter
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    notifications: Mapped[list["Notification"]] = relationship(
        back_populates="user", order_by="Notification.date"
    )
    trades: Mapped[list["Trade"]] = relationship(back_populates="user")
    transactions: Mapped[list["Transaction"]] = relationship(
        back_populates="user", foreign_keys="Transaction.user_id"
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"User(id={self.id!r}, username={self.username!r}, "
            f"balance={self.balance!r}, profit={self.profit!r})"
        )


# Import at end to avoid circular imports
from invest_api.models.notification import Notification
from invest_api.models.trade import Trade
from invest_api.models.transaction import Transaction
