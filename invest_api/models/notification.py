"""
Notification model - the per-account activity feed.

Almost every operation appends one. The feed is unbounded and paginated
in memory at read time.
"""

import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from invest_api.database import Base, utcnow


class NotificationType(str, enum.Enum):
    """What triggered the notification."""

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    LOGIN = "login"
    PASSWORD_CHANGE = "password-change"
    TRADE = "trade"
    ACTIVATION = "activation"
    GENERAL = "general"
    ADMIN = "admin"


class Notification(Base):
    """A single entry in a user's notification feed."""

    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String, primary_key=True)

    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id"), nullable=False, index=True
    )

    type: Mapped[NotificationType] = mapped_column(Enum(NotificationType), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    user: Mapped["User"] = relationship(back_populates="notifications")

    def __repr__(self) -> str:
        return f"Notification(id={self.id!r}, type={self.type.value}, read={self.read})"


# Import at end to avoid circular imports
from invest_api.models.user import User
