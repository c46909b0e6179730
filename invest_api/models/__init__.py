"""
SQLAlchemy models for the investment platform.

This module exports all models and the Base class for easy imports:
    from invest_api.models import Base, User, Notification, Trade, Transaction
"""

from invest_api.database import Base
from invest_api.models.user import User
from invest_api.models.notification import Notification, NotificationType
from invest_api.models.trade import Trade, TradePlan, TradeStatus
from invest_api.models.transaction import Transaction, TransactionStatus, TransactionType

__all__ = [
    "Base",
    "User",
    "Notification",
    "NotificationType",
    "Trade",
    "TradePlan",
    "TradeStatus",
    "Transaction",
    "TransactionStatus",
    "TransactionType",
]
