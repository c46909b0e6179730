"""Shared schema building blocks."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from invest_api.models import NotificationType


class RequestModel(BaseModel):
    """Base for request bodies.

    Accepts both camelCase (web dashboards) and snake_case field names.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class ResponseModel(BaseModel):
    """Base for response bodies.

    Serialized with camelCase keys (``totalValue``, ``createdAt``); built in
    code with snake_case names or straight from ORM objects.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(ResponseModel):
    """Plain acknowledgement."""

    message: str


class Pagination(ResponseModel):
    """Page metadata for list endpoints."""

    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=-(-total // limit))


class NotificationResponse(ResponseModel):
    """A single notification feed entry."""

    id: str
    type: NotificationType
    message: str
    date: datetime
    read: bool


class UserProfile(ResponseModel):
    """Account profile as shown to its owner."""

    id: str
    username: str
    email: str
    phone: str
    nationality: str
    fullname: str
    is_activated: bool
    is_admin: bool
    balance: str
    profit: str
    created_at: datetime
    updated_at: datetime


class OwnerSummary(ResponseModel):
    """Owner of a trade or transaction, for admin tables."""

    id: str
    username: str
    email: str
