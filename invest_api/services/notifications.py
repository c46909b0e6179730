"""Notification service - the per-account activity feed."""

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from invest_api.models import Notification, NotificationType
from invest_api.services.security import generate_id


def add_notification(
    session: AsyncSession, user_id: str, type: NotificationType, message: str
) -> Notification:
    """Stage a notification for a user.

    The caller commits, so the entry lands in the same transaction as the
    change it describes.
    """
    notification = Notification(
        id=generate_id(),
        user_id=user_id,
        type=type,
        message=message,
        read=False,
    )
    session.add(notification)
    return notification


async def list_notifications(
    session: AsyncSession,
    user_id: str,
    type: NotificationType | None = None,
) -> list[Notification]:
    """Get a user's notifications, newest first.

    Args:
        session: Database session
        user_id: User ID
        type: Only return notifications of this type (optional)

    Returns:
        List of notifications
    """
    query = select(Notification).where(Notification.user_id == user_id)
    if type:
        query = query.where(Notification.type == type)
    query = query.order_by(Notification.date.desc())
    result = await session.execute(query)
    return list(result.scalars().all())


async def mark_all_read(session: AsyncSession, user_id: str) -> int:
    """Mark every notification of a user as read.

    Returns:
        Number of notifications that were unread
    """
    result = await session.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
        .values(read=True)
    )
    await session.commit()
    return result.rowcount


async def delete_notification(
    session: AsyncSession, user_id: str, notification_id: str
) -> bool:
    """Delete one notification owned by the user.

    Returns:
        True if a notification was deleted
    """
    result = await session.execute(
        delete(Notification).where(
            Notification.id == notification_id, Notification.user_id == user_id
        )
    )
    await session.commit()
    return result.rowcount > 0


async def clear_notifications(session: AsyncSession, user_id: str) -> int:
    """Delete all notifications of a user.

    Returns:
        Number of notifications deleted
    """
    result = await session.execute(
        delete(Notification).where(Notification.user_id == user_id)
    )
    await session.commit()
    return result.rowcount
