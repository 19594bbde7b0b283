"""Notification service for restaurant-facing subscription and payment messages."""

import logging
from typing import List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import RestaurantNotification, NotificationType

logger = logging.getLogger(__name__)


async def create_notification(
    db: AsyncSession,
    restaurant_id: int,
    title: str,
    message: str,
    notification_type: NotificationType,
) -> RestaurantNotification:
    """Create a notification for a restaurant."""
    notification = RestaurantNotification(
        restaurant_id=restaurant_id,
        title=title,
        message=message,
        type=notification_type,
        is_read=False,
    )
    db.add(notification)
    await db.commit()
    await db.refresh(notification)

    logger.info(
        "Created notification for restaurant %s: %s (%s)",
        restaurant_id,
        title,
        notification_type.value,
    )
    return notification


def session_notifier(db: AsyncSession):
    """Bind a best-effort notifier to a session.

    The returned coroutine never raises: a failed notification is logged and
    rolled back so it cannot undo the subscription or payment write that
    triggered it.
    """
    async def notify(
        restaurant_id: int,
        title: str,
        message: str,
        notification_type: NotificationType,
    ) -> None:
        try:
            await create_notification(db, restaurant_id, title, message, notification_type)
        except Exception as e:
            logger.error(f"Failed to create notification for restaurant {restaurant_id}: {e}")
            await db.rollback()

    return notify


async def list_notifications(db: AsyncSession, restaurant_id: int, limit: int = 50) -> List[RestaurantNotification]:
    result = await db.execute(
        select(RestaurantNotification)
        .where(RestaurantNotification.restaurant_id == restaurant_id)
        .order_by(RestaurantNotification.created_at.desc(), RestaurantNotification.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
