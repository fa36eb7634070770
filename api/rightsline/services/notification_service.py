import logging

from sqlalchemy import select, desc, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rightsline.models.notification import Notification, NotificationType
from rightsline.models.post import ReactionType

logger = logging.getLogger(__name__)

POST_REACTION_TEXT = {
    ReactionType.TRUE.value: 'marked your post as true',
    ReactionType.FALSE.value: 'marked your post as false',
    ReactionType.NOTICE.value: 'noticed your post',
}

COMMENT_REACTION_TEXT = {
    ReactionType.TRUE.value: 'marked your comment as true',
    ReactionType.FALSE.value: 'marked your comment as false',
    ReactionType.NOTICE.value: 'noticed your comment',
}


class NotificationService:
    """Writes in-app notifications. A failed write never aborts the caller's action."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def notify(
        self,
        recipient_id: int,
        sender_id: int,
        ntype: NotificationType,
        message: str,
        post_id: int | None = None,
        comment_id: int | None = None,
    ) -> Notification | None:
        if recipient_id == sender_id:
            return None

        notification = Notification(
            user_id=recipient_id,
            sender_id=sender_id,
            type=ntype.value,
            message=message,
            post_id=post_id,
            comment_id=comment_id,
        )
        try:
            async with self.db.begin_nested():
                self.db.add(notification)
        except SQLAlchemyError:
            logger.error(
                f'Failed to notify user {recipient_id} ({ntype.value})', exc_info=True
            )
            return None
        return notification

    async def list_for_user(
        self,
        user_id: int,
        unread_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Notification]:
        query = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(desc(Notification.created_at), desc(Notification.id))
        )
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        result = await self.db.execute(query.limit(limit).offset(offset))
        return list(result.scalars().all())

    async def mark_all_read(self, user_id: int) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id)
            .where(Notification.is_read.is_(False))
            .values(is_read=True)
        )
        return result.rowcount or 0
