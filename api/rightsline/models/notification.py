from datetime import datetime
from enum import Enum
from sqlalchemy import String, ForeignKey, DateTime, Boolean, Index
from sqlalchemy.orm import Mapped, mapped_column

from rightsline.db.database import Base


class NotificationType(str, Enum):
    COMMENT = 'comment'
    COMMENT_LIKE = 'comment_like'
    LIKE = 'like'
    FOLLOW = 'follow'


class Notification(Base):
    """In-app notification for the recipient user_id, sent by sender_id."""

    __tablename__ = 'notifications'

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey('users.id', ondelete='CASCADE'))
    sender_id: Mapped[int | None] = mapped_column(
        ForeignKey('users.id', ondelete='SET NULL'), default=None
    )
    type: Mapped[str] = mapped_column(String(20))
    message: Mapped[str] = mapped_column(String(300))

    post_id: Mapped[int | None] = mapped_column(
        ForeignKey('posts.id', ondelete='CASCADE'), default=None
    )
    comment_id: Mapped[int | None] = mapped_column(
        ForeignKey('comments.id', ondelete='CASCADE'), default=None
    )

    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index('ix_notifications_user_read', 'user_id', 'is_read'),
    )
