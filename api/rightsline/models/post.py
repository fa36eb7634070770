from datetime import datetime
from enum import Enum
from sqlalchemy import String, ForeignKey, DateTime, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rightsline.db.database import Base


class MediaType(str, Enum):
    """Kind of media attached to a post."""
    TEXT = 'text'
    IMAGE = 'image'
    VIDEO = 'video'
    DOCUMENT = 'document'


class ReactionType(str, Enum):
    """Single-choice tag a user puts on a post or a comment."""
    TRUE = 'true'
    FALSE = 'false'
    NOTICE = 'notice'


class Post(Base):
    """Feed post, optionally a repost of another post."""

    __tablename__ = 'posts'

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey('users.id', ondelete='CASCADE'))
    content: Mapped[str] = mapped_column(Text, default='')
    media_url: Mapped[str | None] = mapped_column(String(500), default=None)
    media_type: Mapped[str] = mapped_column(String(20), default=MediaType.TEXT.value)
    country_code: Mapped[str | None] = mapped_column(String(2), default=None)

    # Set on reposts
    original_post_id: Mapped[int | None] = mapped_column(
        ForeignKey('posts.id', ondelete='SET NULL'), default=None
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    author: Mapped['User'] = relationship('User', back_populates='posts')
    comments: Mapped[list['Comment']] = relationship(
        'Comment', back_populates='post', cascade='all, delete-orphan', passive_deletes=True
    )
    reactions: Mapped[list['PostReaction']] = relationship(
        'PostReaction', cascade='all, delete-orphan', passive_deletes=True
    )


class Comment(Base):
    """Comment on a post. Replies point at their parent through parent_comment_id."""

    __tablename__ = 'comments'

    id: Mapped[int] = mapped_column(primary_key=True)
    post_id: Mapped[int] = mapped_column(
        ForeignKey('posts.id', ondelete='CASCADE'), index=True
    )
    user_id: Mapped[int] = mapped_column(ForeignKey('users.id', ondelete='CASCADE'))
    content: Mapped[str] = mapped_column(Text)

    # None for root comments
    parent_comment_id: Mapped[int | None] = mapped_column(
        ForeignKey('comments.id', ondelete='CASCADE'), default=None
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    post: Mapped['Post'] = relationship('Post', back_populates='comments')
    author: Mapped['User'] = relationship('User', back_populates='comments')
    reactions: Mapped[list['CommentReaction']] = relationship(
        'CommentReaction', cascade='all, delete-orphan', passive_deletes=True
    )


class PostReaction(Base):
    """One reaction per (post, user)."""

    __tablename__ = 'reactions'

    id: Mapped[int] = mapped_column(primary_key=True)
    post_id: Mapped[int] = mapped_column(ForeignKey('posts.id', ondelete='CASCADE'))
    user_id: Mapped[int] = mapped_column(ForeignKey('users.id', ondelete='CASCADE'))
    reaction_type: Mapped[str] = mapped_column(String(10))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint('post_id', 'user_id', name='uq_post_reaction'),
    )


class CommentReaction(Base):
    """One reaction per (comment, user)."""

    __tablename__ = 'comment_reactions'

    id: Mapped[int] = mapped_column(primary_key=True)
    comment_id: Mapped[int] = mapped_column(ForeignKey('comments.id', ondelete='CASCADE'))
    user_id: Mapped[int] = mapped_column(ForeignKey('users.id', ondelete='CASCADE'))
    reaction_type: Mapped[str] = mapped_column(String(10))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint('comment_id', 'user_id', name='uq_comment_reaction'),
    )


class SavedPost(Base):
    """Bookmark of a post by a user."""

    __tablename__ = 'saved_posts'

    id: Mapped[int] = mapped_column(primary_key=True)
    post_id: Mapped[int] = mapped_column(ForeignKey('posts.id', ondelete='CASCADE'))
    user_id: Mapped[int] = mapped_column(ForeignKey('users.id', ondelete='CASCADE'))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint('post_id', 'user_id', name='uq_saved_post'),
    )
