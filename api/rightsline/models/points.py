from datetime import datetime
from enum import Enum
from sqlalchemy import String, Integer, ForeignKey, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column

from rightsline.db.database import Base


class DeductionType(str, Enum):
    """Chargeable actions."""
    COMMENT_CREATION = 'comment_creation'
    REPLY_CREATION = 'reply_creation'


class PointsEarned(Base):
    """Earned points. Append-only, written by reward triggers."""

    __tablename__ = 'user_points'

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey('users.id', ondelete='CASCADE'), index=True
    )
    points: Mapped[int] = mapped_column(Integer)
    description: Mapped[str | None] = mapped_column(String(200), default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class PointsDeduction(Base):
    """Spent points. One row per chargeable action, never updated or deleted."""

    __tablename__ = 'user_points_deductions'

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey('users.id', ondelete='CASCADE'), index=True
    )
    points_used: Mapped[int] = mapped_column(Integer)
    type: Mapped[str] = mapped_column(String(30))
    description: Mapped[str | None] = mapped_column(String(200), default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index('ix_points_deductions_user_created', 'user_id', 'created_at'),
    )
