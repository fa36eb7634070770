from datetime import date, datetime
from enum import Enum
from sqlalchemy import String, ForeignKey, DateTime, Date, Text, Boolean, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column

from rightsline.db.database import Base


class ComplaintStatus(str, Enum):
    """Moderation state of a complaint."""
    PENDING = 'pending'
    VERIFIED = 'verified'
    REJECTED = 'rejected'


class Complaint(Base):
    """Report of a human-rights violation, reviewed by moderators."""

    __tablename__ = 'complaints'

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int | None] = mapped_column(
        ForeignKey('users.id', ondelete='SET NULL'), default=None
    )

    # Reporter (masked when anonymous)
    full_name: Mapped[str | None] = mapped_column(String(100), default=None)
    contact_info: Mapped[str | None] = mapped_column(String(200), default=None)
    is_anonymous: Mapped[bool] = mapped_column(Boolean, default=False)

    # Violation details
    country: Mapped[str | None] = mapped_column(String(2), default=None)
    violator_name: Mapped[str | None] = mapped_column(String(200), default=None)
    victims_info: Mapped[str | None] = mapped_column(Text, default=None)
    violation_date: Mapped[date | None] = mapped_column(Date, default=None)
    violation_time: Mapped[str | None] = mapped_column(String(8), default=None)
    violation_address: Mapped[str | None] = mapped_column(String(300), default=None)
    violation_action: Mapped[str | None] = mapped_column(Text, default=None)
    violation_consequences: Mapped[str | None] = mapped_column(Text, default=None)
    violation_tools: Mapped[str | None] = mapped_column(Text, default=None)
    additional_comments: Mapped[str | None] = mapped_column(Text, default=None)
    content: Mapped[str | None] = mapped_column(Text, default=None)
    evidence_urls: Mapped[list[str] | None] = mapped_column(JSON, default=None)

    status: Mapped[str] = mapped_column(String(20), default=ComplaintStatus.PENDING.value)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        Index('ix_complaint_status', 'status'),
    )
