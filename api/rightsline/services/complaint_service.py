"""Complaint filing and moderation."""
import logging
from datetime import date

from sqlalchemy import select, desc, func
from sqlalchemy.ext.asyncio import AsyncSession

from rightsline.models.complaint import Complaint, ComplaintStatus

logger = logging.getLogger(__name__)

ANONYMOUS_NAME = 'Anonymous'
HIDDEN = 'Hidden'


class ComplaintError(Exception):
    """Raised for invalid complaints or moderation requests."""
    pass


class ComplaintNotFound(ComplaintError):
    pass


class ComplaintService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def file_complaint(
        self,
        user_id: int | None,
        *,
        content: str | None = None,
        violation_action: str | None = None,
        is_anonymous: bool = False,
        full_name: str | None = None,
        contact_info: str | None = None,
        violator_name: str | None = None,
        victims_info: str | None = None,
        country: str | None = None,
        violation_date: date | None = None,
        violation_time: str | None = None,
        violation_address: str | None = None,
        violation_consequences: str | None = None,
        violation_tools: str | None = None,
        additional_comments: str | None = None,
        evidence_urls: list[str] | None = None,
    ) -> Complaint:
        """Store a new pending complaint. Identifying fields are masked when anonymous."""
        if not content and not violation_action:
            raise ComplaintError('A description or the violation action is required')

        if is_anonymous:
            full_name = ANONYMOUS_NAME
            contact_info = HIDDEN
            violator_name = HIDDEN
            victims_info = HIDDEN

        complaint = Complaint(
            user_id=user_id,
            full_name=full_name,
            contact_info=contact_info,
            is_anonymous=is_anonymous,
            country=country,
            violator_name=violator_name,
            victims_info=victims_info,
            violation_date=violation_date,
            violation_time=violation_time,
            violation_address=violation_address,
            violation_action=violation_action,
            violation_consequences=violation_consequences,
            violation_tools=violation_tools,
            additional_comments=additional_comments,
            content=content,
            evidence_urls=evidence_urls or None,
            status=ComplaintStatus.PENDING.value,
        )
        self.db.add(complaint)
        await self.db.flush()
        await self.db.refresh(complaint)
        logger.info(f'Complaint {complaint.id} filed (anonymous={is_anonymous})')
        return complaint

    async def get_complaint(self, complaint_id: int) -> Complaint | None:
        return await self.db.get(Complaint, complaint_id)

    async def list_complaints(
        self,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Complaint]:
        query = select(Complaint).order_by(desc(Complaint.created_at), desc(Complaint.id))
        if status:
            query = query.where(Complaint.status == status)
        result = await self.db.execute(query.limit(limit).offset(offset))
        return list(result.scalars().all())

    async def stats(self) -> dict[str, int]:
        """Complaint totals per status."""
        result = await self.db.execute(
            select(Complaint.status, func.count()).group_by(Complaint.status)
        )
        counts = {s.value: 0 for s in ComplaintStatus}
        for status, count in result.all():
            counts[status] = count
        counts['total'] = sum(counts.values())
        return counts

    async def set_status(self, complaint_id: int, status: str) -> Complaint:
        """Moderator decision: verify or reject a complaint."""
        if status not in (ComplaintStatus.VERIFIED.value, ComplaintStatus.REJECTED.value):
            raise ComplaintError(f'Invalid status: {status}')

        complaint = await self.db.get(Complaint, complaint_id)
        if not complaint:
            raise ComplaintNotFound(f'Complaint {complaint_id} not found')

        complaint.status = status
        await self.db.flush()
        await self.db.refresh(complaint)
        logger.info(f'Complaint {complaint_id} marked {status}')
        return complaint
