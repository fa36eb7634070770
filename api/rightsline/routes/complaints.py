"""Complaint filing and moderation endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from rightsline.db.database import get_db
from rightsline.models.user import User
from rightsline.schemas.complaint import (
    ComplaintCreate, ComplaintStatusUpdate, ComplaintResponse, ComplaintStats,
)
from rightsline.services.complaint_service import (
    ComplaintService, ComplaintError, ComplaintNotFound,
)

router = APIRouter()


@router.post('', response_model=ComplaintResponse, status_code=status.HTTP_201_CREATED)
async def file_complaint(
    data: ComplaintCreate,
    user_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """File a complaint. Anonymous complaints hide the reporter's details."""
    if not await db.get(User, user_id):
        raise HTTPException(status_code=404, detail='User not found')

    svc = ComplaintService(db)
    try:
        complaint = await svc.file_complaint(user_id, **data.model_dump())
    except ComplaintError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return complaint


@router.get('/stats', response_model=ComplaintStats)
async def complaint_stats(db: AsyncSession = Depends(get_db)):
    """Complaint counts per moderation status."""
    return await ComplaintService(db).stats()


@router.get('/{complaint_id}', response_model=ComplaintResponse)
async def get_complaint(
    complaint_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get a single complaint by ID."""
    complaint = await ComplaintService(db).get_complaint(complaint_id)
    if not complaint:
        raise HTTPException(status_code=404, detail='Complaint not found')
    return complaint


@router.get('', response_model=list[ComplaintResponse])
async def list_complaints(
    status_filter: str | None = Query(
        None, alias='status', pattern=r'^(pending|verified|rejected)$',
    ),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """List complaints, newest first."""
    return await ComplaintService(db).list_complaints(status_filter, limit, offset)


@router.patch('/{complaint_id}/status', response_model=ComplaintResponse)
async def update_complaint_status(
    complaint_id: int,
    data: ComplaintStatusUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Moderator decision on a complaint."""
    svc = ComplaintService(db)
    try:
        return await svc.set_status(complaint_id, data.status)
    except ComplaintNotFound:
        raise HTTPException(status_code=404, detail='Complaint not found')
    except ComplaintError as e:
        raise HTTPException(status_code=400, detail=str(e))
