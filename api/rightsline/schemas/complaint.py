from datetime import date, datetime
from pydantic import BaseModel, Field


class ComplaintCreate(BaseModel):
    """Schema for filing a complaint."""
    content: str | None = Field(None, max_length=10000)
    violation_action: str | None = Field(None, max_length=5000)
    is_anonymous: bool = False
    full_name: str | None = Field(None, max_length=100)
    contact_info: str | None = Field(None, max_length=200)
    violator_name: str | None = Field(None, max_length=200)
    victims_info: str | None = None
    country: str | None = Field(None, min_length=2, max_length=2)
    violation_date: date | None = None
    violation_time: str | None = Field(None, pattern=r'^\d{2}:\d{2}(:\d{2})?$')
    violation_address: str | None = Field(None, max_length=300)
    violation_consequences: str | None = None
    violation_tools: str | None = None
    additional_comments: str | None = None
    evidence_urls: list[str] | None = None


class ComplaintStatusUpdate(BaseModel):
    status: str = Field(..., pattern=r'^(verified|rejected)$')


class ComplaintResponse(BaseModel):
    """Complaint as seen by moderators."""
    id: int
    user_id: int | None
    full_name: str | None
    contact_info: str | None
    is_anonymous: bool
    country: str | None
    violator_name: str | None
    victims_info: str | None
    violation_date: date | None
    violation_time: str | None
    violation_address: str | None
    violation_action: str | None
    violation_consequences: str | None
    violation_tools: str | None
    additional_comments: str | None
    content: str | None
    evidence_urls: list[str] | None
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ComplaintStats(BaseModel):
    total: int
    pending: int
    verified: int
    rejected: int
