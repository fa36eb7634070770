from datetime import datetime
from pydantic import BaseModel


class BalanceResponse(BaseModel):
    """Derived points balance."""
    user_id: int
    balance: int
    comment_cost: int


class DeductionEntry(BaseModel):
    """Single spend record."""
    id: int
    user_id: int
    points_used: int
    type: str
    description: str | None
    created_at: datetime

    class Config:
        from_attributes = True


class EarnedEntry(BaseModel):
    """Single earn record."""
    id: int
    user_id: int
    points: int
    description: str | None
    created_at: datetime

    class Config:
        from_attributes = True
