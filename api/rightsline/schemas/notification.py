from datetime import datetime
from pydantic import BaseModel


class NotificationResponse(BaseModel):
    id: int
    user_id: int
    sender_id: int | None
    type: str
    message: str
    post_id: int | None
    comment_id: int | None
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True
