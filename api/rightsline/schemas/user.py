from datetime import datetime
from pydantic import BaseModel, Field


class UserBase(BaseModel):
    """Base user fields."""
    username: str = Field(..., min_length=1, max_length=50, pattern=r'^[a-zA-Z0-9_]+$')
    country: str | None = Field(None, min_length=2, max_length=2)
    city: str | None = Field(None, max_length=100)
    bio: str | None = Field(None, max_length=300)


class UserCreate(UserBase):
    """Schema for creating a user (no password - dev mode)."""
    profile_picture: str | None = None


class UserUpdate(BaseModel):
    """Schema for updating a user."""
    country: str | None = Field(None, min_length=2, max_length=2)
    city: str | None = Field(None, max_length=100)
    bio: str | None = Field(None, max_length=300)
    profile_picture: str | None = None


class UserBrief(BaseModel):
    """Author info embedded in posts and comments."""
    id: int
    username: str
    profile_picture: str | None
    country: str | None

    class Config:
        from_attributes = True


class UserResponse(UserBrief):
    """Full user response."""
    city: str | None
    bio: str | None
    created_at: datetime
    points: int = 0
    followers_count: int = 0
    following_count: int = 0
    is_following: bool = False

    class Config:
        from_attributes = True
