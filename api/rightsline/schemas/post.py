from datetime import datetime
from pydantic import BaseModel, Field

from rightsline.schemas.user import UserBrief

REACTION_PATTERN = r'^(true|false|notice)$'


class PostCreate(BaseModel):
    """Schema for creating a post. Text or media is required."""
    content: str = Field('', max_length=5000)
    media_url: str | None = Field(None, max_length=500)
    media_type: str = Field(default='text', pattern=r'^(text|image|video|document)$')
    country_code: str | None = Field(None, min_length=2, max_length=2)


class PostUpdate(BaseModel):
    """Schema for updating a post."""
    content: str | None = Field(None, max_length=5000)
    media_url: str | None = Field(None, max_length=500)
    media_type: str | None = Field(None, pattern=r'^(text|image|video|document)$')


class ReactionSummary(BaseModel):
    """Per-type counts plus the current user's reaction."""
    counts: dict[str, int]
    user_reaction: str | None = None


class PostResponse(BaseModel):
    """Post response with author info and aggregates."""
    id: int
    author: UserBrief
    content: str
    media_url: str | None
    media_type: str
    country_code: str | None
    original_post_id: int | None
    reactions: ReactionSummary
    comments_count: int = 0
    is_saved: bool = False
    created_at: datetime
    updated_at: datetime


class CommentCreate(BaseModel):
    """Schema for creating a comment or, with parent_comment_id, a reply."""
    content: str = Field(..., min_length=1, max_length=2000)
    parent_comment_id: int | None = None


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)


class CommentResponse(BaseModel):
    """Comment in display order; depth is its distance from a root comment."""
    id: int
    post_id: int
    author: UserBrief
    content: str
    parent_comment_id: int | None
    depth: int = 0
    reactions: ReactionSummary
    created_at: datetime


class ReactionCreate(BaseModel):
    reaction_type: str = Field(..., pattern=REACTION_PATTERN)


class ReactionToggleResponse(BaseModel):
    """Result of a reaction toggle."""
    outcome: str
    reactions: ReactionSummary
