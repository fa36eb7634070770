from rightsline.schemas.user import UserCreate, UserUpdate, UserResponse, UserBrief
from rightsline.schemas.post import (
    PostCreate, PostUpdate, PostResponse, CommentCreate, CommentUpdate, CommentResponse,
    ReactionCreate, ReactionSummary, ReactionToggleResponse,
)
from rightsline.schemas.points import BalanceResponse, DeductionEntry, EarnedEntry
from rightsline.schemas.notification import NotificationResponse
from rightsline.schemas.complaint import (
    ComplaintCreate, ComplaintStatusUpdate, ComplaintResponse, ComplaintStats,
)

__all__ = [
    'UserCreate',
    'UserUpdate',
    'UserResponse',
    'UserBrief',
    'PostCreate',
    'PostUpdate',
    'PostResponse',
    'CommentCreate',
    'CommentUpdate',
    'CommentResponse',
    'ReactionCreate',
    'ReactionSummary',
    'ReactionToggleResponse',
    'BalanceResponse',
    'DeductionEntry',
    'EarnedEntry',
    'NotificationResponse',
    'ComplaintCreate',
    'ComplaintStatusUpdate',
    'ComplaintResponse',
    'ComplaintStats',
]
