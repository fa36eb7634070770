from rightsline.models.user import User, Follow
from rightsline.models.points import PointsEarned, PointsDeduction, DeductionType
from rightsline.models.post import (
    Post, Comment, PostReaction, CommentReaction, SavedPost, ReactionType, MediaType,
)
from rightsline.models.notification import Notification, NotificationType
from rightsline.models.complaint import Complaint, ComplaintStatus

__all__ = [
    'User',
    'Follow',
    'PointsEarned',
    'PointsDeduction',
    'DeductionType',
    'Post',
    'Comment',
    'PostReaction',
    'CommentReaction',
    'SavedPost',
    'ReactionType',
    'MediaType',
    'Notification',
    'NotificationType',
    'Complaint',
    'ComplaintStatus',
]
