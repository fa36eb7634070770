import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from rightsline.models.user import User
from rightsline.models.post import Post, Comment
from rightsline.models.points import DeductionType
from rightsline.models.notification import NotificationType
from rightsline.services.ledger_service import LedgerService, InsufficientPoints, ACTION_COST
from rightsline.services.notification_service import NotificationService
from rightsline.services.comment_tree import render_comments, CommentNode

logger = logging.getLogger(__name__)


class CommentError(Exception):
    """Base class for comment failures."""
    pass


class CommentNotFound(CommentError):
    pass


class InvalidParentComment(CommentError):
    pass


class NotCommentAuthor(CommentError):
    pass


class CommentService:
    """Paid comments and replies on posts."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.ledger = LedgerService(db)
        self.notifications = NotificationService(db)

    async def submit_comment(
        self,
        post_id: int,
        user_id: int,
        content: str,
        parent_comment_id: int | None = None,
    ) -> Comment:
        """Charge the author and store a comment, or a reply when a parent is given.

        The balance is checked before anything is written. The deduction and
        the comment share the caller's transaction, so a failed insert rolls
        the charge back with it.
        """
        post = await self.db.get(Post, post_id)
        if not post:
            raise CommentNotFound(f'Post {post_id} not found')

        author = await self.db.get(User, user_id)
        if not author:
            raise CommentNotFound(f'User {user_id} not found')

        parent = None
        if parent_comment_id is not None:
            parent = await self.db.get(Comment, parent_comment_id)
            if not parent or parent.post_id != post_id:
                raise InvalidParentComment('Invalid parent comment')

        await self.ledger.lock_user(user_id)
        balance = await self.ledger.get_balance(user_id)
        if balance < ACTION_COST:
            raise InsufficientPoints(ACTION_COST, balance)

        action_type = (
            DeductionType.REPLY_CREATION if parent else DeductionType.COMMENT_CREATION
        )
        await self.ledger.charge_for_action(user_id, action_type)

        comment = Comment(
            post_id=post_id,
            user_id=user_id,
            content=content,
            parent_comment_id=parent_comment_id,
        )
        self.db.add(comment)
        await self.db.flush()
        await self.db.refresh(comment)

        if parent:
            await self.notifications.notify(
                parent.user_id, user_id, NotificationType.COMMENT,
                f'{author.username} replied to your comment',
                post_id=post_id, comment_id=comment.id,
            )
        else:
            await self.notifications.notify(
                post.user_id, user_id, NotificationType.COMMENT,
                f'{author.username} commented on your post',
                post_id=post_id, comment_id=comment.id,
            )

        return comment

    async def update_comment(self, comment_id: int, user_id: int, content: str) -> Comment:
        """Edit the content of a comment (author only)."""
        comment = await self._get_own_comment(comment_id, user_id)
        comment.content = content
        await self.db.flush()
        await self.db.refresh(comment)
        return comment

    async def delete_comment(self, comment_id: int, user_id: int) -> None:
        """Delete a comment (author only). Spent points are not refunded."""
        comment = await self._get_own_comment(comment_id, user_id)
        await self.db.delete(comment)
        await self.db.flush()

    async def list_comments(self, post_id: int) -> list[Comment]:
        """Comments of a post with author and reactions, oldest first."""
        result = await self.db.execute(
            select(Comment)
            .options(selectinload(Comment.author), selectinload(Comment.reactions))
            .where(Comment.post_id == post_id)
            .order_by(Comment.created_at, Comment.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def comment_tree(self, post_id: int) -> list[CommentNode]:
        return render_comments(await self.list_comments(post_id))

    async def _get_own_comment(self, comment_id: int, user_id: int) -> Comment:
        comment = await self.db.get(Comment, comment_id)
        if not comment:
            raise CommentNotFound(f'Comment {comment_id} not found')
        if comment.user_id != user_id:
            raise NotCommentAuthor('Not authorized')
        return comment
