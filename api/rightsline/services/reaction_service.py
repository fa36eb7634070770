import logging
from collections.abc import Iterable
from enum import Enum

from sqlalchemy import select, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rightsline.models.post import Post, Comment, PostReaction, CommentReaction, ReactionType
from rightsline.models.notification import NotificationType
from rightsline.services.notification_service import (
    NotificationService, POST_REACTION_TEXT, COMMENT_REACTION_TEXT,
)

logger = logging.getLogger(__name__)


class ToggleOutcome(str, Enum):
    ADDED = 'added'
    CHANGED = 'changed'
    REMOVED = 'removed'


class ReactionError(Exception):
    """Raised when the reacted entity does not exist."""
    pass


def tally_reactions(reactions: Iterable) -> dict[str, int]:
    """Count reactions per type. Every type is present, zero by default."""
    counts = {rt.value: 0 for rt in ReactionType}
    for r in reactions:
        if r.reaction_type in counts:
            counts[r.reaction_type] += 1
    return counts


def current_reaction(reactions: Iterable, user_id: int | None) -> str | None:
    """The reaction type held by user_id, if any."""
    if not user_id:
        return None
    for r in reactions:
        if r.user_id == user_id:
            return r.reaction_type
    return None


def summarize(reactions: Iterable, user_id: int | None) -> dict:
    reactions = list(reactions)
    return {
        'counts': tally_reactions(reactions),
        'user_reaction': current_reaction(reactions, user_id),
    }


class ReactionService:
    """Three-way toggle for post and comment reactions.

    Same type again removes the reaction, another type replaces it, no prior
    reaction adds one. The (entity, user) unique constraint guarantees one row.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    async def toggle_post_reaction(
        self,
        post_id: int,
        user_id: int,
        reaction_type: ReactionType,
        sender_name: str = 'Someone',
    ) -> ToggleOutcome:
        post = await self.db.get(Post, post_id)
        if not post:
            raise ReactionError(f'Post {post_id} not found')

        outcome = await self._toggle(
            PostReaction, PostReaction.post_id, post_id, user_id, reaction_type,
        )
        if outcome == ToggleOutcome.ADDED:
            await self.notifications.notify(
                post.user_id, user_id, NotificationType.LIKE,
                f'{sender_name} {POST_REACTION_TEXT[reaction_type.value]}',
                post_id=post_id,
            )
        return outcome

    async def toggle_comment_reaction(
        self,
        comment_id: int,
        user_id: int,
        reaction_type: ReactionType,
        sender_name: str = 'Someone',
    ) -> ToggleOutcome:
        comment = await self.db.get(Comment, comment_id)
        if not comment:
            raise ReactionError(f'Comment {comment_id} not found')

        outcome = await self._toggle(
            CommentReaction, CommentReaction.comment_id, comment_id, user_id, reaction_type,
        )
        if outcome == ToggleOutcome.ADDED:
            await self.notifications.notify(
                comment.user_id, user_id, NotificationType.COMMENT_LIKE,
                f'{sender_name} {COMMENT_REACTION_TEXT[reaction_type.value]}',
                post_id=comment.post_id, comment_id=comment_id,
            )
        return outcome

    async def post_reactions(self, post_id: int) -> list[PostReaction]:
        result = await self.db.execute(
            select(PostReaction).where(PostReaction.post_id == post_id)
        )
        return list(result.scalars().all())

    async def comment_reactions(self, comment_id: int) -> list[CommentReaction]:
        result = await self.db.execute(
            select(CommentReaction).where(CommentReaction.comment_id == comment_id)
        )
        return list(result.scalars().all())

    async def _find(self, model, entity_col, entity_id: int, user_id: int):
        result = await self.db.execute(
            select(model).where(and_(entity_col == entity_id, model.user_id == user_id))
        )
        return result.scalar_one_or_none()

    async def _toggle(
        self,
        model,
        entity_col,
        entity_id: int,
        user_id: int,
        reaction_type: ReactionType,
    ) -> ToggleOutcome:
        existing = await self._find(model, entity_col, entity_id, user_id)

        if existing:
            if existing.reaction_type == reaction_type.value:
                await self.db.delete(existing)
                await self.db.flush()
                return ToggleOutcome.REMOVED
            existing.reaction_type = reaction_type.value
            await self.db.flush()
            return ToggleOutcome.CHANGED

        reaction = model(user_id=user_id, reaction_type=reaction_type.value)
        setattr(reaction, entity_col.key, entity_id)
        try:
            async with self.db.begin_nested():
                self.db.add(reaction)
        except IntegrityError:
            # A concurrent request inserted first; last write wins
            logger.warning(
                f'Concurrent {model.__tablename__} insert for entity {entity_id} '
                f'by user {user_id}, updating instead'
            )
            existing = await self._find(model, entity_col, entity_id, user_id)
            if existing is None:
                raise
            existing.reaction_type = reaction_type.value
            await self.db.flush()
            return ToggleOutcome.CHANGED

        return ToggleOutcome.ADDED
