"""Paid comments: gating, charging, atomicity and author-only edits."""
from datetime import datetime
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError

from rightsline.models.post import Comment
from rightsline.models.points import PointsDeduction, DeductionType
from rightsline.models.notification import Notification
from rightsline.services.comment_service import (
    CommentService, CommentNotFound, InvalidParentComment, NotCommentAuthor,
)
from rightsline.services.ledger_service import LedgerService, InsufficientPoints, LedgerError

from conftest import make_user, make_post


async def _count(db, model) -> int:
    return await db.scalar(select(func.count()).select_from(model))


class TestSubmitComment:
    async def test_below_cost_writes_nothing(self, db_session):
        author = await make_user(db_session, 'author')
        olena = await make_user(db_session, 'olena')
        post = await make_post(db_session, author)
        await LedgerService(db_session).award(olena.id, 1)

        with pytest.raises(InsufficientPoints) as exc:
            await CommentService(db_session).submit_comment(post.id, olena.id, 'hello')

        assert exc.value.required == 2
        assert exc.value.available == 1
        assert await _count(db_session, Comment) == 0
        assert await _count(db_session, PointsDeduction) == 0

    async def test_exactly_cost_is_enough(self, db_session):
        author = await make_user(db_session, 'author')
        olena = await make_user(db_session, 'olena')
        post = await make_post(db_session, author)
        ledger = LedgerService(db_session)
        await ledger.award(olena.id, 2)

        comment = await CommentService(db_session).submit_comment(post.id, olena.id, 'hello')

        assert comment.id is not None
        assert await ledger.get_balance(olena.id) == 0

    async def test_spend_down_to_zero(self, db_session):
        author = await make_user(db_session, 'author')
        olena = await make_user(db_session, 'olena')
        post = await make_post(db_session, author)
        ledger = LedgerService(db_session)
        svc = CommentService(db_session)

        await ledger.award(olena.id, 10)
        for _ in range(2):
            await ledger.charge_for_action(olena.id, DeductionType.COMMENT_CREATION)
        assert await ledger.get_balance(olena.id) == 6

        balances = []
        for i in range(3):
            await svc.submit_comment(post.id, olena.id, f'comment {i}')
            balances.append(await ledger.get_balance(olena.id))
        assert balances == [4, 2, 0]

        with pytest.raises(InsufficientPoints):
            await svc.submit_comment(post.id, olena.id, 'one too many')
        assert await ledger.get_balance(olena.id) == 0
        assert await _count(db_session, Comment) == 3

    async def test_reply_is_charged_as_reply(self, db_session):
        author = await make_user(db_session, 'author')
        olena = await make_user(db_session, 'olena')
        post = await make_post(db_session, author)
        await LedgerService(db_session).award(olena.id, 4)
        svc = CommentService(db_session)

        root = await svc.submit_comment(post.id, olena.id, 'root')
        reply = await svc.submit_comment(post.id, olena.id, 'reply', parent_comment_id=root.id)

        assert reply.parent_comment_id == root.id
        types = (await db_session.execute(
            select(PointsDeduction.type).order_by(PointsDeduction.id)
        )).scalars().all()
        assert types == ['comment_creation', 'reply_creation']

    async def test_unknown_post(self, db_session):
        olena = await make_user(db_session, 'olena')

        with pytest.raises(CommentNotFound):
            await CommentService(db_session).submit_comment(999, olena.id, 'hello')

    async def test_parent_from_another_post_rejected(self, db_session):
        author = await make_user(db_session, 'author')
        olena = await make_user(db_session, 'olena')
        first = await make_post(db_session, author, 'first')
        second = await make_post(db_session, author, 'second')
        await LedgerService(db_session).award(olena.id, 10)
        svc = CommentService(db_session)

        root = await svc.submit_comment(first.id, olena.id, 'root')

        with pytest.raises(InvalidParentComment):
            await svc.submit_comment(second.id, olena.id, 'reply', parent_comment_id=root.id)
        assert await LedgerService(db_session).get_balance(olena.id) == 8

    async def test_failed_charge_creates_no_comment(self, db_session):
        author = await make_user(db_session, 'author')
        olena = await make_user(db_session, 'olena')
        post = await make_post(db_session, author)
        await LedgerService(db_session).award(olena.id, 10)

        svc = CommentService(db_session)
        svc.ledger.charge_for_action = AsyncMock(side_effect=LedgerError('down'))

        with pytest.raises(LedgerError):
            await svc.submit_comment(post.id, olena.id, 'hello')
        assert await _count(db_session, Comment) == 0

    async def test_failed_insert_rolls_back_charge(self, db_session):
        author = await make_user(db_session, 'author')
        olena = await make_user(db_session, 'olena')
        post = await make_post(db_session, author)
        await LedgerService(db_session).award(olena.id, 10)
        await db_session.commit()

        with pytest.raises(IntegrityError):
            # content is NOT NULL, so the insert fails after the charge
            await CommentService(db_session).submit_comment(post.id, olena.id, None)
        await db_session.rollback()

        assert await LedgerService(db_session).get_balance(olena.id) == 10
        assert await _count(db_session, PointsDeduction) == 0

    async def test_notifies_post_author(self, db_session):
        author = await make_user(db_session, 'author')
        olena = await make_user(db_session, 'olena')
        post = await make_post(db_session, author)
        await LedgerService(db_session).award(olena.id, 2)

        comment = await CommentService(db_session).submit_comment(post.id, olena.id, 'hello')

        notes = (await db_session.execute(select(Notification))).scalars().all()
        assert [(n.user_id, n.sender_id, n.comment_id) for n in notes] == [
            (author.id, olena.id, comment.id),
        ]
        assert notes[0].message == 'olena commented on your post'

    async def test_reply_notifies_parent_author(self, db_session):
        author = await make_user(db_session, 'author')
        olena = await make_user(db_session, 'olena')
        marek = await make_user(db_session, 'marek')
        post = await make_post(db_session, author)
        ledger = LedgerService(db_session)
        await ledger.award(olena.id, 2)
        await ledger.award(marek.id, 2)
        svc = CommentService(db_session)

        root = await svc.submit_comment(post.id, olena.id, 'root')
        await svc.submit_comment(post.id, marek.id, 'reply', parent_comment_id=root.id)

        notes = (await db_session.execute(
            select(Notification).where(Notification.sender_id == marek.id)
        )).scalars().all()
        assert [(n.user_id, n.message) for n in notes] == [
            (olena.id, 'marek replied to your comment'),
        ]

    async def test_no_notification_on_own_post(self, db_session):
        author = await make_user(db_session, 'author')
        post = await make_post(db_session, author)
        await LedgerService(db_session).award(author.id, 2)

        await CommentService(db_session).submit_comment(post.id, author.id, 'note to self')

        assert await _count(db_session, Notification) == 0


class TestEditAndDelete:
    async def _comment(self, db):
        author = await make_user(db, 'author')
        olena = await make_user(db, 'olena')
        post = await make_post(db, author)
        await LedgerService(db).award(olena.id, 2)
        comment = await CommentService(db).submit_comment(post.id, olena.id, 'draft')
        return olena, author, comment

    async def test_author_can_edit(self, db_session):
        olena, _, comment = await self._comment(db_session)

        updated = await CommentService(db_session).update_comment(comment.id, olena.id, 'final')

        assert updated.content == 'final'

    async def test_other_user_cannot_edit(self, db_session):
        _, author, comment = await self._comment(db_session)

        with pytest.raises(NotCommentAuthor):
            await CommentService(db_session).update_comment(comment.id, author.id, 'hijack')

    async def test_delete_does_not_refund(self, db_session):
        olena, _, comment = await self._comment(db_session)

        await CommentService(db_session).delete_comment(comment.id, olena.id)

        assert await _count(db_session, Comment) == 0
        assert await LedgerService(db_session).get_balance(olena.id) == 0

    async def test_delete_unknown_comment(self, db_session):
        olena = await make_user(db_session, 'olena')

        with pytest.raises(CommentNotFound):
            await CommentService(db_session).delete_comment(123, olena.id)


class TestCommentTree:
    async def test_tree_nests_replies_newest_first(self, db_session):
        author = await make_user(db_session, 'author')
        olena = await make_user(db_session, 'olena')
        post = await make_post(db_session, author)
        await LedgerService(db_session).award(olena.id, 10)
        svc = CommentService(db_session)

        first = await svc.submit_comment(post.id, olena.id, 'first')
        second = await svc.submit_comment(post.id, olena.id, 'second')
        reply = await svc.submit_comment(post.id, olena.id, 'reply', parent_comment_id=first.id)
        first.created_at = datetime(2026, 3, 1, 10, 0)
        second.created_at = datetime(2026, 3, 1, 11, 0)
        reply.created_at = datetime(2026, 3, 1, 12, 0)
        await db_session.flush()

        tree = await svc.comment_tree(post.id)

        assert [n.id for n in tree] == [second.id, first.id]
        assert [(c.id, c.depth) for c in tree[1].children] == [(reply.id, 1)]
