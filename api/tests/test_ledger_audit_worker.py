"""Ledger audit job."""
import logging
from unittest.mock import MagicMock

from rightsline.models.points import PointsEarned, PointsDeduction
from rightsline.worker.ledger_audit_worker import LedgerAuditWorker

from conftest import make_user


async def test_audit_reports_negative_balances(session_factory, caplog):
    async with session_factory() as db:
        olena = await make_user(db, 'olena')
        marek = await make_user(db, 'marek')
        db.add_all([
            PointsEarned(user_id=olena.id, points=4),
            PointsDeduction(user_id=olena.id, points_used=2, type='comment_creation'),
            PointsDeduction(user_id=marek.id, points_used=2, type='reply_creation'),
        ])
        await db.commit()
        marek_id = marek.id

    worker = LedgerAuditWorker()
    worker.async_session = session_factory

    with caplog.at_level(logging.WARNING, logger='ledger_audit_worker'):
        negatives = await worker.run_audit()

    assert negatives == [(marek_id, -2)]
    assert f'User {marek_id} has a negative points balance: -2' in caplog.text


async def test_audit_failure_is_logged(caplog):
    worker = LedgerAuditWorker()
    worker.async_session = MagicMock(side_effect=RuntimeError('database unavailable'))

    with caplog.at_level(logging.ERROR, logger='ledger_audit_worker'):
        assert await worker.run_audit() == []

    assert 'Ledger audit failed' in caplog.text
