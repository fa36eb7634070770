"""Complaint filing, anonymity masking and moderation."""
from datetime import date

import pytest

from rightsline.services.complaint_service import (
    ComplaintService, ComplaintError, ComplaintNotFound, ANONYMOUS_NAME, HIDDEN,
)

from conftest import make_user


class TestFileComplaint:
    async def test_named_complaint_keeps_details(self, db_session):
        olena = await make_user(db_session, 'olena')

        complaint = await ComplaintService(db_session).file_complaint(
            olena.id,
            violation_action='Detained without charge',
            full_name='Olena K.',
            contact_info='olena@example.org',
            violator_name='District police',
            country='UA',
            violation_date=date(2026, 5, 4),
            evidence_urls=['https://example.org/photo.jpg'],
        )

        assert complaint.status == 'pending'
        assert complaint.full_name == 'Olena K.'
        assert complaint.violator_name == 'District police'
        assert complaint.evidence_urls == ['https://example.org/photo.jpg']

    async def test_anonymous_complaint_is_masked(self, db_session):
        olena = await make_user(db_session, 'olena')

        complaint = await ComplaintService(db_session).file_complaint(
            olena.id,
            content='Checkpoint extortion',
            is_anonymous=True,
            full_name='Olena K.',
            contact_info='+380000000',
            violator_name='Officer X',
            victims_info='Two drivers',
        )

        assert complaint.full_name == ANONYMOUS_NAME
        assert (complaint.contact_info, complaint.violator_name, complaint.victims_info) == (
            HIDDEN, HIDDEN, HIDDEN,
        )
        assert complaint.content == 'Checkpoint extortion'

    async def test_description_required(self, db_session):
        olena = await make_user(db_session, 'olena')

        with pytest.raises(ComplaintError):
            await ComplaintService(db_session).file_complaint(olena.id, full_name='Olena K.')


class TestModeration:
    async def test_set_status_and_stats(self, db_session):
        olena = await make_user(db_session, 'olena')
        svc = ComplaintService(db_session)
        first = await svc.file_complaint(olena.id, content='first')
        second = await svc.file_complaint(olena.id, content='second')
        await svc.file_complaint(olena.id, content='third')

        await svc.set_status(first.id, 'verified')
        await svc.set_status(second.id, 'rejected')

        assert await svc.stats() == {'pending': 1, 'verified': 1, 'rejected': 1, 'total': 3}
        pending = await svc.list_complaints('pending')
        assert [c.content for c in pending] == ['third']

    async def test_empty_stats(self, db_session):
        assert await ComplaintService(db_session).stats() == {
            'pending': 0, 'verified': 0, 'rejected': 0, 'total': 0,
        }

    @pytest.mark.parametrize('status', ['pending', 'archived'])
    async def test_invalid_status(self, db_session, status):
        olena = await make_user(db_session, 'olena')
        svc = ComplaintService(db_session)
        complaint = await svc.file_complaint(olena.id, content='report')

        with pytest.raises(ComplaintError):
            await svc.set_status(complaint.id, status)

    async def test_unknown_complaint(self, db_session):
        with pytest.raises(ComplaintNotFound):
            await ComplaintService(db_session).set_status(55, 'verified')
