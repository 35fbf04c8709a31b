from __future__ import annotations

from datetime import date, datetime

import pytest

from src.flockcare.flockcare.attendance.model import MemberSubject, ShepherdSubject
from src.flockcare.flockcare.core.enums import ApprovalStatus, PresenceStatus
from src.flockcare.flockcare.core.exceptions import AuthorizationError, ValidationError
from tests.fakes import (
    ADMIN,
    INACTIVE_ADMIN,
    MEMBER_ANNA,
    MEMBER_BEN,
    MEMBER_CARL,
    PASTOR_PAUL,
    PASTOR_PETER,
    SHEPHERD_SARAH,
    SHEPHERD_SIMON,
    SHEPHERD_ZED,
)


@pytest.fixture
def seeded(attendance_service):
    """Anna (Sarah), Ben (Simon), Carl (Zed), plus Simon himself, over two days."""
    ids = {}
    for day in (datetime(2026, 3, 8), datetime(2026, 3, 15)):
        for key, actor, subject in (
            ("anna", SHEPHERD_SARAH, MemberSubject(MEMBER_ANNA)),
            ("ben", SHEPHERD_SIMON, MemberSubject(MEMBER_BEN)),
            ("carl", SHEPHERD_ZED, MemberSubject(MEMBER_CARL)),
            ("simon", PASTOR_PAUL, ShepherdSubject(SHEPHERD_SIMON)),
        ):
            record = attendance_service.submit(
                actor_id=actor,
                subject=subject,
                day=day,
                presence_status=PresenceStatus.PRESENT,
                now=day,
            )
            ids[(key, day.day)] = record.attendance_id
    return ids


def _subjects(records):
    return {(type(r.subject).__name__, r.subject.subject_id) for r in records}


def test_admin_sees_everything(attendance_service, seeded):
    records = attendance_service.list_records(actor_id=ADMIN)
    assert len(records) == 8
    assert records[0].day >= records[-1].day


def test_pastor_sees_only_overseen_subjects(attendance_service, seeded):
    records = attendance_service.list_records(actor_id=PASTOR_PAUL)
    assert _subjects(records) == {
        ("MemberSubject", MEMBER_ANNA),
        ("MemberSubject", MEMBER_BEN),
        ("ShepherdSubject", SHEPHERD_SIMON),
    }

    peter = attendance_service.list_records(actor_id=PASTOR_PETER)
    assert _subjects(peter) == {("MemberSubject", MEMBER_CARL)}


def test_pastor_direct_access_outside_scope_is_denied(attendance_service, seeded):
    with pytest.raises(AuthorizationError):
        attendance_service.get(actor_id=PASTOR_PETER, attendance_id=seeded[("anna", 15)])


def test_shepherd_sees_owned_members_only(attendance_service, seeded):
    records = attendance_service.list_records(actor_id=SHEPHERD_SIMON)
    # the records about Simon were submitted by his pastor, not by him
    assert _subjects(records) == {("MemberSubject", MEMBER_BEN)}


def test_shepherd_sees_own_submissions_after_reassignment(container, attendance_service, seeded):
    container.directory_service.reassign_member(actor_id=ADMIN, member_id=MEMBER_ANNA, new_owner_id=SHEPHERD_ZED)

    sarah = attendance_service.list_records(actor_id=SHEPHERD_SARAH)
    assert _subjects(sarah) == {("MemberSubject", MEMBER_ANNA)}

    zed = attendance_service.list_records(actor_id=SHEPHERD_ZED)
    assert ("MemberSubject", MEMBER_ANNA) in _subjects(zed)


def test_filters_by_member_status_and_range(attendance_service, seeded):
    attendance_service.approve(actor_id=PASTOR_PAUL, attendance_id=seeded[("ben", 8)])

    by_member = attendance_service.list_records(actor_id=ADMIN, member_id=MEMBER_BEN)
    assert {r.attendance_id for r in by_member} == {seeded[("ben", 8)], seeded[("ben", 15)]}

    approved = attendance_service.list_records(actor_id=PASTOR_PAUL, approval_status="approved")
    assert [r.attendance_id for r in approved] == [seeded[("ben", 8)]]

    ranged = attendance_service.list_records(
        actor_id=ADMIN, start=date(2026, 3, 10), end=datetime(2026, 3, 15, 23, 0)
    )
    assert {r.day for r in ranged} == {datetime(2026, 3, 15)}


def test_limit_is_applied(attendance_service, seeded):
    assert len(attendance_service.list_records(actor_id=ADMIN, limit=3)) == 3


def test_bad_filters(attendance_service):
    with pytest.raises(ValidationError):
        attendance_service.list_records(actor_id=ADMIN, approval_status="maybe")
    with pytest.raises(ValidationError):
        attendance_service.list_records(actor_id=ADMIN, limit=0)


def test_inactive_actor_cannot_list(attendance_service, seeded):
    with pytest.raises(AuthorizationError):
        attendance_service.list_records(actor_id=INACTIVE_ADMIN)


def test_get_returns_record_in_scope(attendance_service, seeded):
    record = attendance_service.get(actor_id=SHEPHERD_SARAH, attendance_id=seeded[("anna", 8)])
    assert record.subject == MemberSubject(MEMBER_ANNA)
    assert record.approval_status == ApprovalStatus.PENDING
