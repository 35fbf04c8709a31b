from __future__ import annotations

from datetime import datetime

import pytest
from mysql.connector import errors as mysql_errors

from src.flockcare.flockcare.attendance.model import MemberSubject, ShepherdSubject
from src.flockcare.flockcare.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from src.flockcare.flockcare.core.enums import ApprovalStatus, PresenceStatus
from src.flockcare.flockcare.core.exceptions import DuplicateError
from src.flockcare.flockcare.hierarchy.policy import Scope


class FakeCursor:
    def __init__(self, *, raises=None, rows=None, rowcount=1, fail_when=None):
        self.raises = raises
        self.fail_when = fail_when
        self.rows = rows or []
        self.rowcount = rowcount
        self.lastrowid = 42
        self.executed: list[tuple[str, tuple]] = []
        self.closed = False

    def execute(self, sql, params=()):
        self.executed.append((" ".join(sql.split()), params))
        if self.raises and (self.fail_when is None or self.fail_when in sql):
            raise self.raises

    def fetchone(self):
        return self.rows[0] if self.rows else None

    def fetchall(self):
        return self.rows

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, cursor):
        self._cursor = cursor
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, dictionary=True):
        return self._cursor

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class FakeConnFactory:
    def __init__(self, cursor):
        self.cursor = cursor
        self.connections: list[FakeConnection] = []

    def connect(self):
        conn = FakeConnection(self.cursor)
        self.connections.append(conn)
        return conn


def _insert(repo, subject=MemberSubject(7)):
    return repo.insert(
        subject=subject,
        day=datetime(2026, 3, 15),
        presence_status=PresenceStatus.PRESENT,
        approval_status=ApprovalStatus.PENDING,
        submitted_by=20,
        submitted_at=datetime(2026, 3, 15, 10, 0),
    )


def test_insert_writes_only_the_subject_column_for_its_kind():
    cursor = FakeCursor()
    factory = FakeConnFactory(cursor)
    repo = MySQLAttendanceRepository(factory)

    assert _insert(repo, ShepherdSubject(20)) == 42
    _, params = cursor.executed[0]
    assert params[0] is None and params[1] == 20
    assert factory.connections[0].committed


def test_unique_key_violation_becomes_duplicate_error():
    cursor = FakeCursor(raises=mysql_errors.IntegrityError(msg="Duplicate entry", errno=1062))
    factory = FakeConnFactory(cursor)
    repo = MySQLAttendanceRepository(factory)

    with pytest.raises(DuplicateError):
        _insert(repo)
    assert factory.connections[0].rolled_back
    assert factory.connections[0].closed


def test_other_integrity_errors_propagate():
    cursor = FakeCursor(raises=mysql_errors.IntegrityError(msg="FK violation", errno=1452))
    repo = MySQLAttendanceRepository(FakeConnFactory(cursor))

    with pytest.raises(mysql_errors.IntegrityError):
        _insert(repo)


def test_decide_is_conditional_on_pending():
    cursor = FakeCursor(rowcount=0)
    repo = MySQLAttendanceRepository(FakeConnFactory(cursor))

    ok = repo.decide(
        attendance_id=5,
        status=ApprovalStatus.APPROVED,
        decided_by=10,
        decided_at=datetime(2026, 3, 15, 12, 0),
    )

    assert ok is False
    sql, params = cursor.executed[0]
    assert "WHERE attendance_id=%s AND approval_status=%s" in sql
    assert params[-1] == "pending"


def test_list_scope_for_pastor_filters_in_sql():
    row = {
        "attendance_id": 1,
        "subject_member_id": None,
        "subject_actor_id": 21,
        "day": datetime(2026, 3, 15),
        "presence_status": "late",
        "approval_status": "approved",
        "submitted_by": 10,
        "submitted_at": datetime(2026, 3, 15, 9, 0),
        "approved_by": 10,
        "approved_at": datetime(2026, 3, 15, 9, 0),
        "rejection_reason": None,
        "notes": None,
    }
    cursor = FakeCursor(rows=[row])
    repo = MySQLAttendanceRepository(FakeConnFactory(cursor))

    records = repo.list_records(scope=Scope(owner_ids=frozenset({21, 20}), shepherd_ids=frozenset({20, 21})), limit=10)

    assert records[0].subject == ShepherdSubject(21)
    assert records[0].presence_status == PresenceStatus.LATE
    sql, params = cursor.executed[0]
    assert "(m.owner_id IN (%s,%s) OR ar.subject_actor_id IN (%s,%s))" in sql
    assert params == (20, 21, 20, 21, 10)


def test_empty_scope_matches_nothing():
    cursor = FakeCursor(rows=[])
    repo = MySQLAttendanceRepository(FakeConnFactory(cursor))

    assert repo.list_records(scope=Scope()) == []
    sql, _ = cursor.executed[0]
    assert "1=0" in sql


def test_delete_only_if_pending_adds_guard():
    cursor = FakeCursor(rowcount=1)
    repo = MySQLAttendanceRepository(FakeConnFactory(cursor))

    assert repo.delete(attendance_id=3, only_if_pending=True)
    sql, params = cursor.executed[0]
    assert sql.endswith("AND approval_status=%s")
    assert params == (3, "pending")


def test_approval_refreshes_member_in_the_same_transaction():
    cursor = FakeCursor(rowcount=1)
    factory = FakeConnFactory(cursor)
    repo = MySQLAttendanceRepository(factory)

    assert repo.decide(
        attendance_id=5,
        status=ApprovalStatus.APPROVED,
        decided_by=10,
        decided_at=datetime(2026, 3, 15, 12, 0),
        refresh_member_id=100,
        attended_on=datetime(2026, 3, 14),
    )

    assert len(factory.connections) == 1
    assert factory.connections[0].committed
    member_sql, member_params = cursor.executed[1]
    assert member_sql.startswith("UPDATE members SET last_attendance_date=%s, risk_level=%s")
    assert member_params == (datetime(2026, 3, 14), "none", 100)


def test_member_write_failure_rolls_back_the_approval():
    cursor = FakeCursor(raises=mysql_errors.OperationalError(msg="Lock wait timeout", errno=1205), fail_when="UPDATE members")
    factory = FakeConnFactory(cursor)
    repo = MySQLAttendanceRepository(factory)

    with pytest.raises(mysql_errors.OperationalError):
        repo.decide(
            attendance_id=5,
            status=ApprovalStatus.APPROVED,
            decided_by=10,
            decided_at=datetime(2026, 3, 15, 12, 0),
            refresh_member_id=100,
            attended_on=datetime(2026, 3, 14),
        )

    conn = factory.connections[0]
    assert conn.rolled_back
    assert not conn.committed


def test_lost_decision_skips_member_refresh():
    cursor = FakeCursor(rowcount=0)
    repo = MySQLAttendanceRepository(FakeConnFactory(cursor))

    assert not repo.decide(
        attendance_id=5,
        status=ApprovalStatus.APPROVED,
        decided_by=10,
        decided_at=datetime(2026, 3, 15, 12, 0),
        refresh_member_id=100,
        attended_on=datetime(2026, 3, 14),
    )
    assert len(cursor.executed) == 1


def test_pre_approved_insert_refreshes_member_on_same_connection():
    cursor = FakeCursor()
    factory = FakeConnFactory(cursor)
    repo = MySQLAttendanceRepository(factory)

    repo.insert(
        subject=MemberSubject(100),
        day=datetime(2026, 3, 15),
        presence_status=PresenceStatus.PRESENT,
        approval_status=ApprovalStatus.APPROVED,
        submitted_by=10,
        submitted_at=datetime(2026, 3, 15, 10, 0),
        approved_by=10,
        approved_at=datetime(2026, 3, 15, 10, 0),
        refresh_member_id=100,
    )

    assert len(factory.connections) == 1
    assert [sql.split()[0] for sql, _ in cursor.executed] == ["INSERT", "UPDATE"]
    assert cursor.executed[1][1] == (datetime(2026, 3, 15), "none", 100)
