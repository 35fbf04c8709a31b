from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from mysql.connector import errors as mysql_errors

from ..core.constants import MYSQL_DUPLICATE_KEY
from ..core.enums import ApprovalStatus, PresenceStatus, RiskLevel
from ..core.exceptions import DuplicateError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from ..hierarchy.policy import Scope
from .model import AttendanceRecord, MemberSubject, ShepherdSubject, Subject
from .repository import AttendanceRepository

_COLUMNS = """
    ar.attendance_id, ar.subject_member_id, ar.subject_actor_id, ar.day,
    ar.presence_status, ar.approval_status, ar.submitted_by, ar.submitted_at,
    ar.approved_by, ar.approved_at, ar.rejection_reason, ar.notes
"""


def _to_record(r: dict) -> AttendanceRecord:
    if r.get("subject_member_id") is not None:
        subject: Subject = MemberSubject(int(r["subject_member_id"]))
    else:
        subject = ShepherdSubject(int(r["subject_actor_id"]))
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        subject=subject,
        day=r["day"],
        presence_status=PresenceStatus(r["presence_status"]),
        approval_status=ApprovalStatus(r["approval_status"]),
        submitted_by=int(r["submitted_by"]),
        submitted_at=r["submitted_at"],
        approved_by=int(r["approved_by"]) if r.get("approved_by") is not None else None,
        approved_at=r.get("approved_at"),
        rejection_reason=r.get("rejection_reason"),
        notes=r.get("notes"),
    )


_REFRESH_MEMBER_SQL = """
    UPDATE members
    SET last_attendance_date=%s, risk_level=%s
    WHERE member_id=%s
"""


def _refresh_member(cur, member_id: int, attended_on: datetime) -> None:
    # Runs on the caller's cursor so it shares the attendance write's transaction.
    cur.execute(_REFRESH_MEMBER_SQL, (attended_on, RiskLevel.NONE.value, int(member_id)))


def _scope_clause(scope: Scope) -> tuple[Optional[str], list[object]]:
    if scope.unrestricted:
        return None, []

    parts: list[str] = []
    params: list[object] = []
    if scope.owner_ids:
        placeholders, ids = in_clause(scope.owner_ids)
        parts.append(f"m.owner_id IN {placeholders}")
        params.extend(ids)
    if scope.shepherd_ids:
        placeholders, ids = in_clause(scope.shepherd_ids)
        parts.append(f"ar.subject_actor_id IN {placeholders}")
        params.extend(ids)
    if scope.submitted_by is not None:
        parts.append("ar.submitted_by=%s")
        params.append(int(scope.submitted_by))

    if not parts:
        return "1=0", []
    return "(" + " OR ".join(parts) + ")", params


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert(
        self,
        *,
        subject: Subject,
        day: datetime,
        presence_status: PresenceStatus,
        approval_status: ApprovalStatus,
        submitted_by: int,
        submitted_at: datetime,
        approved_by: Optional[int] = None,
        approved_at: Optional[datetime] = None,
        notes: Optional[str] = None,
        refresh_member_id: Optional[int] = None,
    ) -> int:
        member_id = subject.member_id if isinstance(subject, MemberSubject) else None
        actor_id = subject.actor_id if isinstance(subject, ShepherdSubject) else None
        try:
            # The unique keys on (subject, day) make this insert the duplicate check.
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        subject_member_id, subject_actor_id, day, presence_status, approval_status,
                        submitted_by, submitted_at, approved_by, approved_at, notes
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        member_id,
                        actor_id,
                        day,
                        presence_status.value,
                        approval_status.value,
                        int(submitted_by),
                        submitted_at,
                        approved_by,
                        approved_at,
                        notes,
                    ),
                )
                attendance_id = int(cur.lastrowid)
                if refresh_member_id is not None:
                    _refresh_member(cur, refresh_member_id, day)
                return attendance_id
        except mysql_errors.IntegrityError as exc:
            if exc.errno == MYSQL_DUPLICATE_KEY:
                raise DuplicateError(
                    f"Attendance already recorded for {subject.kind.value} {subject.subject_id} on {day:%Y-%m-%d}"
                ) from exc
            raise

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records ar WHERE ar.attendance_id=%s",
                (int(attendance_id),),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def list_records(
        self,
        *,
        scope: Scope,
        member_id: Optional[int] = None,
        approval_status: Optional[ApprovalStatus] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 500,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["1=1"]
        params: list[object] = []

        scope_sql, scope_params = _scope_clause(scope)
        if scope_sql:
            clauses.append(scope_sql)
            params.extend(scope_params)
        if member_id is not None:
            clauses.append("ar.subject_member_id=%s")
            params.append(int(member_id))
        if approval_status is not None:
            clauses.append("ar.approval_status=%s")
            params.append(approval_status.value)
        if start is not None:
            clauses.append("ar.day>=%s")
            params.append(start)
        if end is not None:
            clauses.append("ar.day<=%s")
            params.append(end)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records ar
                LEFT JOIN members m ON m.member_id = ar.subject_member_id
                WHERE {where}
                ORDER BY ar.day DESC, ar.attendance_id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def update_pending(
        self,
        *,
        attendance_id: int,
        presence_status: PresenceStatus,
        notes: Optional[str],
        updated_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET presence_status=%s, notes=%s, updated_at=%s
                WHERE attendance_id=%s AND approval_status=%s
                """,
                (
                    presence_status.value,
                    notes,
                    updated_at,
                    int(attendance_id),
                    ApprovalStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def decide(
        self,
        *,
        attendance_id: int,
        status: ApprovalStatus,
        decided_by: int,
        decided_at: datetime,
        rejection_reason: Optional[str] = None,
        notes: Optional[str] = None,
        refresh_member_id: Optional[int] = None,
        attended_on: Optional[datetime] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET approval_status=%s, approved_by=%s, approved_at=%s,
                    rejection_reason=%s, notes=COALESCE(%s, notes)
                WHERE attendance_id=%s AND approval_status=%s
                """,
                (
                    status.value,
                    int(decided_by),
                    decided_at,
                    rejection_reason,
                    notes,
                    int(attendance_id),
                    ApprovalStatus.PENDING.value,
                ),
            )
            if cur.rowcount <= 0:
                return False
            if refresh_member_id is not None:
                _refresh_member(cur, refresh_member_id, attended_on)
            return True

    def delete(self, *, attendance_id: int, only_if_pending: bool = False) -> bool:
        sql = "DELETE FROM attendance_records WHERE attendance_id=%s"
        params: list[object] = [int(attendance_id)]
        if only_if_pending:
            sql += " AND approval_status=%s"
            params.append(ApprovalStatus.PENDING.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return cur.rowcount > 0
