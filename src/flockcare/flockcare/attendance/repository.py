from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import ApprovalStatus, PresenceStatus
from ..hierarchy.policy import Scope
from .model import AttendanceRecord, Subject


class AttendanceRepository(Protocol):
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
        """Insert a record, failing with DuplicateError if (subject, day) is taken.

        The existence check and the insert must be one atomic step. With
        ``refresh_member_id`` the member's last_attendance_date is set to ``day``
        and risk reset to NONE in the same transaction.
        """

        raise NotImplementedError

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

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
        """Records visible under ``scope``, newest day first."""

        raise NotImplementedError

    def update_pending(
        self,
        *,
        attendance_id: int,
        presence_status: PresenceStatus,
        notes: Optional[str],
        updated_at: datetime,
    ) -> bool:
        """Update mutable fields only while the record is still PENDING."""

        raise NotImplementedError

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
        """PENDING -> status. Returns False if the record is no longer PENDING.

        With ``refresh_member_id`` the member presence refresh (``attended_on``,
        risk NONE) commits or rolls back together with the transition.
        """

        raise NotImplementedError

    def delete(self, *, attendance_id: int, only_if_pending: bool = False) -> bool:
        raise NotImplementedError
