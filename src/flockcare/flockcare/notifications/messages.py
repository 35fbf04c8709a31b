"""Builders for the notifications the attendance core emits."""

from __future__ import annotations

from typing import Iterable, Optional

from ..core.enums import NotificationKind, RiskLevel
from .model import NotificationEvent


def _recipients(overseer_id: Optional[int], admin_ids: Iterable[int]) -> list[int]:
    out: list[int] = []
    for rid in ([overseer_id] if overseer_id else []) + list(admin_ids):
        if rid not in out:
            out.append(int(rid))
    return out


def attendance_pending(
    *, subject_label: str, attendance_id: int, overseer_id: Optional[int], admin_ids: Iterable[int]
) -> list[NotificationEvent]:
    return [
        NotificationEvent(
            recipient_id=rid,
            kind=NotificationKind.ATTENDANCE_PENDING,
            title="Attendance Pending Approval",
            message=f"Attendance for {subject_label} is pending approval",
            related_id=str(attendance_id),
        )
        for rid in _recipients(overseer_id, admin_ids)
    ]


def bulk_attendance_pending(
    *, count: int, first_attendance_id: int, overseer_id: Optional[int], admin_ids: Iterable[int]
) -> list[NotificationEvent]:
    return [
        NotificationEvent(
            recipient_id=rid,
            kind=NotificationKind.ATTENDANCE_PENDING,
            title="Bulk Attendance Pending Approval",
            message=f"{count} attendance records are pending approval",
            related_id=str(first_attendance_id),
        )
        for rid in _recipients(overseer_id, admin_ids)
    ]


def attendance_approved(*, submitter_id: int, attendance_id: int) -> NotificationEvent:
    return NotificationEvent(
        recipient_id=int(submitter_id),
        kind=NotificationKind.ATTENDANCE_APPROVED,
        title="Attendance Approved",
        message="Attendance has been approved",
        related_id=str(attendance_id),
    )


def attendance_rejected(*, submitter_id: int, attendance_id: int, reason: str) -> NotificationEvent:
    return NotificationEvent(
        recipient_id=int(submitter_id),
        kind=NotificationKind.ATTENDANCE_REJECTED,
        title="Attendance Rejected",
        message=f"Attendance was rejected: {reason}",
        related_id=str(attendance_id),
    )


def member_at_risk(*, shepherd_id: int, member_id: int, member_name: str, risk_level: RiskLevel) -> NotificationEvent:
    return NotificationEvent(
        recipient_id=int(shepherd_id),
        kind=NotificationKind.REMINDER,
        title="Member At-Risk Alert",
        message=f"{member_name} has been flagged as {risk_level.value} risk due to low attendance",
        related_id=str(member_id),
    )
