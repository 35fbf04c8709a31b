from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

from ..common.datetime_utils import parse_iso_datetime
from ..core.enums import ApprovalStatus, PresenceStatus, SubjectKind
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class MemberSubject:
    """Attendance about a cared-for member."""

    member_id: int

    @property
    def kind(self) -> SubjectKind:
        return SubjectKind.MEMBER

    @property
    def subject_id(self) -> int:
        return self.member_id


@dataclass(frozen=True)
class ShepherdSubject:
    """Attendance about a shepherd (an actor)."""

    actor_id: int

    @property
    def kind(self) -> SubjectKind:
        return SubjectKind.SHEPHERD

    @property
    def subject_id(self) -> int:
        return self.actor_id


Subject = Union[MemberSubject, ShepherdSubject]


def subject_from_fields(member_id: Optional[int], actor_id: Optional[int]) -> Subject:
    """Build a Subject from the two optional wire fields; exactly one must be set."""
    if (member_id is None) == (actor_id is None):
        raise ValidationError("Exactly one of member_id / actor_id must be provided")
    if member_id is not None:
        return MemberSubject(int(member_id))
    return ShepherdSubject(int(actor_id))


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance assertion for a subject on a calendar day."""

    attendance_id: int
    subject: Subject
    day: datetime
    presence_status: PresenceStatus
    approval_status: ApprovalStatus
    submitted_by: int
    submitted_at: datetime
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    notes: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.approval_status == ApprovalStatus.PENDING

    def to_dict(self) -> dict:
        return {
            "attendance_id": self.attendance_id,
            "subject_kind": self.subject.kind.value,
            "member_id": self.subject.member_id if isinstance(self.subject, MemberSubject) else None,
            "actor_id": self.subject.actor_id if isinstance(self.subject, ShepherdSubject) else None,
            "day": self.day.strftime("%Y-%m-%d"),
            "presence_status": self.presence_status.value,
            "approval_status": self.approval_status.value,
            "submitted_by": self.submitted_by,
            "submitted_at": self.submitted_at.isoformat(timespec="seconds"),
            "approved_by": self.approved_by,
            "approved_at": self.approved_at.isoformat(timespec="seconds") if self.approved_at else None,
            "rejection_reason": self.rejection_reason,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class NewAttendance:
    """One candidate entry, as accepted by single and bulk submission."""

    subject: Subject
    day: datetime
    presence_status: PresenceStatus
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "NewAttendance":
        if not isinstance(data, dict):
            raise ValidationError("Each entry must be an object")

        day = data.get("day")
        if isinstance(day, str):
            try:
                day = parse_iso_datetime(day)
            except ValueError:
                raise ValidationError(f"Invalid day '{day}'")
        if not isinstance(day, datetime):
            raise ValidationError("day is required")

        try:
            presence = PresenceStatus(data.get("presence_status"))
        except ValueError:
            raise ValidationError(f"Unknown presence status '{data.get('presence_status')}'")

        return cls(
            subject=subject_from_fields(data.get("member_id"), data.get("actor_id")),
            day=day,
            presence_status=presence,
            notes=data.get("notes"),
        )


@dataclass(frozen=True)
class ItemError:
    index: int
    error: str
    message: str
    ref: Optional[int] = None


@dataclass
class BulkResult:
    """Partial-success outcome: ids that went through plus per-item errors."""

    total: int
    succeeded: list[int] = field(default_factory=list)
    errors: list[ItemError] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "succeeded": len(self.succeeded),
            "ids": list(self.succeeded),
            "errors": [
                {"index": e.index, "ref": e.ref, "error": e.error, "message": e.message}
                for e in self.errors
            ],
        }
