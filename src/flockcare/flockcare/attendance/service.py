from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, tzinfo
from typing import Optional, Sequence, Union

from ..audit.sink import AuditTrail
from ..common.datetime_utils import now_local, start_of_day
from ..common.validators import optional_text, require_non_empty
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import Action, ApprovalStatus, PresenceStatus, Role
from ..core.exceptions import (
    AuthorizationError,
    DomainError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
    domain_boundary,
)
from ..hierarchy.model import Actor, Member
from ..hierarchy.policy import AuthorizationPolicy
from ..hierarchy.repository import DirectoryRepository
from ..notifications import messages
from ..notifications.dispatcher import BestEffortNotifier
from .model import AttendanceRecord, BulkResult, ItemError, MemberSubject, NewAttendance, Subject
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

_PRIVILEGED = {Role.ADMIN, Role.PASTOR}


def _presence(value: Union[PresenceStatus, str]) -> PresenceStatus:
    try:
        return PresenceStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown presence status '{value}'")


class AttendanceService:
    """Submission, approval lifecycle and scoped queries for attendance."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        directory: DirectoryRepository,
        policy: AuthorizationPolicy,
        notifier: BestEffortNotifier,
        audit: Optional[AuditTrail] = None,
        *,
        day_tz: Optional[tzinfo] = None,
        notify_admins: bool = True,
    ):
        self._attendance = attendance
        self._directory = directory
        self._policy = policy
        self._notifier = notifier
        self._audit = audit
        self._day_tz = day_tz
        self._notify_admins = bool(notify_admins)

    # -------- Helpers --------
    def _load_actor(self, actor_id: int) -> Actor:
        actor = self._directory.get_actor(int(actor_id))
        if not actor:
            raise NotFoundError(f"Actor {actor_id} not found")
        return actor

    def _load_record(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise NotFoundError(f"Attendance {attendance_id} not found")
        return record

    def _admin_ids(self) -> Sequence[int]:
        return self._directory.list_active_admin_ids() if self._notify_admins else []

    def _submit_one(
        self,
        actor: Actor,
        entry: NewAttendance,
        *,
        assert_approved: bool,
        now: datetime,
    ) -> tuple[AttendanceRecord, Union[Member, Actor]]:
        target = self._policy.resolve(entry.subject)
        self._policy.require(actor, Action.CREATE_ATTENDANCE, target)

        if assert_approved and actor.role not in _PRIVILEGED:
            raise AuthorizationError("Only admins and pastors may submit pre-approved attendance")

        presence = _presence(entry.presence_status)
        day = start_of_day(entry.day, self._day_tz)
        status = ApprovalStatus.APPROVED if assert_approved else ApprovalStatus.PENDING
        approved_by = actor.actor_id if assert_approved else None
        approved_at = now if assert_approved else None
        notes = optional_text(entry.notes)

        attendance_id = self._attendance.insert(
            subject=entry.subject,
            day=day,
            presence_status=presence,
            approval_status=status,
            submitted_by=actor.actor_id,
            submitted_at=now,
            approved_by=approved_by,
            approved_at=approved_at,
            notes=notes,
            refresh_member_id=self._member_to_refresh(status, presence, entry.subject),
        )

        record = AttendanceRecord(
            attendance_id=attendance_id,
            subject=entry.subject,
            day=day,
            presence_status=presence,
            approval_status=status,
            submitted_by=actor.actor_id,
            submitted_at=now,
            approved_by=approved_by,
            approved_at=approved_at,
            notes=notes,
        )
        return record, target

    @staticmethod
    def _member_to_refresh(status: ApprovalStatus, presence: PresenceStatus, subject: Subject) -> Optional[int]:
        """Member whose last attendance moves with this record, if any."""
        if status != ApprovalStatus.APPROVED or presence != PresenceStatus.PRESENT:
            return None
        if not isinstance(subject, MemberSubject):
            return None
        return subject.member_id

    # -------- Submission --------
    @domain_boundary
    def submit(
        self,
        *,
        actor_id: int,
        subject: Subject,
        day: Union[datetime, date],
        presence_status: Union[PresenceStatus, str],
        notes: Optional[str] = None,
        assert_approved: bool = False,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = now or now_local(self._day_tz)
        actor = self._load_actor(actor_id)
        entry = NewAttendance(subject=subject, day=day, presence_status=presence_status, notes=notes)

        record, target = self._submit_one(actor, entry, assert_approved=assert_approved, now=now)

        if record.is_pending and actor.role == Role.SHEPHERD:
            self._notifier.emit(
                messages.attendance_pending(
                    subject_label=target.full_name,
                    attendance_id=record.attendance_id,
                    overseer_id=actor.overseer_id,
                    admin_ids=self._admin_ids(),
                )
            )
        return record

    @domain_boundary
    def submit_many(
        self,
        *,
        actor_id: int,
        entries: Sequence[Union[NewAttendance, dict]],
        now: Optional[datetime] = None,
    ) -> BulkResult:
        """Submit each entry independently; one bad entry never stops the rest."""
        now = now or now_local(self._day_tz)
        actor = self._load_actor(actor_id)
        result = BulkResult(total=len(entries))
        pending_ids: list[int] = []

        for index, raw in enumerate(entries):
            try:
                entry = raw if isinstance(raw, NewAttendance) else NewAttendance.from_dict(raw)
                record, _ = self._submit_one(actor, entry, assert_approved=False, now=now)
            except DomainError as exc:
                result.errors.append(ItemError(index=index, error=type(exc).__name__, message=str(exc)))
                continue
            except Exception:
                logger.exception("Bulk attendance entry %d failed unexpectedly", index)
                result.errors.append(ItemError(index=index, error="InternalError", message="Unexpected error"))
                continue

            result.succeeded.append(record.attendance_id)
            if record.is_pending:
                pending_ids.append(record.attendance_id)

        if pending_ids and actor.role == Role.SHEPHERD:
            self._notifier.emit(
                messages.bulk_attendance_pending(
                    count=len(pending_ids),
                    first_attendance_id=pending_ids[0],
                    overseer_id=actor.overseer_id,
                    admin_ids=self._admin_ids(),
                )
            )
        return result

    # -------- Approval state machine --------
    @domain_boundary
    def approve(
        self,
        *,
        actor_id: int,
        attendance_id: int,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = now or now_local(self._day_tz)
        actor = self._load_actor(actor_id)
        record = self._load_record(attendance_id)
        self._policy.require(actor, Action.APPROVE_ATTENDANCE, record.subject)

        if not record.is_pending:
            raise InvalidStateError(f"Attendance {record.attendance_id} is already {record.approval_status.value}")

        notes = optional_text(notes)
        decided = self._attendance.decide(
            attendance_id=record.attendance_id,
            status=ApprovalStatus.APPROVED,
            decided_by=actor.actor_id,
            decided_at=now,
            notes=notes,
            refresh_member_id=self._member_to_refresh(ApprovalStatus.APPROVED, record.presence_status, record.subject),
            attended_on=record.day,
        )
        if not decided:
            raise InvalidStateError(f"Attendance {record.attendance_id} was decided concurrently")

        approved = replace(
            record,
            approval_status=ApprovalStatus.APPROVED,
            approved_by=actor.actor_id,
            approved_at=now,
            notes=notes if notes is not None else record.notes,
        )
        self._notifier.emit(
            [messages.attendance_approved(submitter_id=record.submitted_by, attendance_id=record.attendance_id)]
        )
        return approved

    @domain_boundary
    def reject(
        self,
        *,
        actor_id: int,
        attendance_id: int,
        reason: str,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = now or now_local(self._day_tz)
        reason = require_non_empty(reason, "Rejection reason")
        actor = self._load_actor(actor_id)
        record = self._load_record(attendance_id)
        self._policy.require(actor, Action.APPROVE_ATTENDANCE, record.subject)

        if not record.is_pending:
            raise InvalidStateError(f"Attendance {record.attendance_id} is already {record.approval_status.value}")

        decided = self._attendance.decide(
            attendance_id=record.attendance_id,
            status=ApprovalStatus.REJECTED,
            decided_by=actor.actor_id,
            decided_at=now,
            rejection_reason=reason,
        )
        if not decided:
            raise InvalidStateError(f"Attendance {record.attendance_id} was decided concurrently")

        self._notifier.emit(
            [
                messages.attendance_rejected(
                    submitter_id=record.submitted_by,
                    attendance_id=record.attendance_id,
                    reason=reason,
                )
            ]
        )
        return replace(
            record,
            approval_status=ApprovalStatus.REJECTED,
            approved_by=actor.actor_id,
            approved_at=now,
            rejection_reason=reason,
        )

    # -------- Update / delete --------
    @domain_boundary
    def update(
        self,
        *,
        actor_id: int,
        attendance_id: int,
        presence_status: Union[PresenceStatus, str, None] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        if presence_status is None and notes is None:
            raise ValidationError("Nothing to update")

        now = now or now_local(self._day_tz)
        actor = self._load_actor(actor_id)
        record = self._load_record(attendance_id)
        self._policy.require(actor, Action.UPDATE_ATTENDANCE, record)

        if record.submitted_by != actor.actor_id:
            raise AuthorizationError("Only the submitter may update an attendance record")
        if not record.is_pending:
            raise InvalidStateError(f"Attendance {record.attendance_id} is {record.approval_status.value} and can no longer be edited")

        new_presence = _presence(presence_status) if presence_status is not None else record.presence_status
        new_notes = optional_text(notes) if notes is not None else record.notes

        if not self._attendance.update_pending(
            attendance_id=record.attendance_id,
            presence_status=new_presence,
            notes=new_notes,
            updated_at=now,
        ):
            raise InvalidStateError(f"Attendance {record.attendance_id} was decided concurrently")

        return replace(record, presence_status=new_presence, notes=new_notes)

    def _remove(self, actor: Actor, attendance_id: int, *, now: datetime) -> None:
        record = self._load_record(attendance_id)

        if actor.role == Role.ADMIN and actor.is_active:
            if not self._attendance.delete(attendance_id=record.attendance_id):
                raise NotFoundError(f"Attendance {record.attendance_id} not found")
            if not record.is_pending and self._audit:
                self._audit.record(
                    actor_id=actor.actor_id,
                    action="attendance_deleted",
                    entity_type="attendance",
                    entity_id=record.attendance_id,
                    details=record.to_dict(),
                    timestamp=now,
                )
            return

        self._policy.require(actor, Action.DELETE_ATTENDANCE, record)
        if record.submitted_by != actor.actor_id:
            raise AuthorizationError("Only the submitter may delete an attendance record")
        if not record.is_pending:
            raise InvalidStateError(f"Attendance {record.attendance_id} is {record.approval_status.value} and can no longer be deleted")
        if not self._attendance.delete(attendance_id=record.attendance_id, only_if_pending=True):
            raise InvalidStateError(f"Attendance {record.attendance_id} was decided concurrently")

    @domain_boundary
    def remove(self, *, actor_id: int, attendance_id: int, now: Optional[datetime] = None) -> None:
        self._remove(self._load_actor(actor_id), attendance_id, now=now or now_local(self._day_tz))

    @domain_boundary
    def remove_many(
        self,
        *,
        actor_id: int,
        attendance_ids: Sequence[int],
        now: Optional[datetime] = None,
    ) -> BulkResult:
        now = now or now_local(self._day_tz)
        actor = self._load_actor(actor_id)
        result = BulkResult(total=len(attendance_ids))

        for index, attendance_id in enumerate(attendance_ids):
            try:
                self._remove(actor, int(attendance_id), now=now)
            except DomainError as exc:
                result.errors.append(
                    ItemError(index=index, ref=attendance_id, error=type(exc).__name__, message=str(exc))
                )
                continue
            except Exception:
                logger.exception("Bulk delete of attendance %s failed unexpectedly", attendance_id)
                result.errors.append(
                    ItemError(index=index, ref=attendance_id, error="InternalError", message="Unexpected error")
                )
                continue
            result.succeeded.append(int(attendance_id))

        return result

    # -------- Queries --------
    @domain_boundary
    def get(self, *, actor_id: int, attendance_id: int) -> AttendanceRecord:
        actor = self._load_actor(actor_id)
        record = self._load_record(attendance_id)
        self._policy.require(actor, Action.VIEW_ATTENDANCE, record)
        return record

    @domain_boundary
    def list_records(
        self,
        *,
        actor_id: int,
        member_id: Optional[int] = None,
        approval_status: Union[ApprovalStatus, str, None] = None,
        start: Union[datetime, date, None] = None,
        end: Union[datetime, date, None] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[AttendanceRecord]:
        actor = self._load_actor(actor_id)
        self._policy.require_capability(actor, Action.VIEW_ATTENDANCE)

        if approval_status is not None:
            try:
                approval_status = ApprovalStatus(approval_status)
            except ValueError:
                raise ValidationError(f"Unknown approval status '{approval_status}'")
        if int(limit) <= 0:
            raise ValidationError("Limit must be positive")

        return self._attendance.list_records(
            scope=self._policy.scope_for(actor),
            member_id=int(member_id) if member_id is not None else None,
            approval_status=approval_status,
            start=start_of_day(start, self._day_tz) if start is not None else None,
            end=start_of_day(end, self._day_tz) if end is not None else None,
            limit=int(limit),
        )
