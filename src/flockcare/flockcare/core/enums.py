from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Actor roles in the care hierarchy."""

    ADMIN = "admin"
    PASTOR = "pastor"
    SHEPHERD = "shepherd"


class PresenceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    EXCUSED = "excused"
    LATE = "late"


class ApprovalStatus(str, Enum):
    """Lifecycle of an attendance record. APPROVED and REJECTED are terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RiskLevel(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SubjectKind(str, Enum):
    MEMBER = "member"
    SHEPHERD = "shepherd"


class Action(str, Enum):
    """Capabilities checked by the authorization policy."""

    CREATE_ATTENDANCE = "create_attendance"
    VIEW_ATTENDANCE = "view_attendance"
    UPDATE_ATTENDANCE = "update_attendance"
    DELETE_ATTENDANCE = "delete_attendance"
    APPROVE_ATTENDANCE = "approve_attendance"
    REASSIGN_MEMBER = "reassign_member"
    RUN_RISK_CLASSIFIER = "run_risk_classifier"


class NotificationKind(str, Enum):
    ATTENDANCE_PENDING = "attendance_pending"
    ATTENDANCE_APPROVED = "attendance_approved"
    ATTENDANCE_REJECTED = "attendance_rejected"
    REMINDER = "reminder"
