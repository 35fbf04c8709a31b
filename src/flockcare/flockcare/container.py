from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .audit.sink import AuditSink, AuditTrail, MySQLAuditSink
from .common.datetime_utils import resolve_zone
from .database.connection import DBConfig, DatabaseConnection
from .hierarchy.mysql_directory_repository import MySQLDirectoryRepository
from .hierarchy.policy import AuthorizationPolicy
from .hierarchy.repository import DirectoryRepository
from .hierarchy.service import DirectoryService
from .notifications.dispatcher import BestEffortNotifier, MySQLNotificationDispatcher, NotificationDispatcher
from .risk.service import RiskClassifierService
from .settings.mysql_settings_repository import MySQLSettingsRepository
from .settings.repository import SettingsRepository


@dataclass(frozen=True)
class Container:
    directory_repo: DirectoryRepository
    attendance_repo: AttendanceRepository
    settings_repo: SettingsRepository

    policy: AuthorizationPolicy
    notifier: BestEffortNotifier
    audit: AuditTrail

    attendance_service: AttendanceService
    directory_service: DirectoryService
    risk_service: RiskClassifierService


def wire(
    *,
    directory: DirectoryRepository,
    attendance: AttendanceRepository,
    settings: SettingsRepository,
    dispatcher: NotificationDispatcher,
    audit_sink: AuditSink,
    day_tz_name: Optional[str] = None,
    notify_admins: bool = True,
) -> Container:
    """Assemble services over any repository implementations."""
    policy = AuthorizationPolicy(directory)
    day_tz = resolve_zone(day_tz_name)
    notifier = BestEffortNotifier(dispatcher)
    audit = AuditTrail(audit_sink)

    attendance_service = AttendanceService(
        attendance,
        directory,
        policy,
        notifier,
        audit,
        day_tz=day_tz,
        notify_admins=notify_admins,
    )
    directory_service = DirectoryService(directory, policy, audit)
    risk_service = RiskClassifierService(directory, settings, notifier, policy, day_tz=day_tz)

    return Container(
        directory_repo=directory,
        attendance_repo=attendance,
        settings_repo=settings,
        policy=policy,
        notifier=notifier,
        audit=audit,
        attendance_service=attendance_service,
        directory_service=directory_service,
        risk_service=risk_service,
    )


def build_container(*, db_config: dict, day_tz_name: Optional[str] = None, notify_admins: bool = True) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire(
        directory=MySQLDirectoryRepository(conn),
        attendance=MySQLAttendanceRepository(conn),
        settings=MySQLSettingsRepository(conn),
        dispatcher=MySQLNotificationDispatcher(conn),
        audit_sink=MySQLAuditSink(conn),
        day_tz_name=day_tz_name,
        notify_admins=notify_admins,
    )
