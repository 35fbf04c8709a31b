from __future__ import annotations

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import RiskThresholds
from .repository import SettingsRepository


class MySQLSettingsRepository(SettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_attendance_risk_thresholds(self) -> RiskThresholds:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT low_risk_days, medium_risk_days, high_risk_days, enable_at_risk_tracking
                FROM settings
                ORDER BY settings_id
                LIMIT 1
                """
            )
            r = fetchone(cur)

        defaults = RiskThresholds()
        if not r:
            return defaults

        def _pick(col: str, fallback):
            value = r.get(col)
            return fallback if value is None else value

        return RiskThresholds(
            low_risk_days=int(_pick("low_risk_days", defaults.low_risk_days)),
            medium_risk_days=int(_pick("medium_risk_days", defaults.medium_risk_days)),
            high_risk_days=int(_pick("high_risk_days", defaults.high_risk_days)),
            tracking_enabled=bool(_pick("enable_at_risk_tracking", defaults.tracking_enabled)),
        )
