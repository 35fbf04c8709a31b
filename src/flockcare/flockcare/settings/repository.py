from __future__ import annotations

from typing import Protocol

from .model import RiskThresholds


class SettingsRepository(Protocol):
    def get_attendance_risk_thresholds(self) -> RiskThresholds:
        """Return configured thresholds, falling back to documented defaults."""

        raise NotImplementedError
