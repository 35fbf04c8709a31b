from __future__ import annotations

from dataclasses import dataclass

from ..core.constants import (
    DEFAULT_HIGH_RISK_DAYS,
    DEFAULT_LOW_RISK_DAYS,
    DEFAULT_MEDIUM_RISK_DAYS,
    DEFAULT_TRACKING_ENABLED,
)


@dataclass(frozen=True)
class RiskThresholds:
    low_risk_days: int = DEFAULT_LOW_RISK_DAYS
    medium_risk_days: int = DEFAULT_MEDIUM_RISK_DAYS
    high_risk_days: int = DEFAULT_HIGH_RISK_DAYS
    tracking_enabled: bool = DEFAULT_TRACKING_ENABLED
