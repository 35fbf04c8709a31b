"""Disengagement risk from time since last confirmed presence.

Pure functions: no clock, no storage. The batch service feeds them members,
thresholds and ``now``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from ..common.datetime_utils import whole_days_between
from ..core.enums import RiskLevel
from ..hierarchy.model import Member
from ..settings.model import RiskThresholds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RiskChange:
    member_id: int
    previous: RiskLevel
    new: RiskLevel


def risk_for_days(days_since: int, thresholds: RiskThresholds) -> RiskLevel:
    if days_since >= thresholds.high_risk_days:
        return RiskLevel.HIGH
    if days_since >= thresholds.medium_risk_days:
        return RiskLevel.MEDIUM
    if days_since >= thresholds.low_risk_days:
        return RiskLevel.LOW
    return RiskLevel.NONE


def classify_member(member: Member, thresholds: RiskThresholds, now: datetime) -> RiskLevel:
    # Never attended: the clock starts the day they joined.
    reference = member.last_attendance_date or member.date_joined
    if reference is None:
        raise ValueError(f"Member {member.member_id} has neither last attendance nor join date")
    return risk_for_days(whole_days_between(reference, now), thresholds)


def classify(members: Iterable[Member], thresholds: RiskThresholds, now: datetime) -> list[RiskChange]:
    """Risk changes for active members; unchanged members are left out."""
    if not thresholds.tracking_enabled:
        return []

    changes: list[RiskChange] = []
    for member in members:
        if not member.is_active:
            continue
        try:
            new_risk = classify_member(member, thresholds, now)
        except (TypeError, ValueError):
            logger.warning("Skipping member %s: cannot classify", member.member_id, exc_info=True)
            continue
        if new_risk != member.risk_level:
            changes.append(RiskChange(member_id=member.member_id, previous=member.risk_level, new=new_risk))
    return changes
