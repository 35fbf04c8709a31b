from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import RiskLevel, Role


@dataclass(frozen=True)
class Actor:
    """A user of the system (admin, pastor or shepherd).

    ``overseer_id`` is only meaningful for shepherds and points at a pastor.
    """

    actor_id: int
    full_name: str
    role: Role
    overseer_id: Optional[int] = None
    is_active: bool = True


@dataclass(frozen=True)
class Member:
    """A cared-for person, owned by exactly one shepherd."""

    member_id: int
    full_name: str
    owner_id: int
    date_joined: datetime
    last_attendance_date: Optional[datetime] = None
    risk_level: RiskLevel = RiskLevel.NONE
    is_active: bool = True
