from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Optional

from ..common.datetime_utils import now_local
from ..core.enums import Action, RiskLevel
from ..core.exceptions import NotFoundError, domain_boundary
from ..hierarchy.model import Member
from ..hierarchy.policy import AuthorizationPolicy
from ..hierarchy.repository import DirectoryRepository
from ..notifications import messages
from ..notifications.dispatcher import BestEffortNotifier
from ..settings.repository import SettingsRepository
from .classifier import RiskChange, classify, classify_member

logger = logging.getLogger(__name__)

_ALERT_LEVELS = {RiskLevel.MEDIUM, RiskLevel.HIGH}


@dataclass(frozen=True)
class MemberFailure:
    member_id: int
    message: str


@dataclass
class RiskRunReport:
    tracking_enabled: bool = True
    total: int = 0
    updated: int = 0
    unchanged: int = 0
    failures: list[MemberFailure] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "tracking_enabled": self.tracking_enabled,
            "total": self.total,
            "updated": self.updated,
            "unchanged": self.unchanged,
            "failures": [{"member_id": f.member_id, "message": f.message} for f in self.failures],
        }


class RiskClassifierService:
    """Periodic, idempotent recompute of every active member's risk level.

    Safe to re-run in full after a failure. One member failing never stops
    the others; failures are collected in the report.
    """

    def __init__(
        self,
        directory: DirectoryRepository,
        settings: SettingsRepository,
        notifier: BestEffortNotifier,
        policy: Optional[AuthorizationPolicy] = None,
        *,
        day_tz: Optional[tzinfo] = None,
    ):
        self._directory = directory
        self._settings = settings
        self._notifier = notifier
        self._policy = policy
        self._day_tz = day_tz

    @domain_boundary
    def run(self, *, now: Optional[datetime] = None) -> RiskRunReport:
        now = now or now_local(self._day_tz)
        thresholds = self._settings.get_attendance_risk_thresholds()
        if not thresholds.tracking_enabled:
            logger.info("At-risk tracking disabled; classifier run skipped")
            return RiskRunReport(tracking_enabled=False)

        members = self._directory.list_active_members()
        report = RiskRunReport(total=len(members))

        for member in members:
            try:
                new_risk = classify_member(member, thresholds, now)
                if new_risk == member.risk_level:
                    report.unchanged += 1
                    continue
                self._directory.set_risk_level(member_id=member.member_id, risk_level=new_risk)
                report.updated += 1
            except Exception as exc:
                logger.exception("Risk recompute failed for member %s", member.member_id)
                report.failures.append(MemberFailure(member_id=member.member_id, message=str(exc)))
                continue

            if new_risk in _ALERT_LEVELS:
                self._alert_owner(member, new_risk)

        logger.info(
            "Risk classifier: total=%d updated=%d unchanged=%d failed=%d",
            report.total,
            report.updated,
            report.unchanged,
            len(report.failures),
        )
        return report

    @domain_boundary
    def run_as(self, *, actor_id: int, now: Optional[datetime] = None) -> RiskRunReport:
        """Manual trigger on behalf of an admin."""
        actor = self._directory.get_actor(int(actor_id))
        if not actor:
            raise NotFoundError(f"Actor {actor_id} not found")
        if self._policy:
            self._policy.require_capability(actor, Action.RUN_RISK_CLASSIFIER)
        return self.run(now=now)

    @domain_boundary
    def preview(self, *, now: Optional[datetime] = None) -> list[RiskChange]:
        """Dry run: what ``run`` would change, without writing."""
        now = now or now_local(self._day_tz)
        return classify(
            self._directory.list_active_members(),
            self._settings.get_attendance_risk_thresholds(),
            now,
        )

    def _alert_owner(self, member: Member, risk_level: RiskLevel) -> None:
        try:
            shepherd = self._directory.get_actor(member.owner_id)
        except Exception:
            logger.exception("Could not load shepherd %s for at-risk alert", member.owner_id)
            return
        if not shepherd or not shepherd.is_active:
            return
        self._notifier.emit(
            [
                messages.member_at_risk(
                    shepherd_id=shepherd.actor_id,
                    member_id=member.member_id,
                    member_name=member.full_name,
                    risk_level=risk_level,
                )
            ]
        )
