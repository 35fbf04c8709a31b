from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..audit.sink import AuditTrail
from ..common.datetime_utils import now_local
from ..core.enums import Action, Role
from ..core.exceptions import NotFoundError, ValidationError, domain_boundary
from .model import Member
from .policy import AuthorizationPolicy
from .repository import DirectoryRepository


class DirectoryService:
    """Use case: ownership changes in the care hierarchy (admin)."""

    def __init__(self, directory: DirectoryRepository, policy: AuthorizationPolicy, audit: AuditTrail):
        self._directory = directory
        self._policy = policy
        self._audit = audit

    @domain_boundary
    def reassign_member(
        self,
        *,
        actor_id: int,
        member_id: int,
        new_owner_id: int,
        now: Optional[datetime] = None,
    ) -> Member:
        now = now or now_local()
        actor = self._directory.get_actor(int(actor_id))
        if not actor:
            raise NotFoundError(f"Actor {actor_id} not found")

        member = self._directory.get_member(int(member_id))
        if not member:
            raise NotFoundError(f"Member {member_id} not found")
        self._policy.require(actor, Action.REASSIGN_MEMBER, member)

        shepherd = self._directory.get_actor(int(new_owner_id))
        if not shepherd or shepherd.role != Role.SHEPHERD or not shepherd.is_active:
            raise ValidationError("New owner must be an active shepherd")
        if shepherd.actor_id == member.owner_id:
            return member

        if not self._directory.set_member_owner(member_id=member.member_id, owner_id=shepherd.actor_id):
            raise NotFoundError(f"Member {member_id} not found")

        self._audit.record(
            actor_id=actor.actor_id,
            action="member_reassigned",
            entity_type="member",
            entity_id=member.member_id,
            details={"previous_owner_id": member.owner_id, "new_owner_id": shepherd.actor_id},
            timestamp=now,
        )

        return Member(
            member_id=member.member_id,
            full_name=member.full_name,
            owner_id=shepherd.actor_id,
            date_joined=member.date_joined,
            last_attendance_date=member.last_attendance_date,
            risk_level=member.risk_level,
            is_active=member.is_active,
        )
