"""Authorization policy for the care hierarchy.

Every attendance mutation asks ``authorize``/``require`` before touching data,
and every listing filters through ``scope_for``. Both read the same rules:

1. Admin: everything.
2. Pastor: members whose owner is overseen by the pastor, and those shepherds.
3. Shepherd: members they own, and attendance they submitted.
4. Anything else (including inactive actors): denied.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from ..attendance.model import AttendanceRecord, MemberSubject, ShepherdSubject, Subject
from ..core.enums import Action, Role
from ..core.exceptions import AuthorizationError, NotFoundError
from .model import Actor, Member
from .repository import DirectoryRepository

Target = Union[Member, Actor, AttendanceRecord, MemberSubject, ShepherdSubject]

_CAPABILITIES: dict[Role, frozenset[Action]] = {
    Role.ADMIN: frozenset(Action),
    Role.PASTOR: frozenset(
        {
            Action.CREATE_ATTENDANCE,
            Action.VIEW_ATTENDANCE,
            Action.UPDATE_ATTENDANCE,
            Action.DELETE_ATTENDANCE,
            Action.APPROVE_ATTENDANCE,
        }
    ),
    Role.SHEPHERD: frozenset(
        {
            Action.CREATE_ATTENDANCE,
            Action.VIEW_ATTENDANCE,
            Action.UPDATE_ATTENDANCE,
            Action.DELETE_ATTENDANCE,
        }
    ),
}


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(True)

    @classmethod
    def deny(cls, reason: str) -> "Decision":
        return cls(False, reason)

    def __bool__(self) -> bool:
        return self.allowed


@dataclass(frozen=True)
class Scope:
    """The slice of the hierarchy an actor may see and act on."""

    unrestricted: bool = False
    owner_ids: frozenset[int] = frozenset()
    shepherd_ids: frozenset[int] = frozenset()
    submitted_by: Optional[int] = None

    def covers_member(self, member: Member) -> bool:
        return self.unrestricted or member.owner_id in self.owner_ids

    def covers_shepherd(self, actor: Actor) -> bool:
        if self.unrestricted:
            return True
        return actor.role == Role.SHEPHERD and actor.actor_id in self.shepherd_ids

    def covers_record(self, record: AttendanceRecord, *, member_owner_id: Optional[int]) -> bool:
        if self.unrestricted:
            return True
        if self.submitted_by is not None and record.submitted_by == self.submitted_by:
            return True
        if isinstance(record.subject, MemberSubject):
            return member_owner_id is not None and member_owner_id in self.owner_ids
        return record.subject.actor_id in self.shepherd_ids


class AuthorizationPolicy:
    def __init__(self, directory: DirectoryRepository):
        self._directory = directory

    def scope_for(self, actor: Actor) -> Scope:
        if not actor.is_active:
            return Scope()
        if actor.role == Role.ADMIN:
            return Scope(unrestricted=True)
        if actor.role == Role.PASTOR:
            shepherds = frozenset(int(s) for s in self._directory.list_shepherd_ids(overseer_id=actor.actor_id))
            return Scope(owner_ids=shepherds, shepherd_ids=shepherds)
        if actor.role == Role.SHEPHERD:
            return Scope(owner_ids=frozenset({actor.actor_id}), submitted_by=actor.actor_id)
        return Scope()

    def resolve(self, subject: Subject) -> Union[Member, Actor]:
        """Load the entity behind a subject reference."""
        if isinstance(subject, MemberSubject):
            member = self._directory.get_member(subject.member_id)
            if not member:
                raise NotFoundError(f"Member {subject.member_id} not found")
            return member

        actor = self._directory.get_actor(subject.actor_id)
        if not actor:
            raise NotFoundError(f"Shepherd {subject.actor_id} not found")
        if actor.role != Role.SHEPHERD:
            raise NotFoundError(f"Actor {subject.actor_id} is not a shepherd")
        return actor

    def authorize(self, actor: Actor, action: Action, target: Target) -> Decision:
        if not actor.is_active:
            return Decision.deny("Your account is inactive")
        if action not in _CAPABILITIES.get(actor.role, frozenset()):
            return Decision.deny(f"Role '{actor.role.value}' may not {action.value.replace('_', ' ')}")

        if isinstance(target, (MemberSubject, ShepherdSubject)):
            target = self.resolve(target)

        scope = self.scope_for(actor)
        if scope.unrestricted:
            return Decision.allow()

        if isinstance(target, Member):
            if scope.covers_member(target):
                return Decision.allow()
            return Decision.deny(f"Member {target.member_id} is outside your care")

        if isinstance(target, Actor):
            if scope.covers_shepherd(target):
                return Decision.allow()
            return Decision.deny(f"You do not oversee actor {target.actor_id}")

        if isinstance(target, AttendanceRecord):
            if scope.covers_record(target, member_owner_id=self._member_owner(target)):
                return Decision.allow()
            return Decision.deny(f"Attendance {target.attendance_id} is outside your care")

        return Decision.deny("Unsupported target")

    def require(self, actor: Actor, action: Action, target: Target) -> None:
        decision = self.authorize(actor, action, target)
        if not decision:
            raise AuthorizationError(decision.reason or "Not authorized")

    def require_capability(self, actor: Actor, action: Action) -> None:
        """Role-only check for actions that have no single target (e.g. batch runs)."""
        if not actor.is_active:
            raise AuthorizationError("Your account is inactive")
        if action not in _CAPABILITIES.get(actor.role, frozenset()):
            raise AuthorizationError(f"Role '{actor.role.value}' may not {action.value.replace('_', ' ')}")

    def _member_owner(self, record: AttendanceRecord) -> Optional[int]:
        if not isinstance(record.subject, MemberSubject):
            return None
        member = self._directory.get_member(record.subject.member_id)
        return member.owner_id if member else None
