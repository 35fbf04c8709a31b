from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import RiskLevel
from .model import Actor, Member


class DirectoryRepository(Protocol):
    """Read/write access to actors and member ownership edges.

    Note (DIP): services and the authorization policy depend on this
    interface, never on a concrete database.
    """

    def get_actor(self, actor_id: int) -> Optional[Actor]:
        raise NotImplementedError

    def get_member(self, member_id: int) -> Optional[Member]:
        raise NotImplementedError

    def list_shepherd_ids(self, *, overseer_id: int) -> Sequence[int]:
        """Shepherds (active or not) whose overseer is the given pastor."""

        raise NotImplementedError

    def list_active_admin_ids(self) -> Sequence[int]:
        raise NotImplementedError

    def list_active_members(self) -> Sequence[Member]:
        raise NotImplementedError

    def set_risk_level(self, *, member_id: int, risk_level: RiskLevel) -> bool:
        raise NotImplementedError

    def set_member_owner(self, *, member_id: int, owner_id: int) -> bool:
        raise NotImplementedError
