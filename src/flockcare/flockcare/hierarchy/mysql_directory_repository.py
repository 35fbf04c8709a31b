from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import RiskLevel, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Actor, Member
from .repository import DirectoryRepository

_MEMBER_COLUMNS = "member_id, full_name, owner_id, date_joined, last_attendance_date, risk_level, is_active"


def _to_actor(r: dict) -> Actor:
    return Actor(
        actor_id=int(r["actor_id"]),
        full_name=r["full_name"],
        role=Role(r["role"]),
        overseer_id=int(r["overseer_id"]) if r.get("overseer_id") is not None else None,
        is_active=bool(r["is_active"]),
    )


def _to_member(r: dict) -> Member:
    return Member(
        member_id=int(r["member_id"]),
        full_name=r["full_name"],
        owner_id=int(r["owner_id"]),
        date_joined=r["date_joined"],
        last_attendance_date=r.get("last_attendance_date"),
        risk_level=RiskLevel(r.get("risk_level") or RiskLevel.NONE.value),
        is_active=bool(r["is_active"]),
    )


class MySQLDirectoryRepository(DirectoryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_actor(self, actor_id: int) -> Optional[Actor]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT actor_id, full_name, role, overseer_id, is_active
                FROM actors
                WHERE actor_id=%s
                """,
                (int(actor_id),),
            )
            r = fetchone(cur)
            return _to_actor(r) if r else None

    def get_member(self, member_id: int) -> Optional[Member]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_MEMBER_COLUMNS} FROM members WHERE member_id=%s", (int(member_id),))
            r = fetchone(cur)
            return _to_member(r) if r else None

    def list_shepherd_ids(self, *, overseer_id: int) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT actor_id FROM actors WHERE role=%s AND overseer_id=%s",
                (Role.SHEPHERD.value, int(overseer_id)),
            )
            return [int(r["actor_id"]) for r in fetchall(cur)]

    def list_active_admin_ids(self) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT actor_id FROM actors WHERE role=%s AND is_active=1",
                (Role.ADMIN.value,),
            )
            return [int(r["actor_id"]) for r in fetchall(cur)]

    def list_active_members(self) -> Sequence[Member]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_MEMBER_COLUMNS} FROM members WHERE is_active=1 ORDER BY member_id")
            return [_to_member(r) for r in fetchall(cur)]

    def set_risk_level(self, *, member_id: int, risk_level: RiskLevel) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE members SET risk_level=%s WHERE member_id=%s",
                (risk_level.value, int(member_id)),
            )
            return cur.rowcount > 0

    def set_member_owner(self, *, member_id: int, owner_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE members SET owner_id=%s WHERE member_id=%s",
                (int(owner_id), int(member_id)),
            )
            return cur.rowcount > 0
