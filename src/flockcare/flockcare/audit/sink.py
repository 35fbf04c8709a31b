from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Optional, Protocol

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor

logger = logging.getLogger(__name__)


class AuditSink(Protocol):
    def record(
        self,
        actor_id: int,
        action: str,
        entity_type: str,
        entity_id: str,
        details: Optional[dict],
        timestamp: datetime,
    ) -> None:
        raise NotImplementedError


class MySQLAuditSink(AuditSink):
    """Append-only audit log table."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def record(
        self,
        actor_id: int,
        action: str,
        entity_type: str,
        entity_id: str,
        details: Optional[dict],
        timestamp: datetime,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(actor_id, action, entity_type, entity_id, details, created_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(actor_id),
                    action,
                    entity_type,
                    str(entity_id),
                    json.dumps(details, default=str) if details is not None else None,
                    timestamp,
                ),
            )


class AuditTrail:
    """Non-fatal wrapper: an audit failure never fails the audited operation."""

    def __init__(self, sink: AuditSink):
        self._sink = sink

    def record(
        self,
        *,
        actor_id: int,
        action: str,
        entity_type: str,
        entity_id,
        details: Optional[dict] = None,
        timestamp: datetime,
    ) -> bool:
        try:
            self._sink.record(int(actor_id), action, entity_type, str(entity_id), details, timestamp)
            return True
        except Exception:
            logger.exception("Audit entry %s for %s %s was not written", action, entity_type, entity_id)
            return False
