from __future__ import annotations

import logging
from typing import Iterable, Optional, Protocol

from ..core.enums import NotificationKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor
from .model import NotificationEvent

logger = logging.getLogger(__name__)


class NotificationDispatcher(Protocol):
    def notify(
        self,
        recipient_id: int,
        kind: NotificationKind,
        title: str,
        message: str,
        related_id: Optional[str] = None,
    ) -> None:
        raise NotImplementedError


class MySQLNotificationDispatcher(NotificationDispatcher):
    """Stores in-app notifications; delivery (email/push) happens elsewhere."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def notify(
        self,
        recipient_id: int,
        kind: NotificationKind,
        title: str,
        message: str,
        related_id: Optional[str] = None,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notifications(recipient_id, kind, title, message, related_id, is_read)
                VALUES(%s,%s,%s,%s,%s,0)
                """,
                (int(recipient_id), kind.value, title, message, related_id),
            )


class BestEffortNotifier:
    """Fire-and-forget boundary around a dispatcher.

    Called only after the triggering write has completed; a failing dispatch
    is logged and never reaches the caller.
    """

    def __init__(self, dispatcher: NotificationDispatcher):
        self._dispatcher = dispatcher

    def emit(self, events: Iterable[NotificationEvent]) -> int:
        delivered = 0
        for event in events:
            try:
                self._dispatcher.notify(
                    event.recipient_id,
                    event.kind,
                    event.title,
                    event.message,
                    event.related_id,
                )
                delivered += 1
            except Exception:
                logger.exception(
                    "Notification %s to %s failed (related=%s)",
                    event.kind.value,
                    event.recipient_id,
                    event.related_id,
                )
        return delivered
