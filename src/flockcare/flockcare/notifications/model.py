from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import NotificationKind


@dataclass(frozen=True)
class NotificationEvent:
    recipient_id: int
    kind: NotificationKind
    title: str
    message: str
    related_id: Optional[str] = None
