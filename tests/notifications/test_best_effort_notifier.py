from __future__ import annotations

import logging

from src.flockcare.flockcare.core.enums import NotificationKind, RiskLevel
from src.flockcare.flockcare.notifications import messages
from src.flockcare.flockcare.notifications.dispatcher import BestEffortNotifier
from src.flockcare.flockcare.notifications.model import NotificationEvent
from tests.fakes import RecordingDispatcher


class FlakyDispatcher(RecordingDispatcher):
    def __init__(self, failing_recipient):
        super().__init__()
        self.failing_recipient = failing_recipient

    def notify(self, recipient_id, kind, title, message, related_id=None):
        if recipient_id == self.failing_recipient:
            raise TimeoutError("push gateway timed out")
        super().notify(recipient_id, kind, title, message, related_id)


def _event(recipient_id):
    return NotificationEvent(
        recipient_id=recipient_id,
        kind=NotificationKind.ATTENDANCE_APPROVED,
        title="Attendance Approved",
        message="Attendance has been approved",
        related_id="9",
    )


def test_emit_counts_deliveries_and_logs_failures(caplog):
    dispatcher = FlakyDispatcher(failing_recipient=2)
    notifier = BestEffortNotifier(dispatcher)

    with caplog.at_level(logging.ERROR):
        delivered = notifier.emit([_event(1), _event(2), _event(3)])

    assert delivered == 2
    assert dispatcher.recipients() == [1, 3]
    assert "failed" in caplog.text


def test_pending_recipients_are_deduplicated():
    events = messages.attendance_pending(
        subject_label="Anna A", attendance_id=5, overseer_id=10, admin_ids=[1, 10, 1]
    )
    assert [e.recipient_id for e in events] == [10, 1]
    assert all(e.related_id == "5" for e in events)


def test_pending_without_overseer_goes_to_admins():
    events = messages.bulk_attendance_pending(count=4, first_attendance_id=11, overseer_id=None, admin_ids=[1])
    assert [e.recipient_id for e in events] == [1]
    assert events[0].message == "4 attendance records are pending approval"


def test_at_risk_alert_text():
    event = messages.member_at_risk(shepherd_id=20, member_id=100, member_name="Anna A", risk_level=RiskLevel.HIGH)
    assert event.kind == NotificationKind.REMINDER
    assert event.message == "Anna A has been flagged as high risk due to low attendance"
