"""Example: drive the service layer directly (no Flask).

Assumes scripts/init_db.py and scripts/seed_db.py have been run.
"""

import importlib
from datetime import datetime

from config import get_settings_module

from src.flockcare.flockcare.attendance.model import MemberSubject
from src.flockcare.flockcare.container import build_container
from src.flockcare.flockcare.core.exceptions import DuplicateError


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)
    attendance = container.attendance_service

    try:
        record = attendance.submit(
            actor_id=3,
            subject=MemberSubject(1),
            day=datetime.now(),
            presence_status="present",
        )
        attendance.approve(actor_id=2, attendance_id=record.attendance_id)
    except DuplicateError as exc:
        print(f"Already recorded today: {exc}")

    print([r.to_dict() for r in attendance.list_records(actor_id=2, limit=5)])
    print(container.risk_service.run().to_dict())


if __name__ == "__main__":
    main()
