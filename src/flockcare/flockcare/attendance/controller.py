from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_datetime
from ..common.http import current_actor_id, json_body, login_required, optional_int
from ..common.validators import require_positive_id
from ..core.exceptions import ValidationError
from ..container import Container
from .model import NewAttendance


def _parse_day_arg(name: str):
    value = request.args.get(name)
    if not value:
        return None
    try:
        return parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(f"{name} must be YYYY-MM-DD")


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendance", methods=["POST"], endpoint="submit_attendance")
    @login_required
    def submit_attendance():
        body = json_body()
        entry = NewAttendance.from_dict(body)
        record = service.submit(
            actor_id=current_actor_id(),
            subject=entry.subject,
            day=entry.day,
            presence_status=entry.presence_status,
            notes=entry.notes,
            assert_approved=bool(body.get("assert_approved", False)),
        )
        return jsonify(record.to_dict()), 201

    @app.route("/api/attendance/bulk", methods=["POST"], endpoint="submit_attendance_bulk")
    @login_required
    def submit_attendance_bulk():
        entries = json_body().get("entries")
        if not isinstance(entries, list):
            raise ValidationError("entries must be a list")
        result = service.submit_many(actor_id=current_actor_id(), entries=entries)
        return jsonify(result.to_dict()), 200

    @app.route("/api/attendance", methods=["GET"], endpoint="list_attendance")
    @login_required
    def list_attendance():
        records = service.list_records(
            actor_id=current_actor_id(),
            member_id=optional_int(request.args.get("member_id"), "member_id"),
            approval_status=request.args.get("approval_status") or None,
            start=_parse_day_arg("start"),
            end=_parse_day_arg("end"),
            limit=optional_int(request.args.get("limit"), "limit") or 500,
        )
        return jsonify([r.to_dict() for r in records])

    @app.route("/api/attendance/<int:attendance_id>", methods=["GET"], endpoint="get_attendance")
    @login_required
    def get_attendance(attendance_id: int):
        record = service.get(actor_id=current_actor_id(), attendance_id=attendance_id)
        return jsonify(record.to_dict())

    @app.route("/api/attendance/<int:attendance_id>", methods=["PATCH"], endpoint="update_attendance")
    @login_required
    def update_attendance(attendance_id: int):
        body = json_body()
        record = service.update(
            actor_id=current_actor_id(),
            attendance_id=attendance_id,
            presence_status=body.get("presence_status"),
            notes=body.get("notes"),
        )
        return jsonify(record.to_dict())

    @app.route("/api/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="delete_attendance")
    @login_required
    def delete_attendance(attendance_id: int):
        service.remove(actor_id=current_actor_id(), attendance_id=attendance_id)
        return "", 204

    @app.route("/api/attendance/bulk-delete", methods=["POST"], endpoint="delete_attendance_bulk")
    @login_required
    def delete_attendance_bulk():
        ids = json_body().get("attendance_ids")
        if not isinstance(ids, list):
            raise ValidationError("attendance_ids must be a list")
        result = service.remove_many(
            actor_id=current_actor_id(),
            attendance_ids=[require_positive_id(i, "attendance_id") for i in ids],
        )
        return jsonify(result.to_dict())

    @app.route("/api/attendance/<int:attendance_id>/approve", methods=["POST"], endpoint="approve_attendance")
    @login_required
    def approve_attendance(attendance_id: int):
        record = service.approve(
            actor_id=current_actor_id(),
            attendance_id=attendance_id,
            notes=json_body().get("notes"),
        )
        return jsonify(record.to_dict())

    @app.route("/api/attendance/<int:attendance_id>/reject", methods=["POST"], endpoint="reject_attendance")
    @login_required
    def reject_attendance(attendance_id: int):
        record = service.reject(
            actor_id=current_actor_id(),
            attendance_id=attendance_id,
            reason=json_body().get("reason", ""),
        )
        return jsonify(record.to_dict())
