from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_actor_id, json_body, login_required
from ..common.validators import require_positive_id
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/members/<int:member_id>/reassign", methods=["POST"], endpoint="reassign_member")
    @login_required
    def reassign_member(member_id: int):
        new_owner_id = require_positive_id(json_body().get("new_owner_id"), "new_owner_id")

        member = container.directory_service.reassign_member(
            actor_id=current_actor_id(),
            member_id=member_id,
            new_owner_id=new_owner_id,
        )
        return jsonify({"member_id": member.member_id, "owner_id": member.owner_id})
