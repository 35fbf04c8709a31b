from __future__ import annotations

import click
from flask import Flask, jsonify

from ..common.http import current_actor_id, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.risk_service

    @app.route("/api/risk/recompute", methods=["POST"], endpoint="recompute_risk")
    @login_required
    def recompute_risk():
        report = service.run_as(actor_id=current_actor_id())
        return jsonify(report.to_dict())

    @app.cli.command("recompute-risk")
    @click.option("--dry-run", is_flag=True, help="Show changes without writing them.")
    def recompute_risk_command(dry_run: bool) -> None:
        """Recompute attendance risk for every active member (run daily)."""
        if dry_run:
            for change in service.preview():
                click.echo(f"member {change.member_id}: {change.previous.value} -> {change.new.value}")
            return

        report = service.run()
        click.echo(
            f"total={report.total} updated={report.updated} "
            f"unchanged={report.unchanged} failed={len(report.failures)}"
        )
        if report.failures:
            raise SystemExit(1)
