from __future__ import annotations

from flask import Flask, g, request

from ..common.web import login_required, success
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.notification_service

    @app.route("/api/notifications", methods=["GET"], endpoint="notifications_list")
    @login_required
    def notifications_list():
        only_unread = (request.args.get("unread") or "").lower() in {"1", "true", "yes"}
        return success(service.list_for_user(user_id=g.user.user_id, only_unread=only_unread))

    @app.route("/api/notifications/<int:notification_id>/read", methods=["PATCH", "POST"], endpoint="notifications_read")
    @login_required
    def notifications_read(notification_id: int):
        return success(service.mark_read(notification_id=notification_id, user_id=g.user.user_id))

    @app.route("/api/notifications/read-all", methods=["PATCH", "POST"], endpoint="notifications_read_all")
    @login_required
    def notifications_read_all():
        updated = service.mark_all_read(user_id=g.user.user_id)
        return success({"updated": updated})
