"""
HTTP эндпоинты уведомлений.
"""

from flask import Blueprint, jsonify, request

from expense_tracker.database import get_db_session
from expense_tracker.models import Notification, NotificationCreate
from expense_tracker.services.notification_service import (
    create_notification,
    get_notifications,
    mark_notification_read,
    mark_all_read,
    delete_notification,
    check_upcoming_recurring_transactions,
    run_all_checks,
)
from expense_tracker.api.helpers import get_json_body, get_user_id, get_bool_arg, serialize
from expense_tracker.utils.exceptions import ValidationError

notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@notifications_bp.route("", methods=["GET"])
def list_notifications():
    user_id = get_user_id()
    unread_only = get_bool_arg("unread_only")
    limit = request.args.get("limit", type=int)

    with get_db_session() as session:
        notifications = get_notifications(session, user_id, unread_only=unread_only, limit=limit)
        data = [serialize(Notification, n) for n in notifications]

    return jsonify({"success": True, "data": data})


@notifications_bp.route("", methods=["POST"])
def create():
    body = get_json_body()
    payload = dict(body, user_id=get_user_id(body))
    payload.pop("userId", None)
    if "actionUrl" in payload:
        payload.setdefault("action_url", payload.pop("actionUrl"))
    data = NotificationCreate(**payload)

    with get_db_session() as session:
        result = serialize(Notification, create_notification(session, data))

    return jsonify({"success": True, "data": result}), 201


@notifications_bp.route("/mark-all-read", methods=["PATCH", "POST"])
def mark_all():
    user_id = get_user_id(get_json_body())

    with get_db_session() as session:
        count = mark_all_read(session, user_id)

    return jsonify({"success": True, "updated": count})


@notifications_bp.route("/check", methods=["POST"])
def check():
    """Запускает все проверки уведомлений для пользователя."""
    user_id = get_user_id(get_json_body())

    with get_db_session() as session:
        created = run_all_checks(session, user_id)

    return jsonify({"success": True, "notificationsCreated": created})


@notifications_bp.route("/upcoming-recurring", methods=["POST"])
def upcoming_recurring():
    body = get_json_body()
    user_id = get_user_id(body)
    lookahead_days = body.get("lookahead_days")
    if lookahead_days is not None and (not isinstance(lookahead_days, int) or lookahead_days < 0):
        raise ValidationError("lookahead_days должен быть неотрицательным целым числом")

    with get_db_session() as session:
        created = check_upcoming_recurring_transactions(session, user_id, lookahead_days=lookahead_days)

    return jsonify({"success": True, "notificationsCreated": created})


@notifications_bp.route("/<notification_id>", methods=["PATCH"])
def update_read(notification_id: str):
    body = get_json_body()
    user_id = get_user_id(body)
    read = body.get("read", True)
    if not isinstance(read, bool):
        raise ValidationError("Поле 'read' должно быть логическим значением")

    with get_db_session() as session:
        notification = mark_notification_read(session, user_id, notification_id, read=read)
        result = serialize(Notification, notification)

    return jsonify({"success": True, "data": result})


@notifications_bp.route("/<notification_id>", methods=["DELETE"])
def delete(notification_id: str):
    user_id = get_user_id()

    with get_db_session() as session:
        delete_notification(session, user_id, notification_id)

    return jsonify({"success": True, "message": "Уведомление удалено"})
