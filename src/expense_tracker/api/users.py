"""
HTTP эндпоинты предпочтений пользователя и первичной настройки.
"""

from flask import Blueprint, jsonify

from expense_tracker.database import get_db_session
from expense_tracker.models import UserPreferences, UserPreferencesUpdate
from expense_tracker.services.user_preferences_service import (
    get_user_preferences,
    update_user_preferences,
    get_setup_progress,
    reset_setup,
)
from expense_tracker.api.helpers import get_json_body, get_user_id, serialize

users_bp = Blueprint("users", __name__, url_prefix="/api/user")


@users_bp.route("/preferences", methods=["GET"])
def preferences():
    user_id = get_user_id()

    with get_db_session() as session:
        result = serialize(UserPreferences, get_user_preferences(session, user_id))

    return jsonify({"success": True, "data": result})


@users_bp.route("/preferences", methods=["PUT", "PATCH"])
def update():
    body = get_json_body()
    user_id = get_user_id(body)
    changes = {k: v for k, v in body.items() if k not in ("user_id", "userId")}
    data = UserPreferencesUpdate(**changes)

    with get_db_session() as session:
        result = serialize(UserPreferences, update_user_preferences(session, user_id, data))

    return jsonify({"success": True, "data": result})


@users_bp.route("/setup-status", methods=["GET"])
def setup_status():
    user_id = get_user_id()

    with get_db_session() as session:
        progress = get_setup_progress(session, user_id)
        result = serialize(UserPreferences, get_user_preferences(session, user_id))

    return jsonify({"success": True, "data": {"setup_progress": progress, "preferences": result}})


@users_bp.route("/reset-setup", methods=["POST"])
def reset():
    user_id = get_user_id(get_json_body())

    with get_db_session() as session:
        result = serialize(UserPreferences, reset_setup(session, user_id))

    return jsonify({"success": True, "message": "Первичная настройка сброшена", "data": result})
