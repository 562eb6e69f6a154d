"""
HTTP эндпоинты целей накоплений.
"""

from flask import Blueprint, jsonify

from expense_tracker.database import get_db_session
from expense_tracker.models import SavingsGoal, SavingsGoalCreate, SavingsGoalUpdate
from expense_tracker.services.savings_service import (
    create_savings_goal,
    get_savings_goals,
    update_savings_goal,
    delete_savings_goal,
)
from expense_tracker.api.helpers import get_json_body, get_user_id, serialize

savings_bp = Blueprint("savings", __name__, url_prefix="/api/savings")


@savings_bp.route("", methods=["GET"])
def list_goals():
    user_id = get_user_id()

    with get_db_session() as session:
        data = [serialize(SavingsGoal, g) for g in get_savings_goals(session, user_id)]

    return jsonify({"success": True, "data": data})


@savings_bp.route("", methods=["POST"])
def create():
    body = get_json_body()
    payload = dict(body, user_id=get_user_id(body))
    payload.pop("userId", None)
    data = SavingsGoalCreate(**payload)

    with get_db_session() as session:
        result = serialize(SavingsGoal, create_savings_goal(session, data))

    return jsonify({"success": True, "data": result}), 201


@savings_bp.route("/<goal_id>", methods=["PUT", "PATCH"])
def update(goal_id: str):
    body = get_json_body()
    user_id = get_user_id(body)
    changes = {k: v for k, v in body.items() if k not in ("user_id", "userId")}
    data = SavingsGoalUpdate(**changes)

    with get_db_session() as session:
        result = serialize(SavingsGoal, update_savings_goal(session, user_id, goal_id, data))

    return jsonify({"success": True, "data": result})


@savings_bp.route("/<goal_id>", methods=["DELETE"])
def delete(goal_id: str):
    user_id = get_user_id()

    with get_db_session() as session:
        delete_savings_goal(session, user_id, goal_id)

    return jsonify({"success": True, "message": "Цель накоплений удалена"})
