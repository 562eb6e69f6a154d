"""
HTTP эндпоинты повторяющихся транзакций и запуска цикла генерации.
"""

import logging
from datetime import datetime

from flask import Blueprint, jsonify

from expense_tracker.database import get_db_session
from expense_tracker.models import (
    RecurringTransaction,
    RecurringTransactionCreate,
    RecurringTransactionUpdate,
)
from expense_tracker.services.recurring_transaction_service import (
    create_recurring_transaction,
    get_recurring_transaction,
    get_recurring_transactions,
    update_recurring_transaction,
    deactivate_recurring_transaction,
    delete_recurring_transaction,
    generate_recurring_transactions,
)
from expense_tracker.api.helpers import (
    get_json_body,
    get_user_id,
    get_bool_arg,
    require_cron_secret,
    serialize,
)

logger = logging.getLogger(__name__)

recurring_bp = Blueprint("recurring", __name__, url_prefix="/api/recurring-transactions")


@recurring_bp.route("/generate", methods=["POST"])
def generate():
    """Запускает цикл генерации (вызывается внешним планировщиком)."""
    require_cron_secret()

    with get_db_session() as session:
        summary = generate_recurring_transactions(session)

    return jsonify(summary.to_dict())


@recurring_bp.route("/generate", methods=["GET"])
def generate_status():
    return jsonify({
        "message": "Эндпоинт генерации повторяющихся транзакций доступен",
        "timestamp": datetime.now().isoformat(),
    })


@recurring_bp.route("", methods=["GET"])
def list_recurring():
    user_id = get_user_id()
    active_only = get_bool_arg("active_only")

    with get_db_session() as session:
        records = get_recurring_transactions(session, user_id, active_only=active_only)
        data = [serialize(RecurringTransaction, r) for r in records]

    return jsonify({"success": True, "data": data})


@recurring_bp.route("", methods=["POST"])
def create_recurring():
    body = get_json_body()
    payload = dict(body, user_id=get_user_id(body))
    payload.pop("userId", None)
    data = RecurringTransactionCreate(**payload)

    with get_db_session() as session:
        record = create_recurring_transaction(session, data)
        result = serialize(RecurringTransaction, record)

    return jsonify({"success": True, "data": result}), 201


@recurring_bp.route("/<recurring_id>", methods=["GET"])
def get_recurring(recurring_id: str):
    user_id = get_user_id()

    with get_db_session() as session:
        record = get_recurring_transaction(session, user_id, recurring_id)
        result = serialize(RecurringTransaction, record)

    return jsonify({"success": True, "data": result})


@recurring_bp.route("/<recurring_id>", methods=["PUT", "PATCH"])
def update_recurring(recurring_id: str):
    body = get_json_body()
    user_id = get_user_id(body)
    changes = {k: v for k, v in body.items() if k not in ("user_id", "userId")}
    data = RecurringTransactionUpdate(**changes)

    with get_db_session() as session:
        record = update_recurring_transaction(session, user_id, recurring_id, data)
        result = serialize(RecurringTransaction, record)

    return jsonify({"success": True, "data": result})


@recurring_bp.route("/<recurring_id>/deactivate", methods=["POST"])
def deactivate_recurring(recurring_id: str):
    user_id = get_user_id(get_json_body())

    with get_db_session() as session:
        record = deactivate_recurring_transaction(session, user_id, recurring_id)
        result = serialize(RecurringTransaction, record)

    return jsonify({"success": True, "data": result})


@recurring_bp.route("/<recurring_id>", methods=["DELETE"])
def delete_recurring(recurring_id: str):
    user_id = get_user_id()

    with get_db_session() as session:
        delete_recurring_transaction(session, user_id, recurring_id)

    return jsonify({"success": True, "message": "Повторяющаяся транзакция удалена"})
