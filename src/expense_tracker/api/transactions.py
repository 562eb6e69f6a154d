"""
HTTP эндпоинты транзакций.
"""

from datetime import date

from flask import Blueprint, jsonify, request

from expense_tracker.database import get_db_session
from expense_tracker.models import Transaction, TransactionCreate, TransactionUpdate, TransactionType
from expense_tracker.services.transaction_service import (
    create_transaction,
    get_transaction,
    get_transactions,
    update_transaction,
    delete_transaction,
    get_period_totals,
    get_month_bounds,
    search_transactions,
    SEARCH_DEFAULT_LIMIT,
)
from expense_tracker.api.helpers import get_json_body, get_user_id, get_date_arg, serialize
from expense_tracker.utils.exceptions import ValidationError

transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


def _get_type_arg():
    raw = request.args.get("type")
    if not raw:
        return None
    try:
        return TransactionType(raw)
    except ValueError:
        raise ValidationError(f"Неизвестный тип транзакции '{raw}'. Допустимые значения: income, expense")


def _get_limit_arg():
    raw = request.args.get("limit")
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError("Параметр limit должен быть целым числом")


def _suggestion(transaction) -> dict:
    subtitle = transaction.transaction_type.value
    if transaction.category:
        subtitle = f"{transaction.category} • {subtitle}"
    return {
        "id": transaction.id,
        "title": transaction.title,
        "subtitle": subtitle,
        "amount": transaction.amount,
        "date": transaction.transaction_date,
        "type": transaction.transaction_type,
    }


@transactions_bp.route("", methods=["GET"])
def list_transactions():
    user_id = get_user_id()

    with get_db_session() as session:
        transactions = get_transactions(
            session,
            user_id,
            start_date=get_date_arg("start_date"),
            end_date=get_date_arg("end_date"),
            transaction_type=_get_type_arg(),
            category=request.args.get("category"),
            recurring_transaction_id=request.args.get("recurring_transaction_id"),
            limit=_get_limit_arg(),
        )
        data = [serialize(Transaction, t) for t in transactions]

    return jsonify({"success": True, "data": data})


@transactions_bp.route("/search", methods=["GET"])
def search():
    """Подсказки поиска: q (строка) и limit (по умолчанию 5)."""
    user_id = get_user_id()
    limit = _get_limit_arg()
    if limit is None:
        limit = SEARCH_DEFAULT_LIMIT

    with get_db_session() as session:
        found = search_transactions(session, user_id, request.args.get("q", ""), limit=limit)
        suggestions = [_suggestion(t) for t in found]

    return jsonify({"success": True, "data": suggestions})


@transactions_bp.route("/summary", methods=["GET"])
def period_summary():
    """Итоги за период; по умолчанию текущий месяц."""
    user_id = get_user_id()
    month_start, month_end = get_month_bounds(date.today())
    start_date = get_date_arg("start_date") or month_start
    end_date = get_date_arg("end_date") or month_end

    with get_db_session() as session:
        totals = get_period_totals(session, user_id, start_date, end_date)

    return jsonify({
        "success": True,
        "data": dict(totals, start_date=start_date, end_date=end_date),
    })


@transactions_bp.route("", methods=["POST"])
def create():
    body = get_json_body()
    payload = dict(body, user_id=get_user_id(body))
    payload.pop("userId", None)
    data = TransactionCreate(**payload)

    with get_db_session() as session:
        transaction = create_transaction(session, data)
        result = serialize(Transaction, transaction)

    return jsonify({"success": True, "data": result}), 201


@transactions_bp.route("/<transaction_id>", methods=["GET"])
def get_one(transaction_id: str):
    user_id = get_user_id()

    with get_db_session() as session:
        result = serialize(Transaction, get_transaction(session, user_id, transaction_id))

    return jsonify({"success": True, "data": result})


@transactions_bp.route("/<transaction_id>", methods=["PUT", "PATCH"])
def update(transaction_id: str):
    body = get_json_body()
    user_id = get_user_id(body)
    changes = {k: v for k, v in body.items() if k not in ("user_id", "userId")}
    data = TransactionUpdate(**changes)

    with get_db_session() as session:
        transaction = update_transaction(session, user_id, transaction_id, data)
        result = serialize(Transaction, transaction)

    return jsonify({"success": True, "data": result})


@transactions_bp.route("/<transaction_id>", methods=["DELETE"])
def delete(transaction_id: str):
    user_id = get_user_id()

    with get_db_session() as session:
        delete_transaction(session, user_id, transaction_id)

    return jsonify({"success": True, "message": "Транзакция удалена"})
