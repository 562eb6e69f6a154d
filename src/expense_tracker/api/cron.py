"""
Ежедневная cron-задача: генерация повторяющихся транзакций и проверки уведомлений.
"""

import logging
from datetime import datetime

from flask import Blueprint, jsonify
from sqlalchemy.exc import SQLAlchemyError

from expense_tracker.database import get_db_session
from expense_tracker.services.recurring_transaction_service import generate_recurring_transactions
from expense_tracker.services.notification_service import get_user_ids_for_checks, run_all_checks
from expense_tracker.api.helpers import require_cron_secret

logger = logging.getLogger(__name__)

cron_bp = Blueprint("cron", __name__, url_prefix="/api/cron")


@cron_bp.route("/daily", methods=["POST"])
def daily():
    """
    Запускает цикл генерации, затем проверки уведомлений для всех пользователей.

    Ошибка проверок для одного пользователя не прерывает обработку остальных.
    """
    require_cron_secret()
    logger.info("Запуск ежедневной cron-задачи")

    with get_db_session() as session:
        summary = generate_recurring_transactions(session)

        users_checked = 0
        notifications_created = 0
        for user_id in get_user_ids_for_checks(session):
            try:
                notifications_created += run_all_checks(session, user_id)
                users_checked += 1
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Ошибка проверок уведомлений для пользователя {user_id}: {e}")

    logger.info(
        f"Ежедневная cron-задача завершена: транзакций {summary.generated_count}, "
        f"пользователей {users_checked}, уведомлений {notifications_created}"
    )
    return jsonify({
        "success": True,
        "generatedTransactions": summary.generated_count,
        "generation": summary.to_dict(),
        "usersChecked": users_checked,
        "notificationsCreated": notifications_created,
    })


@cron_bp.route("/daily", methods=["GET"])
def daily_status():
    return jsonify({
        "message": "Ежедневная cron-задача доступна",
        "timestamp": datetime.now().isoformat(),
    })
