"""
Фабрика Flask приложения Expense Tracker.

Подключает JSON провайдер (Decimal -> float, даты в ISO 8601), CORS,
централизованную обработку ошибок и blueprints API.

Запуск одного цикла генерации без HTTP:
    flask --app expense_tracker.app generate-recurring [--date YYYY-MM-DD]
"""

import datetime
import logging
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

import click
from flask import Flask, jsonify
from flask.json.provider import DefaultJSONProvider
from flask_cors import CORS
from sqlalchemy import text

from expense_tracker import __version__
from expense_tracker.api import BLUEPRINTS
from expense_tracker.config import settings
from expense_tracker.database import init_db, get_db_session
from expense_tracker.services.recurring_transaction_service import generate_recurring_transactions
from expense_tracker.utils.error_handler import register_error_handlers
from expense_tracker.utils.logger import setup_logging

logger = logging.getLogger(__name__)


class ExpenseTrackerJSONProvider(DefaultJSONProvider):
    """
    JSON провайдер для Decimal, дат и перечислений.

    Converts:
    - Decimal в float
    - datetime и date в ISO 8601
    - Enum в его значение
    """
    ensure_ascii = False
    sort_keys = False

    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, (datetime.datetime, datetime.date)):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        return super().default(obj)


def create_app(
    database_url: Optional[str] = None,
    config_overrides: Optional[Dict[str, Any]] = None
) -> Flask:
    """
    Создаёт и настраивает Flask приложение.

    Args:
        database_url: URL БД (по умолчанию settings.database_url)
        config_overrides: Дополнительные параметры app.config (например, TESTING)

    Returns:
        Flask: Настроенное приложение
    """
    app = Flask(__name__)
    app.json = ExpenseTrackerJSONProvider(app)
    if config_overrides:
        app.config.update(config_overrides)

    CORS(app)

    init_db(database_url)
    register_error_handlers(app)

    for blueprint in BLUEPRINTS:
        app.register_blueprint(blueprint)

    @app.route("/api/health", methods=["GET"])
    def health():
        with get_db_session() as session:
            session.execute(text("SELECT 1"))
        return jsonify({
            "status": "ok",
            "version": __version__,
            "timestamp": datetime.datetime.now().isoformat(),
        })

    @app.cli.command("generate-recurring")
    @click.option(
        "--date", "run_date",
        type=click.DateTime(formats=["%Y-%m-%d"]),
        default=None,
        help="Дата запуска в формате YYYY-MM-DD (по умолчанию сегодня)",
    )
    def generate_recurring_command(run_date):
        """Запускает один цикл генерации повторяющихся транзакций."""
        setup_logging()
        today = run_date.date() if run_date else None

        with get_db_session() as session:
            summary = generate_recurring_transactions(session, today=today)

        click.echo(
            f"Дата: {summary.run_date}, создано транзакций: {summary.generated_count}, "
            f"ошибок: {len(summary.failed)}, пропущено: {len(summary.skipped)}, "
            f"деактивировано: {len(summary.deactivated)}"
        )
        for failure in summary.failed:
            click.echo(f"  {failure.recurring_transaction_id}: {failure.error}", err=True)
        if not summary.success:
            raise SystemExit(1)

    logger.info(f"Приложение {settings.APP_NAME} {__version__} создано")
    return app
