"""
Тесты фабрики приложения, JSON провайдера и команд запуска.
"""

from datetime import date, datetime
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from expense_tracker.__main__ import main
from expense_tracker.config import settings
from expense_tracker.database import get_db_session
from expense_tracker.models import RecurringTransactionCreate, TransactionDB
from expense_tracker.models.enums import Frequency, TransactionType
from expense_tracker.services.recurring_transaction_service import create_recurring_transaction


@pytest.fixture
def monthly_rent(app):
    """Ежемесячная запись с курсором 2024-01-15."""
    with get_db_session() as session:
        record = create_recurring_transaction(session, RecurringTransactionCreate(
            user_id="user-1",
            title="Аренда",
            amount=Decimal("30000"),
            transaction_type=TransactionType.EXPENSE,
            frequency=Frequency.MONTHLY,
            start_date=date(2023, 12, 15),
        ))
        return record.id


def test_json_provider_serializes_domain_types(app):
    with app.app_context():
        payload = app.json.dumps({
            "amount": Decimal("10.50"),
            "day": date(2024, 2, 29),
            "at": datetime(2024, 2, 29, 13, 5),
            "type": TransactionType.INCOME,
            "title": "Кофе",
        })

    assert '"amount": 10.5' in payload
    assert '"day": "2024-02-29"' in payload
    assert '"at": "2024-02-29T13:05:00"' in payload
    assert '"type": "income"' in payload
    assert "Кофе" in payload


@patch("expense_tracker.app.setup_logging")
def test_generate_recurring_command(mock_setup_logging, app, monthly_rent):
    result = app.test_cli_runner().invoke(args=["generate-recurring", "--date", "2024-01-20"])

    assert result.exit_code == 0, result.output
    assert "создано транзакций: 1" in result.output
    mock_setup_logging.assert_called_once()

    with get_db_session() as session:
        generated = session.query(TransactionDB).filter_by(recurring_transaction_id=monthly_rent).all()
        assert [t.transaction_date for t in generated] == [date(2024, 1, 15)]


@patch("expense_tracker.app.setup_logging")
def test_generate_recurring_command_fails_on_timeout(mock_setup_logging, app, monthly_rent, monkeypatch):
    monkeypatch.setattr(settings, "generation_time_budget_seconds", 0)

    result = app.test_cli_runner().invoke(args=["generate-recurring", "--date", "2024-01-20"])

    assert result.exit_code == 1


def test_generate_recurring_command_rejects_bad_date(app):
    result = app.test_cli_runner().invoke(args=["generate-recurring", "--date", "20.01.2024"])

    assert result.exit_code != 0


@patch("expense_tracker.__main__.setup_logging")
@patch("expense_tracker.__main__.create_app")
def test_main_runs_server_with_configured_address(mock_create_app, mock_setup_logging):
    mock_app = MagicMock()
    mock_create_app.return_value = mock_app

    main()

    mock_setup_logging.assert_called_once()
    mock_app.run.assert_called_once_with(host=settings.host, port=settings.port)
