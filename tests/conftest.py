"""
Конфигурация pytest для тестов expense_tracker.
"""
import os
import tempfile

# Изолируем пользовательские данные тестов до импорта настроек
os.environ.setdefault("EXPENSE_TRACKER_DATA_DIR", tempfile.mkdtemp(prefix="expense_tracker_test_"))

import pytest
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import sessionmaker

from expense_tracker.config import settings
from expense_tracker.database import create_db_engine, close_db
from expense_tracker.models import Base
from expense_tracker.models.models import RecurringTransactionDB, TransactionDB
from expense_tracker.models.enums import TransactionType, Frequency


@pytest.fixture(scope="session", autouse=True)
def isolated_settings():
    """
    Фиксирует настройки, от которых зависят тесты, независимо от окружения.
    """
    overrides = {
        "cron_secret": None,
        "generation_time_budget_seconds": 60.0,
        "max_occurrences_per_run": 366,
        "upcoming_lookahead_days": 30,
        "bill_reminder_days": 2,
        "budget_warning_threshold": Decimal("30000"),
        "budget_critical_threshold": Decimal("40000"),
        "date_format": "%d.%m.%Y",
        "currency_symbol": "₽",
    }
    previous = {key: getattr(settings, key) for key in overrides}
    for key, value in overrides.items():
        setattr(settings, key, value)

    yield settings

    for key, value in previous.items():
        setattr(settings, key, value)


@pytest.fixture
def db_session():
    """
    Централизованная фикстура для создания временной БД и сессии.
    Автоматически закрывает соединение после теста.
    """
    engine = create_db_engine("sqlite://")
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, autoflush=False)
    session = Session()

    yield session

    # Закрываем сессию и соединение
    session.close()
    engine.dispose()


@pytest.fixture
def user_id():
    return "user-1"


@pytest.fixture
def make_recurring(db_session, user_id):
    """
    Фабрика повторяющихся транзакций с заданным курсором.

    Returns:
        Callable: make_recurring(next_due_date, frequency=..., ...) -> RecurringTransactionDB
    """
    def _make(
        next_due_date: date,
        frequency: Frequency = Frequency.MONTHLY,
        title: str = "Аренда",
        amount: Decimal = Decimal("30000.00"),
        transaction_type: TransactionType = TransactionType.EXPENSE,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        is_active: bool = True,
        owner: Optional[str] = None,
        category: Optional[str] = "Жильё",
    ) -> RecurringTransactionDB:
        record = RecurringTransactionDB(
            user_id=owner or user_id,
            title=title,
            amount=amount,
            category=category,
            transaction_type=transaction_type,
            frequency=frequency,
            start_date=start_date or next_due_date,
            end_date=end_date,
            next_due_date=next_due_date,
            is_active=is_active,
        )
        db_session.add(record)
        db_session.commit()
        return record

    return _make


@pytest.fixture
def make_transaction(db_session, user_id):
    """Фабрика транзакций."""
    def _make(
        amount: Decimal,
        transaction_date: date,
        transaction_type: TransactionType = TransactionType.EXPENSE,
        title: str = "Покупка",
        owner: Optional[str] = None,
        category: Optional[str] = None,
    ) -> TransactionDB:
        transaction = TransactionDB(
            user_id=owner or user_id,
            title=title,
            amount=amount,
            category=category,
            transaction_type=transaction_type,
            transaction_date=transaction_date,
        )
        db_session.add(transaction)
        db_session.commit()
        return transaction

    return _make


@pytest.fixture
def app():
    """Flask приложение с изолированной БД в памяти."""
    from expense_tracker.app import create_app

    application = create_app("sqlite://", {"TESTING": True})

    yield application

    close_db()


@pytest.fixture
def client(app):
    return app.test_client()
