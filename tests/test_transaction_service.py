"""
Тесты сервиса транзакций.
"""

from datetime import date
from decimal import Decimal

import pytest
from hypothesis import given, settings, strategies as st

from expense_tracker.models import TransactionCreate, TransactionUpdate
from expense_tracker.models.enums import TransactionType
from expense_tracker.services.transaction_service import (
    create_transaction,
    get_transaction,
    get_transactions,
    update_transaction,
    delete_transaction,
    get_period_totals,
    get_month_bounds,
    get_monthly_expense_total,
    search_transactions,
    SEARCH_MAX_LIMIT,
)
from expense_tracker.utils.exceptions import ValidationError, NotFoundError
from property_generators import valid_amounts


class TestTransactionService:

    def test_create_and_get(self, db_session):
        transaction = create_transaction(db_session, TransactionCreate(
            user_id="user-1",
            title="Продукты",
            amount=Decimal("1500.50"),
            category="Еда",
            transaction_type=TransactionType.EXPENSE,
            transaction_date=date(2024, 5, 10),
        ))

        loaded = get_transaction(db_session, "user-1", transaction.id)
        assert loaded.amount == Decimal("1500.50")
        assert loaded.recurring_transaction_id is None

    def test_transaction_date_defaults_to_today(self):
        data = TransactionCreate(
            user_id="user-1", title="Кофе", amount=Decimal("250"), transaction_type=TransactionType.EXPENSE
        )
        assert data.transaction_date == date.today()

    def test_list_filters_and_order(self, db_session, make_transaction):
        old = make_transaction(Decimal("100"), date(2024, 1, 5))
        salary = make_transaction(Decimal("90000"), date(2024, 1, 10), transaction_type=TransactionType.INCOME)
        recent = make_transaction(Decimal("300"), date(2024, 1, 20), category="Транспорт")
        make_transaction(Decimal("999"), date(2024, 1, 15), owner="user-2")

        everything = get_transactions(db_session, "user-1")
        january_expenses = get_transactions(
            db_session, "user-1",
            start_date=date(2024, 1, 1), end_date=date(2024, 1, 31),
            transaction_type=TransactionType.EXPENSE
        )
        transport = get_transactions(db_session, "user-1", category="Транспорт")
        limited = get_transactions(db_session, "user-1", limit=1)

        assert [t.id for t in everything] == [recent.id, salary.id, old.id]
        assert [t.id for t in january_expenses] == [recent.id, old.id]
        assert [t.id for t in transport] == [recent.id]
        assert [t.id for t in limited] == [recent.id]

    def test_list_rejects_inverted_period(self, db_session):
        with pytest.raises(ValidationError):
            get_transactions(db_session, "user-1", start_date=date(2024, 2, 1), end_date=date(2024, 1, 1))

    def test_update_partial(self, db_session, make_transaction):
        transaction = make_transaction(Decimal("100"), date(2024, 1, 5), title="Такси")

        updated = update_transaction(
            db_session, "user-1", transaction.id, TransactionUpdate(amount=Decimal("150.00"))
        )

        assert updated.amount == Decimal("150.00")
        assert updated.title == "Такси"

    def test_update_and_delete_other_user_not_found(self, db_session, make_transaction):
        transaction = make_transaction(Decimal("100"), date(2024, 1, 5))

        with pytest.raises(NotFoundError):
            update_transaction(db_session, "user-2", transaction.id, TransactionUpdate(title="x"))
        with pytest.raises(NotFoundError):
            delete_transaction(db_session, "user-2", transaction.id)

    def test_delete(self, db_session, make_transaction):
        transaction = make_transaction(Decimal("100"), date(2024, 1, 5))

        assert delete_transaction(db_session, "user-1", transaction.id) is True
        with pytest.raises(NotFoundError):
            get_transaction(db_session, "user-1", transaction.id)

    def test_period_totals(self, db_session, make_transaction):
        make_transaction(Decimal("90000.00"), date(2024, 1, 10), transaction_type=TransactionType.INCOME)
        make_transaction(Decimal("30000.00"), date(2024, 1, 15))
        make_transaction(Decimal("1200.40"), date(2024, 1, 31))
        make_transaction(Decimal("5000.00"), date(2024, 2, 1))

        totals = get_period_totals(db_session, "user-1", date(2024, 1, 1), date(2024, 1, 31))

        assert totals["income"] == Decimal("90000.00")
        assert totals["expense"] == Decimal("31200.40")
        assert totals["balance"] == Decimal("58799.60")

    def test_period_totals_empty(self, db_session):
        totals = get_period_totals(db_session, "user-1", date(2024, 1, 1), date(2024, 1, 31))
        assert totals == {"income": Decimal("0"), "expense": Decimal("0"), "balance": Decimal("0")}

    def test_monthly_expense_total(self, db_session, make_transaction):
        make_transaction(Decimal("100.10"), date(2024, 2, 1))
        make_transaction(Decimal("200.20"), date(2024, 2, 29))
        make_transaction(Decimal("999.00"), date(2024, 3, 1))

        assert get_monthly_expense_total(db_session, "user-1", date(2024, 2, 15)) == Decimal("300.30")

    @given(day=st.dates(min_value=date(2000, 1, 1), max_value=date(2100, 12, 31)))
    @settings(max_examples=100, deadline=None)
    def test_property_month_bounds_contain_date(self, day):
        """
        Property 8: Границы месяца содержат дату и лежат в том же месяце.
        Feature: Transactions
        """
        first, last = get_month_bounds(day)
        assert first.day == 1
        assert first <= day <= last
        assert (first.year, first.month) == (last.year, last.month) == (day.year, day.month)

    @given(amount=valid_amounts())
    @settings(max_examples=50, deadline=None)
    def test_property_valid_amount_accepted(self, amount):
        """
        Property 9: Любая положительная сумма с двумя знаками принимается.
        Feature: Transactions
        """
        data = TransactionCreate(
            user_id="user-1", title="Покупка", amount=amount, transaction_type=TransactionType.EXPENSE
        )
        assert data.amount == amount


class TestTransactionSearch:

    @pytest.fixture
    def history(self, make_transaction):
        make_transaction(Decimal("30000"), date(2024, 1, 15), title="Аренда", category="Жильё")
        make_transaction(Decimal("30000"), date(2024, 2, 15), title="Аренда", category="Жильё")
        make_transaction(Decimal("85000"), date(2024, 2, 5), TransactionType.INCOME, title="Зарплата", category="Работа")
        make_transaction(Decimal("450"), date(2024, 2, 20), title="Кофе", category="Кафе")
        make_transaction(Decimal("30000"), date(2024, 2, 16), title="Аренда", owner="user-2")

    def test_case_insensitive_match_on_title_newest_first(self, db_session, history):
        found = search_transactions(db_session, "user-1", "  аРЕНД ")

        assert [(t.title, t.transaction_date) for t in found] == [
            ("Аренда", date(2024, 2, 15)),
            ("Аренда", date(2024, 1, 15)),
        ]

    def test_match_on_category_and_type(self, db_session, history):
        assert [t.title for t in search_transactions(db_session, "user-1", "кафе")] == ["Кофе"]
        assert [t.title for t in search_transactions(db_session, "user-1", "income")] == ["Зарплата"]
        assert [t.title for t in search_transactions(db_session, "user-1", "Доход")] == ["Зарплата"]

    def test_limit(self, db_session, history):
        found = search_transactions(db_session, "user-1", "расход", limit=2)

        assert [t.title for t in found] == ["Кофе", "Аренда"]

    def test_blank_query_returns_nothing(self, db_session, history):
        assert search_transactions(db_session, "user-1", "   ") == []

    @pytest.mark.parametrize("limit", [0, -1, SEARCH_MAX_LIMIT + 1])
    def test_invalid_limit_rejected(self, db_session, limit):
        with pytest.raises(ValidationError):
            search_transactions(db_session, "user-1", "аренда", limit=limit)
