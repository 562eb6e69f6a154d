"""
Генераторы данных для property-based тестирования с Hypothesis.

Содержит стратегии генерации для:
- Финансовых данных (суммы, даты, названия)
- Параметров расписания повторяющихся транзакций
- Граничных случаев календаря (конец месяца, 29 февраля)
"""
from hypothesis import strategies as st
from datetime import date, timedelta
from calendar import monthrange
from decimal import Decimal
from typing import Any, Dict

from expense_tracker.models.enums import TransactionType, Frequency


# =============================================================================
# Базовые генераторы для финансовых данных
# =============================================================================

def valid_amounts() -> st.SearchStrategy[Decimal]:
    """
    Генерирует валидные суммы для транзакций.

    Returns:
        SearchStrategy[Decimal]: Стратегия для положительных сумм от 0.01 до 999999.99

    Example:
        @given(amount=valid_amounts())
        def test_transaction_amount(amount):
            assert amount > 0
    """
    return st.decimals(
        min_value=Decimal('0.01'),
        max_value=Decimal('999999.99'),
        places=2
    )


def invalid_amounts() -> st.SearchStrategy[Decimal]:
    """
    Генерирует невалидные суммы (ноль и отрицательные) для тестирования ошибок.
    """
    return st.decimals(
        min_value=Decimal('-999999.99'),
        max_value=Decimal('0'),
        places=2
    )


def schedule_dates() -> st.SearchStrategy[date]:
    """
    Генерирует даты расписания в широком диапазоне лет.

    Верхняя граница оставляет запас для сдвига на год вперёд.
    """
    return st.dates(min_value=date(1900, 1, 1), max_value=date(9998, 12, 31))


@st.composite
def month_end_dates(draw) -> date:
    """
    Генерирует последние дни месяцев (28-31 число, включая 29 февраля).
    """
    year = draw(st.integers(min_value=1900, max_value=9998))
    month = draw(st.integers(min_value=1, max_value=12))
    return date(year, month, monthrange(year, month)[1])


def frequencies() -> st.SearchStrategy[Frequency]:
    return st.sampled_from(list(Frequency))


def transaction_types() -> st.SearchStrategy[TransactionType]:
    return st.sampled_from(list(TransactionType))


def titles() -> st.SearchStrategy[str]:
    """Непустые названия (без пробельных строк и суррогатов)."""
    return st.text(
        min_size=1,
        max_size=50,
        alphabet=st.characters(
            blacklist_categories=('Cs',),  # Исключаем surrogate characters
            blacklist_characters='\x00'
        )
    ).filter(lambda s: s.strip())


@st.composite
def recurring_create_data(draw) -> Dict[str, Any]:
    """
    Генерирует валидные данные для RecurringTransactionCreate.

    Example:
        @given(data=recurring_create_data())
        def test_create(data):
            RecurringTransactionCreate(**data)
    """
    start_date = draw(st.dates(min_value=date(2020, 1, 1), max_value=date(2030, 12, 31)))
    has_end = draw(st.booleans())
    end_date = start_date + timedelta(days=draw(st.integers(min_value=0, max_value=1000))) if has_end else None

    return {
        "user_id": draw(st.sampled_from(["user-1", "user-2", "5f0c1b7e"])),
        "title": draw(titles()),
        "amount": draw(valid_amounts()),
        "category": draw(st.one_of(st.none(), st.sampled_from(["Жильё", "Связь", "Зарплата"]))),
        "transaction_type": draw(transaction_types()),
        "frequency": draw(frequencies()),
        "start_date": start_date,
        "end_date": end_date,
    }
