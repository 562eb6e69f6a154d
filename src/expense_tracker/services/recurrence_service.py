"""
Сервис вычисления дат для повторяющихся транзакций.

Содержит функции для:
- Сдвига даты на N календарных месяцев с ограничением по последнему дню месяца
- Вычисления следующей даты вхождения по периодичности
"""

import logging
from datetime import date, timedelta
from calendar import monthrange
from typing import Union

from expense_tracker.models.enums import Frequency
from expense_tracker.utils.exceptions import ValidationError

# Настройка логирования
logger = logging.getLogger(__name__)


def add_months(current_date: date, months: int) -> date:
    """
    Сдвигает дату на указанное число календарных месяцев.

    Если в целевом месяце меньше дней, чем день исходной даты,
    результат ограничивается последним днём целевого месяца.

    Example:
        >>> add_months(date(2024, 1, 31), 1)
        datetime.date(2024, 2, 29)
        >>> add_months(date(2024, 2, 29), 12)
        datetime.date(2025, 2, 28)
    """
    month_index = current_date.month - 1 + months
    year = current_date.year + month_index // 12
    month = month_index % 12 + 1

    # Граничный случай: 31 число или 29 февраля
    max_day_in_month = monthrange(year, month)[1]
    day = min(current_date.day, max_day_in_month)

    return date(year, month, day)


def parse_frequency(frequency: Union[Frequency, str]) -> Frequency:
    """
    Приводит значение к Frequency.

    Raises:
        ValidationError: Если периодичность неизвестна
    """
    if isinstance(frequency, Frequency):
        return frequency
    try:
        return Frequency(frequency)
    except ValueError:
        allowed = ", ".join(f.value for f in Frequency)
        raise ValidationError(f"Неизвестная периодичность '{frequency}'. Допустимые значения: {allowed}")


def calculate_next_due_date(frequency: Union[Frequency, str], current_date: date) -> date:
    """
    Вычисляет дату следующего вхождения повторяющейся транзакции.

    Чистая функция: результат зависит только от аргументов и всегда
    строго позже current_date.

    Args:
        frequency: Периодичность (daily, weekly, monthly, yearly)
        current_date: Дата текущего вхождения (или start_date)

    Returns:
        Дата следующего вхождения

    Raises:
        ValidationError: Если периодичность неизвестна

    Example:
        >>> calculate_next_due_date(Frequency.WEEKLY, date(2024, 1, 31))
        datetime.date(2024, 2, 7)
        >>> calculate_next_due_date("monthly", date(2024, 1, 31))
        datetime.date(2024, 2, 29)
    """
    frequency = parse_frequency(frequency)

    if frequency == Frequency.DAILY:
        return current_date + timedelta(days=1)

    elif frequency == Frequency.WEEKLY:
        return current_date + timedelta(weeks=1)

    elif frequency == Frequency.MONTHLY:
        return add_months(current_date, 1)

    # Frequency.YEARLY: 29 февраля в невисокосном году -> 28 февраля
    return add_months(current_date, 12)
