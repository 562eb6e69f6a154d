"""
Модуль перечислений (enums) для Expense Tracker.

Содержит все Enum классы, используемые в моделях данных.
"""

from enum import Enum


class TransactionType(str, Enum):
    """
    Тип финансовой транзакции.

    Attributes:
        INCOME: Доход (поступление средств)
        EXPENSE: Расход (трата средств)
    """
    INCOME = "income"
    EXPENSE = "expense"


class Frequency(str, Enum):
    """
    Периодичность повторяющейся транзакции.

    Attributes:
        DAILY: Ежедневно
        WEEKLY: Еженедельно
        MONTHLY: Ежемесячно
        YEARLY: Ежегодно
    """
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class NotificationType(str, Enum):
    """
    Уровень важности уведомления.

    Attributes:
        INFO: Информационное
        SUCCESS: Успешное действие
        WARNING: Предупреждение
        ERROR: Ошибка/превышение лимита
    """
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class BudgetStyle(str, Enum):
    """
    Стиль планирования бюджета, выбранный при первичной настройке.

    Attributes:
        CONSERVATIVE: Осторожный (больше откладывать)
        BALANCED: Сбалансированный
        AGGRESSIVE: Свободный (меньше ограничений по тратам)
    """
    CONSERVATIVE = "conservative"
    BALANCED = "balanced"
    AGGRESSIVE = "aggressive"
