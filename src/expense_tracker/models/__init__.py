"""Модели данных Expense Tracker."""

from expense_tracker.models.enums import TransactionType, Frequency, NotificationType, BudgetStyle
from expense_tracker.models.models import (
    Base,
    RecurringTransactionDB,
    TransactionDB,
    NotificationDB,
    SavingsGoalDB,
    UserPreferencesDB,
    RecurringTransactionCreate,
    RecurringTransactionUpdate,
    RecurringTransaction,
    TransactionCreate,
    TransactionUpdate,
    Transaction,
    NotificationCreate,
    Notification,
    SavingsGoalCreate,
    SavingsGoalUpdate,
    SavingsGoal,
    UserPreferencesUpdate,
    UserPreferences,
)

__all__ = [
    "TransactionType",
    "Frequency",
    "NotificationType",
    "BudgetStyle",
    "Base",
    "RecurringTransactionDB",
    "TransactionDB",
    "NotificationDB",
    "SavingsGoalDB",
    "UserPreferencesDB",
    "RecurringTransactionCreate",
    "RecurringTransactionUpdate",
    "RecurringTransaction",
    "TransactionCreate",
    "TransactionUpdate",
    "Transaction",
    "NotificationCreate",
    "Notification",
    "SavingsGoalCreate",
    "SavingsGoalUpdate",
    "SavingsGoal",
    "UserPreferencesUpdate",
    "UserPreferences",
]
