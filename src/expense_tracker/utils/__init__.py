"""Утилиты приложения."""

from expense_tracker.utils.logger import setup_logging, get_logger
from expense_tracker.utils.error_handler import ErrorHandler, register_error_handlers
from expense_tracker.utils.exceptions import (
    ExpenseTrackerError,
    ValidationError,
    UnauthorizedError,
    NotFoundError,
    BusinessLogicError,
    DatabaseError,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "ErrorHandler",
    "register_error_handlers",
    "ExpenseTrackerError",
    "ValidationError",
    "UnauthorizedError",
    "NotFoundError",
    "BusinessLogicError",
    "DatabaseError",
]
