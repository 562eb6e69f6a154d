"""
Модуль пользовательских исключений приложения.

Каждое исключение несёт HTTP статус, с которым его отдаёт API.
"""


class ExpenseTrackerError(Exception):
    """Базовый класс для всех исключений приложения."""
    status_code = 500


class ValidationError(ExpenseTrackerError):
    """Исключение при ошибке валидации данных (пользовательский ввод)."""
    status_code = 400


class UnauthorizedError(ExpenseTrackerError):
    """Исключение при неверном или отсутствующем секрете cron-эндпоинта."""
    status_code = 401


class NotFoundError(ExpenseTrackerError):
    """Запись не найдена или принадлежит другому пользователю."""
    status_code = 404


class BusinessLogicError(ExpenseTrackerError):
    """Исключение при нарушении бизнес-правил (например, активация истёкшего расписания)."""
    status_code = 409


class DatabaseError(ExpenseTrackerError):
    """Исключение при ошибках работы с базой данных."""
    status_code = 500
