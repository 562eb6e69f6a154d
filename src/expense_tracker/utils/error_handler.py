"""
Модуль централизованной обработки ошибок.
Перехватывает исключения, логирует их и превращает в JSON ответы API.
"""

import logging
import traceback
from typing import Any, Dict, Tuple

from flask import Flask, jsonify
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from expense_tracker.utils.exceptions import (
    ExpenseTrackerError,
    ValidationError,
    UnauthorizedError,
    NotFoundError,
    BusinessLogicError,
    DatabaseError,
)

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Внутренняя ошибка сервера"
DATABASE_ERROR_MESSAGE = "Произошла ошибка при работе с базой данных. Попробуйте позже."


class ErrorHandler:
    """
    Класс для централизованной обработки ошибок.
    """

    def handle(self, exception: Exception, context_message: str = "") -> Tuple[Dict[str, Any], int]:
        """
        Обрабатывает возникшее исключение: логирует и формирует ответ клиенту.

        Args:
            exception: Исключение, которое нужно обработать.
            context_message: Дополнительное сообщение о контексте ошибки.

        Returns:
            Пара (тело ответа, HTTP статус)
        """
        log_message = f"{context_message}: {exception}" if context_message else str(exception)

        if self._is_user_error(exception):
            logger.warning(f"User error: {log_message}")
        else:
            logger.error(f"System error: {log_message}\n{traceback.format_exc()}")

        return self._get_payload(exception), self._get_status(exception)

    @staticmethod
    def _is_user_error(exception: Exception) -> bool:
        return isinstance(
            exception,
            (ValidationError, UnauthorizedError, NotFoundError, BusinessLogicError, PydanticValidationError)
        )

    @staticmethod
    def _get_status(exception: Exception) -> int:
        if isinstance(exception, PydanticValidationError):
            return 400
        if isinstance(exception, ExpenseTrackerError):
            return exception.status_code
        return 500

    def _get_payload(self, exception: Exception) -> Dict[str, Any]:
        """Возвращает понятное пользователю тело ответа без внутренних деталей."""
        if isinstance(exception, PydanticValidationError):
            details = [
                {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
                for err in exception.errors()
            ]
            return {"error": "Ошибка ввода", "details": details}
        elif isinstance(exception, (ValidationError, UnauthorizedError, NotFoundError, BusinessLogicError)):
            return {"error": str(exception)}
        elif isinstance(exception, (DatabaseError, SQLAlchemyError)):
            return {"error": DATABASE_ERROR_MESSAGE}
        else:
            return {"error": GENERIC_ERROR_MESSAGE}


def register_error_handlers(app: Flask) -> None:
    """
    Подключает ErrorHandler к Flask приложению.

    Ошибки маршрутизации werkzeug (404/405) отдаются как JSON без логирования трейсбека.
    """
    handler = ErrorHandler()

    @app.errorhandler(HTTPException)
    def _handle_http_exception(e: HTTPException):
        return jsonify({"error": e.description}), e.code

    @app.errorhandler(Exception)
    def _handle_exception(e: Exception):
        payload, status = handler.handle(e, context_message="Ошибка обработки запроса")
        return jsonify(payload), status
