"""
Общие функции HTTP слоя: разбор запроса, проверка секрета cron и сериализация.
"""

import hmac
import logging
from datetime import date
from typing import Any, Dict, Optional, Type

from flask import request
from pydantic import BaseModel

from expense_tracker.config import settings
from expense_tracker.utils.exceptions import ValidationError, UnauthorizedError
from expense_tracker.utils.validation import require_user_id

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "on")


def get_json_body() -> Dict[str, Any]:
    """Возвращает JSON тело запроса (пустой словарь, если тела нет)."""
    if not request.data:
        return {}
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Тело запроса должно быть JSON объектом")
    return body


def get_user_id(body: Optional[Dict[str, Any]] = None) -> str:
    """
    Извлекает user_id из тела запроса, а если его там нет, из query string.

    Raises:
        ValidationError: Если ID пользователя не передан
    """
    if body and (body.get("user_id") or body.get("userId")):
        return require_user_id(body)
    return require_user_id(request.args)


def get_date_arg(name: str) -> Optional[date]:
    """Разбирает необязательный query параметр в формате YYYY-MM-DD."""
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise ValidationError(f"Параметр '{name}' должен быть датой в формате YYYY-MM-DD")


def get_bool_arg(name: str, default: bool = False) -> bool:
    raw = request.args.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


def require_cron_secret() -> None:
    """
    Проверяет заголовок Authorization: Bearer <CRON_SECRET>.

    Проверка выполняется только если секрет задан в настройках.

    Raises:
        UnauthorizedError: Если токен отсутствует или не совпадает
    """
    if not settings.cron_secret:
        return

    header = request.headers.get("Authorization", "")
    expected = f"Bearer {settings.cron_secret}"
    if not hmac.compare_digest(header.encode("utf-8"), expected.encode("utf-8")):
        logger.warning(f"Отклонён запрос к {request.path}: неверный секрет cron")
        raise UnauthorizedError("Неверный или отсутствующий токен авторизации")


def serialize(read_model: Type[BaseModel], obj: Any) -> Dict[str, Any]:
    """Преобразует ORM объект в словарь через Pydantic модель чтения."""
    return read_model.model_validate(obj).model_dump()
