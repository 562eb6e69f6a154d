import uuid
import logging
from typing import Any, Mapping, Optional

from expense_tracker.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)


def validate_uuid_format(id_value: str, field_name: str = "ID") -> None:
    """
    Валидация формата UUID.

    Args:
        id_value: Значение для проверки
        field_name: Название поля для сообщения об ошибке

    Raises:
        ValidationError: Если формат невалидный
    """
    try:
        uuid.UUID(str(id_value))
    except ValueError:
        error_msg = f'Невалидный формат {field_name}: {id_value}. Ожидается UUID формата: 550e8400-e29b-41d4-a716-446655440000'
        logger.warning(error_msg)
        raise ValidationError(error_msg)


def require_user_id(source: Optional[Mapping[str, Any]]) -> str:
    """
    Извлекает идентификатор пользователя из параметров запроса или тела.

    Принимает как user_id, так и userId.

    Raises:
        ValidationError: Если идентификатор не передан
    """
    value = None
    if source:
        value = source.get("user_id") or source.get("userId")
    if value is None or not str(value).strip():
        raise ValidationError("Не указан ID пользователя")
    return str(value).strip()
