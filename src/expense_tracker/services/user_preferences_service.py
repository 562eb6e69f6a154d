"""
Сервис предпочтений пользователя (первичная настройка).

Пользователь без сохранённой записи получает значения по умолчанию;
запись создаётся при первом обновлении. Настройка считается завершённой,
когда задано отображаемое имя.
"""

from typing import Any, Dict
import logging

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from expense_tracker.models.models import UserPreferencesDB, UserPreferencesUpdate
from expense_tracker.models.enums import BudgetStyle
from expense_tracker.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_PREFERENCES: Dict[str, Any] = {
    "currency": "RUB",
    "language": "ru",
    "timezone": "Europe/Moscow",
    "budget_style": BudgetStyle.BALANCED,
    "default_savings_percentage": 20,
    "selected_categories": [
        "Продукты", "Транспорт", "Покупки", "Развлечения", "Коммунальные услуги", "Здоровье",
    ],
    "email_notifications": False,
}

SETUP_TOTAL_STEPS = 5


def _default_preferences(user_id: str) -> UserPreferencesDB:
    """Несохранённый объект со значениями по умолчанию."""
    values = dict(DEFAULT_PREFERENCES, selected_categories=list(DEFAULT_PREFERENCES["selected_categories"]))
    return UserPreferencesDB(user_id=user_id, display_name=None, **values)


def _find_preferences(session: Session, user_id: str):
    return session.query(UserPreferencesDB).filter_by(user_id=user_id).first()


def get_user_preferences(session: Session, user_id: str) -> UserPreferencesDB:
    """
    Возвращает предпочтения пользователя или значения по умолчанию.

    Значения по умолчанию не сохраняются в БД.
    """
    try:
        preferences = _find_preferences(session, user_id)
    except SQLAlchemyError as e:
        logger.error(f"Ошибка при получении предпочтений пользователя {user_id}: {e}")
        raise

    if preferences is None:
        logger.debug(f"Предпочтения пользователя {user_id} не найдены, используются значения по умолчанию")
        return _default_preferences(user_id)
    return preferences


def update_user_preferences(
    session: Session,
    user_id: str,
    data: UserPreferencesUpdate
) -> UserPreferencesDB:
    """
    Частично обновляет предпочтения, создавая запись при первом обращении.

    Raises:
        ValidationError: Если обязательное поле передано пустым
        SQLAlchemyError: При ошибках работы с БД
    """
    update_data = data.model_dump(exclude_unset=True)

    for key, value in update_data.items():
        if value is None and key != "display_name":
            raise ValidationError(f"Поле '{key}' не может быть пустым")

    try:
        preferences = _find_preferences(session, user_id)
        if preferences is None:
            preferences = _default_preferences(user_id)
            session.add(preferences)

        for key, value in update_data.items():
            setattr(preferences, key, value)

        session.commit()
        session.refresh(preferences)

        logger.info(
            f"Обновлены предпочтения пользователя {user_id}: {', '.join(sorted(update_data)) or 'без изменений'}",
            extra={"user_id": user_id}
        )
        return preferences

    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Ошибка при обновлении предпочтений пользователя {user_id}: {e}")
        raise


def get_setup_progress(session: Session, user_id: str) -> Dict[str, Any]:
    """
    Прогресс первичной настройки.

    Шаги: профиль (имя), валюта, часовой пояс, категории, безопасность
    (необязательный шаг, всегда засчитывается).

    Returns:
        {"completed": bool, "steps_completed": int, "total_steps": int}
    """
    preferences = get_user_preferences(session, user_id)
    steps = [
        bool(preferences.display_name),
        bool(preferences.currency),
        bool(preferences.timezone),
        bool(preferences.selected_categories),
        True,
    ]
    return {
        "completed": steps[0],
        "steps_completed": sum(steps),
        "total_steps": SETUP_TOTAL_STEPS,
    }


def reset_setup(session: Session, user_id: str) -> UserPreferencesDB:
    """
    Сбрасывает первичную настройку: очищает имя и отключает почтовые уведомления.

    Остальные предпочтения сохраняются. Для пользователя без записи
    ничего не меняется.
    """
    preferences = _find_preferences(session, user_id)
    if preferences is None:
        logger.debug(f"Сброс настройки пользователя {user_id}: сохранённых предпочтений нет")
        return _default_preferences(user_id)

    try:
        preferences.display_name = None
        preferences.email_notifications = False
        session.commit()
        session.refresh(preferences)

        logger.info(f"Сброшена первичная настройка пользователя {user_id}", extra={"user_id": user_id})
        return preferences

    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Ошибка при сбросе настройки пользователя {user_id}: {e}")
        raise
