"""
Сервис целей накоплений.
"""

from typing import List
import logging

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from expense_tracker.models.models import SavingsGoalDB, SavingsGoalCreate, SavingsGoalUpdate
from expense_tracker.utils.exceptions import ValidationError, NotFoundError
from expense_tracker.utils.validation import validate_uuid_format

logger = logging.getLogger(__name__)


def create_savings_goal(session: Session, data: SavingsGoalCreate) -> SavingsGoalDB:
    """Создаёт цель накоплений."""
    try:
        goal = SavingsGoalDB(
            user_id=data.user_id,
            goal_name=data.goal_name,
            target_amount=data.target_amount,
            saved_amount=data.saved_amount,
        )
        session.add(goal)
        session.commit()
        session.refresh(goal)

        logger.info(f"Создана цель накоплений ID {goal.id}: '{goal.goal_name}'", extra={"user_id": goal.user_id})
        return goal

    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Ошибка при создании цели накоплений: {e}")
        raise


def get_savings_goal(session: Session, user_id: str, goal_id: str) -> SavingsGoalDB:
    validate_uuid_format(goal_id, "goal_id")

    goal = session.query(SavingsGoalDB).filter_by(id=goal_id, user_id=user_id).first()
    if not goal:
        logger.warning(f"Цель накоплений ID {goal_id} не найдена для пользователя {user_id}")
        raise NotFoundError(f"Цель накоплений с ID {goal_id} не найдена")

    return goal


def get_savings_goals(session: Session, user_id: str) -> List[SavingsGoalDB]:
    return session.query(SavingsGoalDB).filter(
        SavingsGoalDB.user_id == user_id
    ).order_by(SavingsGoalDB.created_at.desc()).all()


def update_savings_goal(
    session: Session,
    user_id: str,
    goal_id: str,
    data: SavingsGoalUpdate
) -> SavingsGoalDB:
    """Частично обновляет цель накоплений."""
    goal = get_savings_goal(session, user_id, goal_id)
    update_data = data.model_dump(exclude_unset=True)

    for key, value in update_data.items():
        if value is None:
            raise ValidationError(f"Поле '{key}' не может быть пустым")

    try:
        for key, value in update_data.items():
            setattr(goal, key, value)

        session.commit()
        session.refresh(goal)

        logger.info(f"Обновлена цель накоплений ID {goal_id}", extra={"user_id": user_id})
        return goal

    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Ошибка при обновлении цели накоплений ID {goal_id}: {e}")
        raise


def delete_savings_goal(session: Session, user_id: str, goal_id: str) -> bool:
    goal = get_savings_goal(session, user_id, goal_id)

    try:
        session.delete(goal)
        session.commit()

        logger.info(f"Удалена цель накоплений ID {goal_id}", extra={"user_id": user_id})
        return True

    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Ошибка при удалении цели накоплений ID {goal_id}: {e}")
        raise
