"""
Сервис для работы с транзакциями.

Содержит функции для:
- Создания, чтения, обновления и удаления транзакций пользователя
- Фильтрации по периоду, типу, категории и шаблону повторения
- Подсчёта доходов, расходов и баланса за период
- Поиска по названию, категории и типу
"""

from datetime import date
from decimal import Decimal
from calendar import monthrange
from typing import Dict, List, Optional
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from expense_tracker.models.models import TransactionDB, TransactionCreate, TransactionUpdate
from expense_tracker.models.enums import TransactionType
from expense_tracker.utils.exceptions import ValidationError, NotFoundError
from expense_tracker.utils.validation import validate_uuid_format

# Настройка логирования
logger = logging.getLogger(__name__)

SEARCH_DEFAULT_LIMIT = 5
SEARCH_MAX_LIMIT = 50

TRANSACTION_TYPE_LABELS = {
    TransactionType.INCOME: "доход",
    TransactionType.EXPENSE: "расход",
}


def create_transaction(session: Session, data: TransactionCreate) -> TransactionDB:
    """
    Создаёт новую транзакцию.

    Args:
        session: Активная сессия БД
        data: Данные для создания транзакции (Pydantic модель)

    Returns:
        Созданный объект TransactionDB

    Raises:
        SQLAlchemyError: При ошибках работы с БД
    """
    try:
        transaction = TransactionDB(
            user_id=data.user_id,
            title=data.title,
            amount=data.amount,
            category=data.category,
            transaction_type=data.transaction_type,
            transaction_date=data.transaction_date,
        )
        session.add(transaction)
        session.commit()
        session.refresh(transaction)

        logger.info(
            f"Создана транзакция ID {transaction.id}: {transaction.transaction_type.value}, "
            f"{transaction.amount}, дата {transaction.transaction_date}",
            extra={"user_id": transaction.user_id}
        )
        return transaction

    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Ошибка при создании транзакции: {e}")
        raise


def get_transaction(session: Session, user_id: str, transaction_id: str) -> TransactionDB:
    """
    Получает транзакцию пользователя по ID.

    Raises:
        NotFoundError: Если транзакция не найдена у пользователя
    """
    validate_uuid_format(transaction_id, "transaction_id")

    transaction = session.query(TransactionDB).filter_by(
        id=transaction_id,
        user_id=user_id
    ).first()

    if not transaction:
        logger.warning(f"Транзакция ID {transaction_id} не найдена для пользователя {user_id}")
        raise NotFoundError(f"Транзакция с ID {transaction_id} не найдена")

    return transaction


def get_transactions(
    session: Session,
    user_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    transaction_type: Optional[TransactionType] = None,
    category: Optional[str] = None,
    recurring_transaction_id: Optional[str] = None,
    limit: Optional[int] = None
) -> List[TransactionDB]:
    """
    Получает транзакции пользователя с фильтрами.

    Сортировка: по дате транзакции (новые первыми), затем по времени создания.

    Raises:
        ValidationError: Если start_date позже end_date или limit не положителен
    """
    if start_date and end_date and start_date > end_date:
        error_msg = f"Начальная дата ({start_date}) не может быть позже конечной ({end_date})"
        logger.error(error_msg)
        raise ValidationError(error_msg)

    if limit is not None and limit <= 0:
        raise ValidationError("Параметр limit должен быть положительным")

    try:
        query = session.query(TransactionDB).filter(TransactionDB.user_id == user_id)

        if start_date:
            query = query.filter(TransactionDB.transaction_date >= start_date)
        if end_date:
            query = query.filter(TransactionDB.transaction_date <= end_date)
        if transaction_type:
            query = query.filter(TransactionDB.transaction_type == transaction_type)
        if category:
            query = query.filter(TransactionDB.category == category)
        if recurring_transaction_id:
            query = query.filter(TransactionDB.recurring_transaction_id == recurring_transaction_id)

        query = query.order_by(
            TransactionDB.transaction_date.desc(),
            TransactionDB.created_at.desc()
        )
        if limit:
            query = query.limit(limit)

        transactions = query.all()
        logger.debug(f"Найдено {len(transactions)} транзакций пользователя {user_id}")
        return transactions

    except SQLAlchemyError as e:
        logger.error(f"Ошибка при получении транзакций: {e}")
        raise


def search_transactions(
    session: Session,
    user_id: str,
    query: str,
    limit: int = SEARCH_DEFAULT_LIMIT
) -> List[TransactionDB]:
    """
    Ищет транзакции пользователя по подстроке без учёта регистра.

    Совпадение ищется в названии, категории и типе (значение enum или
    русское название: "доход", "расход"). Результат отсортирован от новых
    к старым и ограничен limit записями.

    Регистр сравнивается через str.casefold(): LIKE в SQLite не понижает кириллицу.

    Args:
        session: Активная сессия БД
        user_id: Владелец транзакций
        query: Строка поиска; пустая строка даёт пустой результат
        limit: Максимум результатов (1..SEARCH_MAX_LIMIT)

    Raises:
        ValidationError: Если limit вне допустимого диапазона

    Example:
        >>> with get_db_session() as session:
        ...     [t.title for t in search_transactions(session, "u-1", "аренд")]
        ['Аренда', 'Аренда']
    """
    if limit <= 0 or limit > SEARCH_MAX_LIMIT:
        raise ValidationError(f"Параметр limit должен быть от 1 до {SEARCH_MAX_LIMIT}")

    term = (query or "").strip().casefold()
    if not term:
        return []

    try:
        candidates = session.query(TransactionDB).filter(
            TransactionDB.user_id == user_id
        ).order_by(
            TransactionDB.transaction_date.desc(),
            TransactionDB.created_at.desc()
        ).all()

        found = []
        for transaction in candidates:
            haystack = (
                transaction.title,
                transaction.category or "",
                transaction.transaction_type.value,
                TRANSACTION_TYPE_LABELS[transaction.transaction_type],
            )
            if any(term in field.casefold() for field in haystack):
                found.append(transaction)
                if len(found) >= limit:
                    break

        logger.debug(f"Поиск '{term}' для пользователя {user_id}: найдено {len(found)}")
        return found

    except SQLAlchemyError as e:
        logger.error(f"Ошибка при поиске транзакций: {e}")
        raise


def update_transaction(
    session: Session,
    user_id: str,
    transaction_id: str,
    data: TransactionUpdate
) -> TransactionDB:
    """
    Обновляет существующую транзакцию.

    Обновляются только явно переданные поля.

    Raises:
        NotFoundError: Если транзакция не найдена у пользователя
        ValidationError: Если обязательное поле передано пустым
        SQLAlchemyError: При ошибках работы с БД
    """
    transaction = get_transaction(session, user_id, transaction_id)
    update_data = data.model_dump(exclude_unset=True)

    for required in ("title", "amount", "transaction_type", "transaction_date"):
        if required in update_data and update_data[required] is None:
            raise ValidationError(f"Поле '{required}' не может быть пустым")

    try:
        for key, value in update_data.items():
            setattr(transaction, key, value)

        session.commit()
        session.refresh(transaction)

        logger.info(f"Обновлена транзакция ID {transaction_id}", extra={"user_id": user_id})
        return transaction

    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Ошибка при обновлении транзакции ID {transaction_id}: {e}")
        raise


def delete_transaction(session: Session, user_id: str, transaction_id: str) -> bool:
    """
    Удаляет транзакцию.

    Удаление сгенерированной транзакции не меняет курсор шаблона:
    вхождение повторно не создаётся.
    """
    transaction = get_transaction(session, user_id, transaction_id)

    try:
        session.delete(transaction)
        session.commit()

        logger.info(f"Удалена транзакция ID {transaction_id}", extra={"user_id": user_id})
        return True

    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Ошибка при удалении транзакции ID {transaction_id}: {e}")
        raise


def get_period_totals(
    session: Session,
    user_id: str,
    start_date: date,
    end_date: date
) -> Dict[str, Decimal]:
    """
    Подсчитывает доходы, расходы и баланс пользователя за период (включительно).

    Returns:
        Словарь {"income": ..., "expense": ..., "balance": ...}

    Example:
        >>> totals = get_period_totals(session, "u-1", date(2024, 1, 1), date(2024, 1, 31))
        >>> totals["balance"] == totals["income"] - totals["expense"]
        True
    """
    if start_date > end_date:
        error_msg = f"Начальная дата ({start_date}) не может быть позже конечной ({end_date})"
        logger.error(error_msg)
        raise ValidationError(error_msg)

    try:
        rows = session.query(
            TransactionDB.transaction_type,
            func.coalesce(func.sum(TransactionDB.amount), 0)
        ).filter(
            TransactionDB.user_id == user_id,
            TransactionDB.transaction_date >= start_date,
            TransactionDB.transaction_date <= end_date
        ).group_by(TransactionDB.transaction_type).all()

    except SQLAlchemyError as e:
        logger.error(f"Ошибка при подсчёте итогов за период {start_date} - {end_date}: {e}")
        raise

    # SQLite суммирует Numeric как float
    sums = {t_type: Decimal(str(total)).quantize(Decimal('0.01')) for t_type, total in rows}
    income = sums.get(TransactionType.INCOME, Decimal('0'))
    expense = sums.get(TransactionType.EXPENSE, Decimal('0'))

    return {
        "income": income,
        "expense": expense,
        "balance": income - expense,
    }


def get_month_bounds(target_date: date) -> tuple:
    """Возвращает первый и последний день месяца для даты."""
    last_day = monthrange(target_date.year, target_date.month)[1]
    return target_date.replace(day=1), target_date.replace(day=last_day)


def get_monthly_expense_total(session: Session, user_id: str, target_date: date) -> Decimal:
    """Сумма расходов пользователя за календарный месяц, содержащий target_date."""
    month_start, month_end = get_month_bounds(target_date)
    return get_period_totals(session, user_id, month_start, month_end)["expense"]
