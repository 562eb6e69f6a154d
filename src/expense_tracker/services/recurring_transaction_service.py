"""
Сервис управления повторяющимися транзакциями.

Предоставляет функции для работы с повторяющимися транзакциями:
- Создание, чтение, обновление, деактивация и удаление (с фильтрацией по владельцу)
- Выборка записей, срок которых наступил
- Цикл генерации: материализация наступивших вхождений в транзакции
  со сдвигом курсора next_due_date

Каждое вхождение обрабатывается одной транзакцией БД: условный UPDATE
курсора (compare-and-swap по next_due_date) и INSERT сгенерированной
транзакции фиксируются вместе или не фиксируются вовсе.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from expense_tracker.config import settings
from expense_tracker.models.models import (
    RecurringTransactionDB,
    RecurringTransactionCreate,
    RecurringTransactionUpdate,
    TransactionDB,
)
from expense_tracker.models.enums import Frequency, TransactionType
from expense_tracker.services.recurrence_service import calculate_next_due_date
from expense_tracker.utils.exceptions import (
    ExpenseTrackerError,
    ValidationError,
    NotFoundError,
    BusinessLogicError,
)
from expense_tracker.utils.validation import validate_uuid_format

# Настройка логирования
logger = logging.getLogger(__name__)


@dataclass
class GenerationFailure:
    """Ошибка генерации для одной повторяющейся транзакции."""
    recurring_transaction_id: str
    error: str


@dataclass
class GenerationSummary:
    """
    Итог одного запуска цикла генерации.

    Attributes:
        run_date: Дата, на которую выполнялась генерация
        generated_transaction_ids: ID созданных транзакций
        succeeded: ID шаблонов, по которым создано хотя бы одно вхождение
            (в том числе если затем генерация по шаблону прервалась ошибкой)
        failed: Шаблоны, генерация которых завершилась ошибкой
        skipped: Шаблоны, вхождение которых уже забрал параллельный запуск
        deactivated: Шаблоны, деактивированные после выхода за end_date
        processed_count: Сколько шаблонов было обработано
        timed_out: Запуск остановлен по превышению лимита времени
    """
    run_date: date
    generated_transaction_ids: List[str] = field(default_factory=list)
    succeeded: List[str] = field(default_factory=list)
    failed: List[GenerationFailure] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    deactivated: List[str] = field(default_factory=list)
    processed_count: int = 0
    timed_out: bool = False

    @property
    def generated_count(self) -> int:
        return len(self.generated_transaction_ids)

    @property
    def success(self) -> bool:
        return not self.failed and not self.timed_out

    def to_dict(self) -> Dict[str, Any]:
        """Сериализация для JSON ответа cron/trigger эндпоинтов."""
        return {
            "success": self.success,
            "runDate": self.run_date.isoformat(),
            "generatedCount": self.generated_count,
            "processedCount": self.processed_count,
            "failedCount": len(self.failed),
            "skippedCount": len(self.skipped),
            "deactivatedCount": len(self.deactivated),
            "timedOut": self.timed_out,
            "generatedTransactionIds": list(self.generated_transaction_ids),
            "failures": [
                {"recurringTransactionId": f.recurring_transaction_id, "error": f.error}
                for f in self.failed
            ],
        }


@dataclass(frozen=True)
class _Template:
    """Снимок полей шаблона, копируемых в сгенерированную транзакцию."""
    id: str
    user_id: str
    title: str
    amount: Decimal
    category: Optional[str]
    transaction_type: TransactionType
    frequency: Frequency
    end_date: Optional[date]
    next_due_date: date


# =============================================================================
# CRUD
# =============================================================================

def create_recurring_transaction(
    session: Session,
    data: RecurringTransactionCreate
) -> RecurringTransactionDB:
    """
    Создаёт повторяющуюся транзакцию.

    Курсор инициализируется как calculate_next_due_date(frequency, start_date).
    Если курсор сразу выходит за end_date, запись создаётся неактивной.

    Args:
        session: Активная сессия БД
        data: Данные для создания (Pydantic модель)

    Returns:
        Созданный объект RecurringTransactionDB

    Raises:
        SQLAlchemyError: При ошибках работы с БД

    Example:
        >>> with get_db_session() as session:
        ...     rt = create_recurring_transaction(session, RecurringTransactionCreate(
        ...         user_id="u-1", title="Аренда", amount=Decimal("30000"),
        ...         transaction_type=TransactionType.EXPENSE,
        ...         frequency=Frequency.MONTHLY, start_date=date(2024, 1, 15)
        ...     ))
        ...     rt.next_due_date
        datetime.date(2024, 2, 15)
    """
    next_due_date = calculate_next_due_date(data.frequency, data.start_date)
    is_active = data.end_date is None or next_due_date <= data.end_date

    try:
        record = RecurringTransactionDB(
            user_id=data.user_id,
            title=data.title,
            amount=data.amount,
            category=data.category,
            transaction_type=data.transaction_type,
            frequency=data.frequency,
            start_date=data.start_date,
            end_date=data.end_date,
            next_due_date=next_due_date,
            is_active=is_active,
        )
        session.add(record)
        session.commit()
        session.refresh(record)

        logger.info(
            f"Создана повторяющаяся транзакция ID {record.id}: '{record.title}', "
            f"{record.amount}, {record.frequency.value}, следующая дата {record.next_due_date}",
            extra={"user_id": record.user_id}
        )
        return record

    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Ошибка при создании повторяющейся транзакции: {e}")
        raise


def get_recurring_transaction(
    session: Session,
    user_id: str,
    recurring_id: str
) -> RecurringTransactionDB:
    """
    Получает повторяющуюся транзакцию владельца.

    Raises:
        ValidationError: Если ID не в формате UUID
        NotFoundError: Если запись не существует или принадлежит другому пользователю
    """
    validate_uuid_format(recurring_id, "recurring_transaction_id")

    record = session.query(RecurringTransactionDB).filter_by(
        id=recurring_id,
        user_id=user_id
    ).first()

    if not record:
        # Не раскрываем, существует ли запись у другого пользователя
        logger.warning(f"Повторяющаяся транзакция ID {recurring_id} не найдена для пользователя {user_id}")
        raise NotFoundError(f"Повторяющаяся транзакция с ID {recurring_id} не найдена")

    return record


def get_recurring_transactions(
    session: Session,
    user_id: str,
    active_only: bool = False
) -> List[RecurringTransactionDB]:
    """
    Получает повторяющиеся транзакции пользователя, отсортированные по next_due_date.
    """
    try:
        query = session.query(RecurringTransactionDB).filter(
            RecurringTransactionDB.user_id == user_id
        )
        if active_only:
            query = query.filter(RecurringTransactionDB.is_active.is_(True))

        records = query.order_by(
            RecurringTransactionDB.next_due_date,
            RecurringTransactionDB.created_at
        ).all()

        logger.debug(f"Найдено {len(records)} повторяющихся транзакций пользователя {user_id}")
        return records

    except SQLAlchemyError as e:
        logger.error(f"Ошибка при получении повторяющихся транзакций: {e}")
        raise


def get_last_generated_date(session: Session, recurring_id: str) -> Optional[date]:
    """Дата последнего материализованного вхождения (None, если генераций не было)."""
    return session.query(func.max(TransactionDB.transaction_date)).filter(
        TransactionDB.recurring_transaction_id == recurring_id
    ).scalar()


def update_recurring_transaction(
    session: Session,
    user_id: str,
    recurring_id: str,
    data: RecurringTransactionUpdate,
    today: Optional[date] = None
) -> RecurringTransactionDB:
    """
    Частично обновляет повторяющуюся транзакцию.

    Правила для курсора:
    - при смене frequency или start_date next_due_date пересчитывается от даты
      последнего сгенерированного вхождения (или от start_date, если генераций не было);
    - при активации приостановленной записи курсор переносится на первое
      вхождение не раньше today, пропущенные за время паузы не генерируются;
    - если next_due_date оказывается позже end_date, запись деактивируется;
    - явная активация записи, курсор которой уже позже end_date, запрещена.

    Raises:
        NotFoundError: Если запись не найдена у пользователя
        ValidationError: Если end_date раньше start_date или обязательное поле обнулено
        BusinessLogicError: При попытке активировать истёкшее расписание
        SQLAlchemyError: При ошибках работы с БД
    """
    record = get_recurring_transaction(session, user_id, recurring_id)
    fields = data.model_fields_set

    for required in ("title", "amount", "transaction_type", "frequency", "start_date", "is_active"):
        if required in fields and getattr(data, required) is None:
            raise ValidationError(f"Поле '{required}' не может быть пустым")

    new_start = data.start_date if "start_date" in fields else record.start_date
    new_end = data.end_date if "end_date" in fields else record.end_date
    new_frequency = data.frequency if "frequency" in fields else record.frequency

    if new_end is not None and new_end < new_start:
        raise ValidationError("Дата окончания не может быть раньше даты начала")

    try:
        if "title" in fields:
            record.title = data.title
        if "amount" in fields:
            record.amount = data.amount
        if "category" in fields:
            record.category = data.category
        if "transaction_type" in fields:
            record.transaction_type = data.transaction_type

        schedule_changed = (
            new_frequency != record.frequency or new_start != record.start_date
        )
        record.frequency = new_frequency
        record.start_date = new_start
        record.end_date = new_end

        if schedule_changed:
            anchor = get_last_generated_date(session, record.id) or new_start
            record.next_due_date = calculate_next_due_date(new_frequency, anchor)
            logger.debug(f"Курсор ID {record.id} пересчитан от {anchor}: {record.next_due_date}")

        if data.is_active and not record.is_active:
            today = today or date.today()
            cursor = record.next_due_date
            while cursor < today:
                cursor = calculate_next_due_date(new_frequency, cursor)
            if cursor != record.next_due_date:
                logger.info(
                    f"Курсор ID {record.id} перенесён при активации: "
                    f"{record.next_due_date} -> {cursor}"
                )
                record.next_due_date = cursor

        expired = new_end is not None and record.next_due_date > new_end
        if "is_active" in fields:
            if data.is_active and expired:
                raise BusinessLogicError(
                    "Нельзя активировать повторяющуюся транзакцию: "
                    f"следующая дата {record.next_due_date} позже даты окончания {new_end}"
                )
            record.is_active = data.is_active
        elif expired:
            record.is_active = False

        session.commit()
        session.refresh(record)

        logger.info(f"Обновлена повторяющаяся транзакция ID {recurring_id}", extra={"user_id": user_id})
        return record

    except BusinessLogicError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Ошибка при обновлении повторяющейся транзакции ID {recurring_id}: {e}")
        raise


def deactivate_recurring_transaction(
    session: Session,
    user_id: str,
    recurring_id: str
) -> RecurringTransactionDB:
    """
    Деактивирует повторяющуюся транзакцию (прекращает генерацию вхождений).

    История сгенерированных транзакций сохраняется.
    """
    record = get_recurring_transaction(session, user_id, recurring_id)

    try:
        record.is_active = False
        session.commit()
        session.refresh(record)

        logger.info(f"Деактивирована повторяющаяся транзакция ID {recurring_id}", extra={"user_id": user_id})
        return record

    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Ошибка при деактивации повторяющейся транзакции ID {recurring_id}: {e}")
        raise


def delete_recurring_transaction(
    session: Session,
    user_id: str,
    recurring_id: str
) -> bool:
    """
    Удаляет повторяющуюся транзакцию.

    Сгенерированные транзакции сохраняются, ссылка на шаблон у них очищается.
    """
    record = get_recurring_transaction(session, user_id, recurring_id)

    try:
        detached = session.query(TransactionDB).filter(
            TransactionDB.recurring_transaction_id == recurring_id
        ).update({TransactionDB.recurring_transaction_id: None}, synchronize_session=False)

        session.delete(record)
        session.commit()

        logger.info(
            f"Удалена повторяющаяся транзакция ID {recurring_id}, "
            f"отвязано {detached} сгенерированных транзакций",
            extra={"user_id": user_id}
        )
        return True

    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Ошибка при удалении повторяющейся транзакции ID {recurring_id}: {e}")
        raise


# =============================================================================
# Цикл генерации
# =============================================================================

def get_due_recurring_transactions(session: Session, today: date) -> List[RecurringTransactionDB]:
    """
    Выбирает активные записи, срок которых наступил.

    Условие: is_active и next_due_date <= today. Записи, у которых end_date
    уже прошёл, тоже попадают в выборку: вхождения до end_date включительно
    досоздаются, после чего запись деактивируется.
    """
    return session.query(RecurringTransactionDB).filter(
        RecurringTransactionDB.is_active.is_(True),
        RecurringTransactionDB.next_due_date <= today
    ).order_by(
        RecurringTransactionDB.next_due_date,
        RecurringTransactionDB.id
    ).all()


def _claim_occurrence(
    session: Session,
    recurring_id: str,
    expected_due: date,
    new_due: date,
    still_active: bool
) -> bool:
    """
    Атомарно забирает вхождение и сдвигает курсор.

    UPDATE срабатывает только если курсор в БД всё ещё равен expected_due
    и запись активна. Возвращает False, если вхождение уже забрал другой запуск.
    """
    stmt = (
        update(RecurringTransactionDB)
        .where(
            RecurringTransactionDB.id == recurring_id,
            RecurringTransactionDB.next_due_date == expected_due,
            RecurringTransactionDB.is_active.is_(True)
        )
        .values(next_due_date=new_due, is_active=still_active)
        .execution_options(synchronize_session=False)
    )
    result = session.execute(stmt)
    return result.rowcount == 1


def _materialize_occurrence(
    session: Session,
    template: _Template,
    occurrence_date: date
) -> TransactionDB:
    """Создаёт транзакцию для вхождения (без фиксации)."""
    transaction = TransactionDB(
        user_id=template.user_id,
        title=template.title,
        amount=template.amount,
        category=template.category,
        transaction_type=template.transaction_type,
        transaction_date=occurrence_date,
        recurring_transaction_id=template.id,
    )
    session.add(transaction)
    session.flush()
    return transaction


def _generate_for_record(
    session: Session,
    template: _Template,
    today: date,
    summary: GenerationSummary,
    max_occurrences: int
) -> None:
    """
    Материализует все наступившие вхождения одного шаблона.

    Каждое вхождение фиксируется отдельно; ошибка откатывает только текущее
    вхождение и прекращает обработку этого шаблона. Уже зафиксированные
    вхождения остаются, и шаблон попадает в succeeded даже при последующей ошибке.
    """
    cursor = template.next_due_date
    active = True
    produced = 0

    try:
        while active and cursor <= today and produced < max_occurrences:
            if template.end_date is not None and cursor > template.end_date:
                # Курсор уже за end_date: только деактивация
                new_due, still_active, materialize = cursor, False, False
            else:
                new_due = calculate_next_due_date(template.frequency, cursor)
                still_active = template.end_date is None or new_due <= template.end_date
                materialize = True

            if not _claim_occurrence(session, template.id, cursor, new_due, still_active):
                session.rollback()
                logger.warning(
                    f"Вхождение {cursor} шаблона ID {template.id} уже обработано параллельным запуском"
                )
                summary.skipped.append(template.id)
                break

            transaction_id = None
            if materialize:
                transaction = _materialize_occurrence(session, template, cursor)
                transaction_id = transaction.id
            session.commit()

            if transaction_id is not None:
                summary.generated_transaction_ids.append(transaction_id)
                produced += 1
                logger.debug(f"Сгенерирована транзакция ID {transaction_id} от {cursor} для шаблона ID {template.id}")

            cursor = new_due
            active = still_active
    finally:
        if produced:
            summary.succeeded.append(template.id)

    if not active:
        summary.deactivated.append(template.id)
        logger.info(f"Повторяющаяся транзакция ID {template.id} деактивирована: достигнута дата окончания")
    if active and produced >= max_occurrences and cursor <= today:
        logger.warning(
            f"Шаблон ID {template.id}: достигнут лимит {max_occurrences} вхождений за запуск, "
            f"оставшиеся будут сгенерированы при следующем запуске"
        )


def generate_recurring_transactions(
    session: Session,
    today: Optional[date] = None,
    time_budget: Optional[float] = None,
    max_occurrences: Optional[int] = None
) -> GenerationSummary:
    """
    Цикл генерации: материализует все наступившие вхождения повторяющихся транзакций.

    Для каждой выбранной записи и каждого наступившего вхождения:
    1. вычисляет новый курсор calculate_next_due_date(frequency, cursor);
    2. условным UPDATE забирает вхождение и сдвигает курсор
       (деактивируя запись, если новый курсор позже end_date);
    3. создаёт транзакцию, датированную прежним курсором;
    4. фиксирует шаги 2-3 вместе.

    Ошибка по одной записи не прерывает обработку остальных и попадает
    в итог. Повторный запуск до наступления следующей даты ничего не создаёт.

    Args:
        session: Активная сессия БД
        today: Дата запуска (по умолчанию date.today())
        time_budget: Лимит времени в секундах (по умолчанию из настроек)
        max_occurrences: Лимит вхождений на один шаблон за запуск

    Returns:
        GenerationSummary с итогами запуска
    """
    today = today or date.today()
    time_budget = settings.generation_time_budget_seconds if time_budget is None else time_budget
    max_occurrences = max_occurrences or settings.max_occurrences_per_run

    summary = GenerationSummary(run_date=today)
    deadline = time.monotonic() + time_budget

    try:
        due_records = get_due_recurring_transactions(session, today)
        templates = [
            _Template(
                id=r.id,
                user_id=r.user_id,
                title=r.title,
                amount=r.amount,
                category=r.category,
                transaction_type=r.transaction_type,
                frequency=r.frequency,
                end_date=r.end_date,
                next_due_date=r.next_due_date,
            )
            for r in due_records
        ]
        # Закрываем читающую транзакцию перед пошаговой обработкой
        session.rollback()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Ошибка при выборке повторяющихся транзакций для генерации: {e}")
        raise

    logger.info(f"Генерация на {today}: к обработке {len(templates)} повторяющихся транзакций")

    for template in templates:
        if time.monotonic() >= deadline:
            summary.timed_out = True
            logger.warning(
                f"Генерация остановлена по лимиту времени {time_budget} с: "
                f"обработано {summary.processed_count} из {len(templates)}"
            )
            break

        summary.processed_count += 1
        try:
            _generate_for_record(session, template, today, summary, max_occurrences)
        except (SQLAlchemyError, ExpenseTrackerError) as e:
            session.rollback()
            logger.error(
                f"Ошибка генерации для повторяющейся транзакции ID {template.id}: {e}",
                extra={"user_id": template.user_id, "recurring_transaction_id": template.id}
            )
            summary.failed.append(GenerationFailure(template.id, str(e)))

    logger.info(
        f"Генерация на {today} завершена: создано {summary.generated_count}, "
        f"ошибок {len(summary.failed)}, пропущено {len(summary.skipped)}, "
        f"деактивировано {len(summary.deactivated)}"
    )
    return summary
