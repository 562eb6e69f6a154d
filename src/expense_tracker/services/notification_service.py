"""
Сервис уведомлений.

Содержит функции для:
- Создания, чтения, отметки о прочтении и удаления уведомлений
- Проверки предстоящих повторяющихся операций (окно upcoming_lookahead_days)
- Напоминаний о ближайших платежах по повторяющимся расходам
- Контроля превышения месячного бюджета расходов

Проверки только читают повторяющиеся транзакции и никогда не меняют курсор.
Ошибка создания одного уведомления логируется и не прерывает проверку.
"""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import List, Optional
import logging

from sqlalchemy import distinct, union
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from expense_tracker.config import settings
from expense_tracker.models.models import (
    NotificationDB,
    NotificationCreate,
    RecurringTransactionDB,
    TransactionDB,
)
from expense_tracker.models.enums import NotificationType, TransactionType
from expense_tracker.services.transaction_service import get_monthly_expense_total
from expense_tracker.utils.exceptions import NotFoundError
from expense_tracker.utils.validation import validate_uuid_format

# Настройка логирования
logger = logging.getLogger(__name__)

UPCOMING_TITLE = "Предстоящая повторяющаяся операция"
BILL_REMINDER_TITLE = "Скоро платёж"
BUDGET_EXCEEDED_TITLE = "Бюджет превышен"
BUDGET_WARNING_TITLE = "Предупреждение о бюджете"


def _format_amount(amount: Decimal) -> str:
    """Форматирует сумму с разделителем тысяч: 30000 -> '30 000.00 ₽'."""
    return f"{amount:,.2f}".replace(",", " ") + f" {settings.currency_symbol}"


# =============================================================================
# CRUD
# =============================================================================

def create_notification(
    session: Session,
    data: NotificationCreate,
    created_at: Optional[datetime] = None
) -> NotificationDB:
    """
    Создаёт уведомление.

    created_at задаётся проверками, чтобы уведомление относилось к дню проверки.

    Raises:
        SQLAlchemyError: При ошибках работы с БД
    """
    try:
        notification = NotificationDB(
            user_id=data.user_id,
            title=data.title,
            message=data.message,
            type=data.type,
            action_url=data.action_url,
            read=False,
        )
        if created_at is not None:
            notification.created_at = created_at
        session.add(notification)
        session.commit()
        session.refresh(notification)

        logger.info(
            f"Создано уведомление ID {notification.id} ({notification.type.value}): '{notification.title}'",
            extra={"user_id": notification.user_id}
        )
        return notification

    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Ошибка при создании уведомления: {e}")
        raise


def get_notifications(
    session: Session,
    user_id: str,
    unread_only: bool = False,
    limit: Optional[int] = None
) -> List[NotificationDB]:
    """Получает уведомления пользователя (новые первыми)."""
    query = session.query(NotificationDB).filter(NotificationDB.user_id == user_id)
    if unread_only:
        query = query.filter(NotificationDB.read.is_(False))

    query = query.order_by(NotificationDB.created_at.desc())
    if limit:
        query = query.limit(limit)

    return query.all()


def get_notification(session: Session, user_id: str, notification_id: str) -> NotificationDB:
    """
    Получает уведомление пользователя по ID.

    Raises:
        NotFoundError: Если уведомление не найдено у пользователя
    """
    validate_uuid_format(notification_id, "notification_id")

    notification = session.query(NotificationDB).filter_by(
        id=notification_id,
        user_id=user_id
    ).first()

    if not notification:
        logger.warning(f"Уведомление ID {notification_id} не найдено для пользователя {user_id}")
        raise NotFoundError(f"Уведомление с ID {notification_id} не найдено")

    return notification


def mark_notification_read(
    session: Session,
    user_id: str,
    notification_id: str,
    read: bool = True
) -> NotificationDB:
    """Отмечает уведомление прочитанным (или непрочитанным при read=False)."""
    notification = get_notification(session, user_id, notification_id)

    try:
        notification.read = read
        session.commit()
        session.refresh(notification)

        logger.debug(f"Уведомление ID {notification_id}: read={read}")
        return notification

    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Ошибка при обновлении уведомления ID {notification_id}: {e}")
        raise


def mark_all_read(session: Session, user_id: str) -> int:
    """
    Отмечает все уведомления пользователя прочитанными.

    Returns:
        Количество изменённых уведомлений
    """
    try:
        count = session.query(NotificationDB).filter(
            NotificationDB.user_id == user_id,
            NotificationDB.read.is_(False)
        ).update({NotificationDB.read: True}, synchronize_session=False)
        session.commit()

        logger.info(f"Отмечено прочитанными {count} уведомлений", extra={"user_id": user_id})
        return count

    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Ошибка при отметке уведомлений пользователя {user_id}: {e}")
        raise


def delete_notification(session: Session, user_id: str, notification_id: str) -> bool:
    """Удаляет уведомление."""
    notification = get_notification(session, user_id, notification_id)

    try:
        session.delete(notification)
        session.commit()

        logger.info(f"Удалено уведомление ID {notification_id}", extra={"user_id": user_id})
        return True

    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Ошибка при удалении уведомления ID {notification_id}: {e}")
        raise


# =============================================================================
# Проверки
# =============================================================================

def _already_notified(session: Session, user_id: str, title: str, message: str, day: date) -> bool:
    """Есть ли уже такое же уведомление, созданное в день day."""
    day_start = datetime.combine(day, time.min)
    next_day_start = day_start + timedelta(days=1)
    return session.query(NotificationDB.id).filter(
        NotificationDB.user_id == user_id,
        NotificationDB.title == title,
        NotificationDB.message == message,
        NotificationDB.created_at >= day_start,
        NotificationDB.created_at < next_day_start
    ).first() is not None


def _notify(
    session: Session,
    user_id: str,
    title: str,
    message: str,
    notification_type: NotificationType,
    action_url: Optional[str],
    day: date
) -> bool:
    """
    Создаёт уведомление для проверки с защитой от дублей.

    Дубль: то же (user_id, title, message) в тот же день проверки day.

    Returns:
        True, если уведомление создано; False для дубля или ошибки БД
    """
    try:
        if _already_notified(session, user_id, title, message, day):
            logger.debug(f"Пропущен дубль уведомления '{title}' для пользователя {user_id}")
            return False

        create_notification(session, NotificationCreate(
            user_id=user_id,
            title=title,
            message=message,
            type=notification_type,
            action_url=action_url,
        ), created_at=datetime.combine(day, datetime.now().time()))
        return True

    except SQLAlchemyError as e:
        session.rollback()
        logger.error(
            f"Не удалось создать уведомление '{title}': {e}",
            extra={"user_id": user_id}
        )
        return False


def check_upcoming_recurring_transactions(
    session: Session,
    user_id: str,
    lookahead_days: Optional[int] = None,
    today: Optional[date] = None
) -> int:
    """
    Уведомляет о повторяющихся операциях, ожидаемых в ближайшие lookahead_days дней.

    Одно информационное уведомление на каждую активную запись пользователя
    с next_due_date в [today, today + lookahead_days].

    Returns:
        Количество созданных уведомлений
    """
    today = today or date.today()
    lookahead_days = settings.upcoming_lookahead_days if lookahead_days is None else lookahead_days
    horizon = today + timedelta(days=lookahead_days)

    records = session.query(RecurringTransactionDB).filter(
        RecurringTransactionDB.user_id == user_id,
        RecurringTransactionDB.is_active.is_(True),
        RecurringTransactionDB.next_due_date >= today,
        RecurringTransactionDB.next_due_date <= horizon
    ).order_by(RecurringTransactionDB.next_due_date).all()

    logger.debug(f"Пользователь {user_id}: {len(records)} операций до {horizon}")

    created = 0
    for record in records:
        kind = "Доход" if record.transaction_type == TransactionType.INCOME else "Расход"
        message = (
            f"{kind} «{record.title}» на {_format_amount(record.amount)} "
            f"ожидается {record.next_due_date.strftime(settings.date_format)}."
        )
        if _notify(session, user_id, UPCOMING_TITLE, message, NotificationType.INFO, "/recurring", today):
            created += 1

    return created


def check_upcoming_recurring_bills(
    session: Session,
    user_id: str,
    today: Optional[date] = None
) -> int:
    """
    Напоминает о платежах по повторяющимся расходам в ближайшие 1..bill_reminder_days дней.

    Returns:
        Количество созданных уведомлений
    """
    today = today or date.today()
    first_day = today + timedelta(days=1)
    last_day = today + timedelta(days=settings.bill_reminder_days)

    bills = session.query(RecurringTransactionDB).filter(
        RecurringTransactionDB.user_id == user_id,
        RecurringTransactionDB.is_active.is_(True),
        RecurringTransactionDB.transaction_type == TransactionType.EXPENSE,
        RecurringTransactionDB.next_due_date >= first_day,
        RecurringTransactionDB.next_due_date <= last_day
    ).order_by(RecurringTransactionDB.next_due_date).all()

    created = 0
    for bill in bills:
        days_until_due = (bill.next_due_date - today).days
        when = "завтра" if days_until_due == 1 else f"через {days_until_due} дн."
        message = f"Платёж «{bill.title}» ({_format_amount(bill.amount)}) нужно оплатить {when}"
        if _notify(session, user_id, BILL_REMINDER_TITLE, message, NotificationType.WARNING, "/transactions", today):
            created += 1

    return created


def check_budget_overspending(
    session: Session,
    user_id: str,
    today: Optional[date] = None
) -> int:
    """
    Проверяет расходы текущего месяца против порогов бюджета.

    Не больше одного уведомления о бюджете на пользователя за месяц.

    Returns:
        1, если уведомление создано, иначе 0
    """
    today = today or date.today()
    month_label = today.strftime("%m.%Y")

    already_sent = session.query(NotificationDB.id).filter(
        NotificationDB.user_id == user_id,
        NotificationDB.title.in_((BUDGET_EXCEEDED_TITLE, BUDGET_WARNING_TITLE)),
        NotificationDB.message.contains(f"за {month_label}")
    ).first()
    if already_sent:
        logger.debug(f"Уведомление о бюджете за {month_label} уже отправлено пользователю {user_id}")
        return 0

    total = get_monthly_expense_total(session, user_id, today)

    if total >= settings.budget_critical_threshold:
        title, notification_type = BUDGET_EXCEEDED_TITLE, NotificationType.ERROR
        message = (
            f"Расходы за {month_label} составили {_format_amount(total)} и превысили "
            f"лимит {_format_amount(settings.budget_critical_threshold)}. Проверьте траты."
        )
    elif total >= settings.budget_warning_threshold:
        title, notification_type = BUDGET_WARNING_TITLE, NotificationType.WARNING
        message = f"Расходы за {month_label} составили {_format_amount(total)}. Проверьте траты."
    else:
        return 0

    logger.info(f"Пользователь {user_id}: расходы за {month_label} {total}, уровень {notification_type.value}")
    return 1 if _notify(session, user_id, title, message, notification_type, "/analytics", today) else 0


def run_all_checks(session: Session, user_id: str, today: Optional[date] = None) -> int:
    """
    Выполняет все проверки для пользователя.

    Returns:
        Общее количество созданных уведомлений
    """
    created = (
        check_upcoming_recurring_bills(session, user_id, today=today)
        + check_upcoming_recurring_transactions(session, user_id, today=today)
        + check_budget_overspending(session, user_id, today=today)
    )
    logger.info(f"Проверки уведомлений для пользователя {user_id}: создано {created}")
    return created


def get_user_ids_for_checks(session: Session) -> List[str]:
    """ID пользователей, у которых есть транзакции или повторяющиеся транзакции."""
    stmt = union(
        session.query(distinct(RecurringTransactionDB.user_id)).statement,
        session.query(distinct(TransactionDB.user_id)).statement
    )
    return sorted(row[0] for row in session.execute(stmt))
