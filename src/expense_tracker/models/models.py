"""
Модуль моделей данных для Expense Tracker.

Содержит определения моделей:
- RecurringTransactionDB: шаблон повторяющейся транзакции с курсором next_due_date
- TransactionDB: фактическая транзакция (введённая вручную или сгенерированная)
- NotificationDB: уведомление пользователя
- SavingsGoalDB: цель накоплений
- Pydantic модели для валидации входных данных и сериализации ответов API
"""

from datetime import datetime
from datetime import date as date_type
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from decimal import Decimal
import uuid

from sqlalchemy import (
    Column, String, Numeric, Date, DateTime, Enum as SQLEnum, Boolean,
    Integer, JSON, ForeignKey, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship, DeclarativeBase
from pydantic import BaseModel, field_validator, Field, ConfigDict, computed_field

from .enums import TransactionType, Frequency, NotificationType, BudgetStyle


# Декларативная база для SQLAlchemy моделей
class Base(DeclarativeBase):
    """Базовый класс для всех SQLAlchemy моделей."""
    pass


class RecurringTransactionDB(Base):
    """
    Шаблон повторяющейся транзакции.

    Хранит параметры расписания и единственный изменяемый курсор
    (next_due_date, is_active). Цикл генерации материализует вхождения
    в TransactionDB и сдвигает курсор вперёд.

    Attributes:
        id: Уникальный идентификатор (UUID)
        user_id: Идентификатор владельца
        title: Название
        amount: Сумма (положительное число)
        category: Метка категории (опционально)
        transaction_type: Тип (доход или расход)
        frequency: Периодичность
        start_date: Дата начала расписания
        end_date: Дата окончания (None = бессрочно)
        next_due_date: Дата следующего несгенерированного вхождения
        is_active: Признак активности (неактивные не генерируются)
        created_at: Дата создания записи
        updated_at: Дата последнего обновления
    """
    __tablename__ = "recurring_transactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    user_id = Column(String(64), nullable=False, index=True)
    title = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    category = Column(String, nullable=True)
    transaction_type = Column(SQLEnum(TransactionType), nullable=False)
    frequency = Column(SQLEnum(Frequency), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    next_due_date = Column(Date, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    # Связи
    transactions = relationship("TransactionDB", back_populates="recurring_transaction")

    # Индекс под выборку цикла генерации
    __table_args__ = (
        Index('ix_recurring_transactions_active_next_due', 'is_active', 'next_due_date'),
    )


class TransactionDB(Base):
    """
    Фактическая финансовая транзакция (доход или расход).

    Создаётся пользователем напрямую или циклом генерации из
    RecurringTransactionDB. Для сгенерированных транзакций заполнен
    recurring_transaction_id; пара (recurring_transaction_id, transaction_date)
    уникальна, поэтому одно вхождение не может быть записано дважды.

    Attributes:
        id: Уникальный идентификатор (UUID)
        user_id: Идентификатор владельца
        title: Название
        amount: Сумма (положительное число)
        category: Метка категории (опционально)
        transaction_date: Дата транзакции
        transaction_type: Тип (доход или расход)
        recurring_transaction_id: Ссылка на шаблон (если сгенерирована)
        created_at: Дата создания записи
        updated_at: Дата последнего обновления
    """
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    user_id = Column(String(64), nullable=False, index=True)
    title = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    category = Column(String, nullable=True)
    transaction_date = Column(Date, nullable=False, index=True)
    transaction_type = Column(SQLEnum(TransactionType), nullable=False)
    recurring_transaction_id = Column(
        String(36),
        ForeignKey("recurring_transactions.id", ondelete="SET NULL"),
        nullable=True
    )
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    # Связи
    recurring_transaction = relationship("RecurringTransactionDB", back_populates="transactions")

    __table_args__ = (
        UniqueConstraint(
            'recurring_transaction_id', 'transaction_date',
            name='uq_transactions_recurring_occurrence'
        ),
        Index('ix_transactions_user_id_date', 'user_id', 'transaction_date'),
    )


class NotificationDB(Base):
    """
    Уведомление пользователя.

    Attributes:
        id: Уникальный идентификатор (UUID)
        user_id: Идентификатор получателя
        title: Заголовок
        message: Текст уведомления
        type: Уровень важности
        read: Признак прочтения
        action_url: Ссылка на раздел приложения (опционально)
        created_at: Дата создания записи
        updated_at: Дата последнего обновления
    """
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    user_id = Column(String(64), nullable=False, index=True)
    title = Column(String, nullable=False)
    message = Column(String, nullable=False)
    type = Column(SQLEnum(NotificationType), nullable=False, default=NotificationType.INFO)
    read = Column(Boolean, default=False, nullable=False)
    action_url = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.now, index=True)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class SavingsGoalDB(Base):
    """
    Цель накоплений.

    Attributes:
        id: Уникальный идентификатор (UUID)
        user_id: Идентификатор владельца
        goal_name: Название цели
        target_amount: Целевая сумма
        saved_amount: Накопленная сумма
        created_at: Дата создания записи
        updated_at: Дата последнего обновления
    """
    __tablename__ = "savings_goals"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    user_id = Column(String(64), nullable=False, index=True)
    goal_name = Column(String, nullable=False)
    target_amount = Column(Numeric(12, 2), nullable=False)
    saved_amount = Column(Numeric(12, 2), nullable=False, default=Decimal('0'))
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class UserPreferencesDB(Base):
    """
    Предпочтения пользователя, заполняемые при первичной настройке.

    Attributes:
        id: Уникальный идентификатор (UUID)
        user_id: Идентификатор владельца (одна запись на пользователя)
        display_name: Отображаемое имя; пока оно не задано, настройка не завершена
        currency: Код валюты ISO 4217
        language: Код языка интерфейса
        timezone: Часовой пояс IANA
        budget_style: Стиль планирования бюджета
        default_savings_percentage: Доля дохода для накоплений, %
        selected_categories: Выбранные категории расходов
        email_notifications: Отправлять уведомления на почту
        created_at: Дата создания записи
        updated_at: Дата последнего обновления
    """
    __tablename__ = "user_preferences"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    user_id = Column(String(64), nullable=False, unique=True, index=True)
    display_name = Column(String, nullable=True)
    currency = Column(String(3), nullable=False)
    language = Column(String(8), nullable=False)
    timezone = Column(String(64), nullable=False)
    budget_style = Column(SQLEnum(BudgetStyle), nullable=False)
    default_savings_percentage = Column(Integer, nullable=False)
    selected_categories = Column(JSON, nullable=False)
    email_notifications = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


# =============================================================================
# Pydantic модели для валидации и API responses
# =============================================================================

def _strip_required(v: str, field_label: str) -> str:
    if v is None or not v.strip():
        raise ValueError(f'{field_label} не может быть пустым')
    return v.strip()


class RecurringTransactionCreate(BaseModel):
    """
    Pydantic модель для создания повторяющейся транзакции.

    Attributes:
        user_id: Идентификатор владельца (обязательный)
        title: Название (не может быть пустым)
        amount: Сумма (должна быть > 0)
        category: Метка категории (опционально)
        transaction_type: Тип (INCOME или EXPENSE)
        frequency: Периодичность (daily, weekly, monthly, yearly)
        start_date: Дата начала
        end_date: Дата окончания (опционально, не раньше start_date)
    """
    user_id: str
    title: str
    amount: Decimal = Field(gt=Decimal('0'), decimal_places=2, description="Сумма должна быть положительной")
    category: Optional[str] = None
    transaction_type: TransactionType
    frequency: Frequency
    start_date: date_type
    end_date: Optional[date_type] = None

    @field_validator('user_id')
    @classmethod
    def user_id_not_empty(cls, v: str) -> str:
        return _strip_required(v, 'ID пользователя')

    @field_validator('title')
    @classmethod
    def title_not_empty(cls, v: str) -> str:
        return _strip_required(v, 'Название')

    @field_validator('end_date')
    @classmethod
    def end_date_not_before_start(cls, v: Optional[date_type], values) -> Optional[date_type]:
        """Проверка, что end_date не раньше start_date (если указан)."""
        if v is not None and 'start_date' in values.data:
            if v < values.data['start_date']:
                raise ValueError('Дата окончания не может быть раньше даты начала')
        return v


class RecurringTransactionUpdate(BaseModel):
    """
    Pydantic модель для частичного обновления повторяющейся транзакции.

    Обновляются только явно переданные поля (model_fields_set),
    поэтому end_date=None означает "снять дату окончания".
    """
    title: Optional[str] = None
    amount: Optional[Decimal] = Field(None, gt=Decimal('0'), decimal_places=2)
    category: Optional[str] = None
    transaction_type: Optional[TransactionType] = None
    frequency: Optional[Frequency] = None
    start_date: Optional[date_type] = None
    end_date: Optional[date_type] = None
    is_active: Optional[bool] = None

    @field_validator('title')
    @classmethod
    def title_not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _strip_required(v, 'Название')

    @field_validator('end_date')
    @classmethod
    def end_date_not_before_start(cls, v: Optional[date_type], values) -> Optional[date_type]:
        start_date = values.data.get('start_date')
        if v is not None and start_date is not None and v < start_date:
            raise ValueError('Дата окончания не может быть раньше даты начала')
        return v


class RecurringTransaction(BaseModel):
    """
    Pydantic модель для чтения повторяющейся транзакции из БД.
    """
    id: str
    user_id: str
    title: str
    amount: Decimal
    category: Optional[str] = None
    transaction_type: TransactionType
    frequency: Frequency
    start_date: date_type
    end_date: Optional[date_type] = None
    next_due_date: date_type
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TransactionCreate(BaseModel):
    """
    Pydantic модель для создания транзакции с валидацией.

    Attributes:
        user_id: Идентификатор владельца
        title: Название
        amount: Сумма транзакции (должна быть больше 0)
        category: Метка категории (опционально)
        transaction_type: Тип транзакции (доход или расход)
        transaction_date: Дата транзакции (по умолчанию текущая дата)
    """
    user_id: str
    title: str
    amount: Decimal = Field(gt=Decimal('0'), decimal_places=2, description="Сумма транзакции должна быть положительной")
    category: Optional[str] = None
    transaction_type: TransactionType
    transaction_date: date_type = Field(default_factory=date_type.today)

    @field_validator('user_id')
    @classmethod
    def user_id_not_empty(cls, v: str) -> str:
        return _strip_required(v, 'ID пользователя')

    @field_validator('title')
    @classmethod
    def title_not_empty(cls, v: str) -> str:
        return _strip_required(v, 'Название')


class TransactionUpdate(BaseModel):
    """
    Pydantic модель для обновления транзакции.

    Все поля опциональные - обновляются только указанные.
    """
    title: Optional[str] = None
    amount: Optional[Decimal] = Field(None, gt=Decimal('0'), decimal_places=2)
    category: Optional[str] = None
    transaction_type: Optional[TransactionType] = None
    transaction_date: Optional[date_type] = None

    @field_validator('title')
    @classmethod
    def title_not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _strip_required(v, 'Название')


class Transaction(BaseModel):
    """
    Pydantic модель для чтения транзакции из базы данных.
    """
    id: str
    user_id: str
    title: str
    amount: Decimal
    category: Optional[str] = None
    transaction_type: TransactionType
    transaction_date: date_type
    recurring_transaction_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationCreate(BaseModel):
    """
    Pydantic модель для создания уведомления.
    """
    user_id: str
    title: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1)
    type: NotificationType = NotificationType.INFO
    action_url: Optional[str] = None

    @field_validator('user_id')
    @classmethod
    def user_id_not_empty(cls, v: str) -> str:
        return _strip_required(v, 'ID пользователя')


class Notification(BaseModel):
    """
    Pydantic модель для чтения уведомления из БД.
    """
    id: str
    user_id: str
    title: str
    message: str
    type: NotificationType
    read: bool
    action_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SavingsGoalCreate(BaseModel):
    """
    Pydantic модель для создания цели накоплений.

    Attributes:
        user_id: Идентификатор владельца
        goal_name: Название цели (не может быть пустым)
        target_amount: Целевая сумма (> 0)
        saved_amount: Уже накоплено (>= 0, по умолчанию 0)
    """
    user_id: str
    goal_name: str
    target_amount: Decimal = Field(gt=Decimal('0'), decimal_places=2)
    saved_amount: Decimal = Field(default=Decimal('0'), ge=Decimal('0'), decimal_places=2)

    @field_validator('user_id')
    @classmethod
    def user_id_not_empty(cls, v: str) -> str:
        return _strip_required(v, 'ID пользователя')

    @field_validator('goal_name')
    @classmethod
    def goal_name_not_empty(cls, v: str) -> str:
        return _strip_required(v, 'Название цели')


class SavingsGoalUpdate(BaseModel):
    """Частичное обновление цели накоплений."""
    goal_name: Optional[str] = None
    target_amount: Optional[Decimal] = Field(None, gt=Decimal('0'), decimal_places=2)
    saved_amount: Optional[Decimal] = Field(None, ge=Decimal('0'), decimal_places=2)

    @field_validator('goal_name')
    @classmethod
    def goal_name_not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _strip_required(v, 'Название цели')


class SavingsGoal(BaseModel):
    """
    Pydantic модель для чтения цели накоплений.

    Вычисляемые поля:
        progress_percent: Процент выполнения (0-100, округление до 0.01)
        is_completed: Цель достигнута
    """
    id: str
    user_id: str
    goal_name: str
    target_amount: Decimal
    saved_amount: Decimal
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def progress_percent(self) -> Decimal:
        if self.target_amount <= 0:
            return Decimal('0')
        percent = self.saved_amount * Decimal('100') / self.target_amount
        return min(percent, Decimal('100')).quantize(Decimal('0.01'))

    @computed_field
    @property
    def is_completed(self) -> bool:
        return self.saved_amount >= self.target_amount


class UserPreferencesUpdate(BaseModel):
    """
    Частичное обновление предпочтений пользователя.

    Обновляются только явно переданные поля; display_name=None сбрасывает имя.
    """
    display_name: Optional[str] = None
    currency: Optional[str] = None
    language: Optional[str] = Field(None, min_length=2, max_length=8)
    timezone: Optional[str] = None
    budget_style: Optional[BudgetStyle] = None
    default_savings_percentage: Optional[int] = Field(None, ge=0, le=100)
    selected_categories: Optional[List[str]] = None
    email_notifications: Optional[bool] = None

    @field_validator('display_name')
    @classmethod
    def display_name_strip(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return v.strip() or None

    @field_validator('currency')
    @classmethod
    def currency_code(cls, v: Optional[str]) -> Optional[str]:
        """Код валюты: три латинские буквы, приводится к верхнему регистру."""
        if v is None:
            return v
        code = v.strip().upper()
        if len(code) != 3 or not code.isascii() or not code.isalpha():
            raise ValueError('Код валюты должен состоять из трёх латинских букв (например, RUB)')
        return code

    @field_validator('timezone')
    @classmethod
    def timezone_known(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Неизвестный часовой пояс '{v}'")
        return v

    @field_validator('selected_categories')
    @classmethod
    def categories_not_empty(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        """Пустые названия отбрасываются, дубли удаляются с сохранением порядка."""
        if v is None:
            return v
        categories = []
        for name in v:
            name = name.strip()
            if name and name not in categories:
                categories.append(name)
        return categories


class UserPreferences(BaseModel):
    """
    Pydantic модель для чтения предпочтений пользователя.

    Для пользователя без сохранённых настроек created_at и updated_at пусты.
    """
    user_id: str
    display_name: Optional[str] = None
    currency: str
    language: str
    timezone: str
    budget_style: BudgetStyle
    default_savings_percentage: int
    selected_categories: List[str]
    email_notifications: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def setup_completed(self) -> bool:
        return bool(self.display_name)
