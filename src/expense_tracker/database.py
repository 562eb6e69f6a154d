"""
Модуль управления базой данных для Expense Tracker.

Содержит функции для:
- Инициализации подключения и создания таблиц
- Управления сессиями БД через контекстный менеджер
- Обработки ошибок с автоматическим откатом транзакций

URL базы данных берётся из settings.database_url (config.py) или передаётся явно.
"""

from contextlib import contextmanager
from typing import Generator, Optional
import logging
import atexit

from sqlalchemy import create_engine, event, Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from expense_tracker.config import settings

# Настройка логирования
logger = logging.getLogger(__name__)


# Глобальные переменные для engine и session factory
_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None
_atexit_registered = False


def _enable_sqlite_foreign_keys(dbapi_conn, connection_record) -> None:
    """Включает поддержку foreign keys в SQLite."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(database_url: str) -> Engine:
    """
    Создаёт engine с учётом особенностей SQLite.

    Для SQLite в памяти используется StaticPool, чтобы все сессии
    работали с одной и той же базой.
    """
    if database_url.startswith("sqlite"):
        engine_kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            engine_kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, echo=False, **engine_kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(database_url, echo=False, pool_pre_ping=True)


def init_db(database_url: Optional[str] = None) -> Engine:
    """
    Инициализирует подключение к базе данных и создаёт таблицы.

    Args:
        database_url: URL подключения (по умолчанию settings.database_url)

    Returns:
        Engine: Созданный engine
    """
    global _engine, _SessionLocal, _atexit_registered

    from expense_tracker.models import Base

    url = database_url or settings.database_url

    try:
        # Повторная инициализация закрывает предыдущее подключение
        if _engine is not None:
            close_db()

        logger.info(f"Инициализация базы данных: {_mask_url(url)}")

        _engine = create_db_engine(url)

        # Создаём все таблицы на основе моделей
        Base.metadata.create_all(bind=_engine)
        logger.info("Таблицы базы данных успешно созданы/проверены")

        # Создаём фабрику сессий
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=_engine
        )

        # Регистрируем автоматическое закрытие при завершении процесса
        if not _atexit_registered:
            atexit.register(close_db)
            _atexit_registered = True

        logger.info("База данных успешно инициализирована")
        return _engine

    except SQLAlchemyError as e:
        logger.error(f"Ошибка при инициализации базы данных: {e}")
        raise


def _mask_url(url: str) -> str:
    """Скрывает пароль в URL подключения для логов."""
    if "@" not in url or "://" not in url:
        return url
    scheme, rest = url.split("://", 1)
    credentials, host = rest.rsplit("@", 1)
    user = credentials.split(":", 1)[0]
    return f"{scheme}://{user}:***@{host}"


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    Контекстный менеджер для работы с сессией базы данных.

    Фиксацию выполняют сервисы; здесь только откат при ошибке и закрытие.
    """
    if _SessionLocal is None:
        error_msg = "База данных не инициализирована. Вызовите init_db() перед использованием."
        logger.error(error_msg)
        raise RuntimeError(error_msg)

    session: Session = _SessionLocal()

    try:
        logger.debug("Создана новая сессия БД")
        yield session

    except SQLAlchemyError as e:
        logger.error(f"Ошибка SQLAlchemy, откат транзакции: {e}")
        session.rollback()
        raise

    except Exception as e:
        # Ошибки валидации тоже откатывают незафиксированные изменения
        logger.debug(f"Откат транзакции после исключения: {e}")
        session.rollback()
        raise

    finally:
        session.close()
        logger.debug("Сессия БД закрыта")


def close_db() -> None:
    """
    Закрывает соединение с базой данных и освобождает ресурсы.
    """
    global _engine, _SessionLocal

    if _engine is not None:
        logger.info("Закрытие соединения с базой данных...")
        _engine.dispose()
        _engine = None
        _SessionLocal = None
        logger.info("Соединение с базой данных закрыто")
