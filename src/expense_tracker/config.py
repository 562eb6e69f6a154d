"""
Модуль конфигурации приложения Expense Tracker.

Содержит настройки:
- Основные параметры приложения (название, версия)
- Подключение к базе данных (DATABASE_URL)
- Секрет для cron-эндпоинтов
- Параметры планировщика периодических транзакций и уведомлений
- Настройки логирования и HTTP-сервера
- Персистентность настроек (загрузка/сохранение JSON)

Порядок применения: значения по умолчанию → JSON файл конфигурации →
переменные окружения (включая файл .env).
"""

import os
import json
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Подхватываем .env из текущей директории (DATABASE_URL, CRON_SECRET и т.д.)
load_dotenv()


class Config:
    """
    Класс конфигурации приложения.
    Реализует паттерн Singleton для доступа к настройкам из любой части приложения.

    Пользовательские данные (SQLite БД по умолчанию, логи, config.json) хранятся в
    директории ~/.expense_tracker_data/ (переопределяется EXPENSE_TRACKER_DATA_DIR).
    """

    _instance = None

    # Константы приложения
    APP_NAME = "Expense Tracker"
    VERSION = "2.0.0"

    # Переменная окружения -> (атрибут, тип)
    ENV_OVERRIDES = {
        "DATABASE_URL": ("database_url", str),
        "CRON_SECRET": ("cron_secret", str),
        "LOG_LEVEL": ("log_level", str),
        "LOG_FILE": ("log_file", str),
        "HOST": ("host", str),
        "PORT": ("port", int),
        "UPCOMING_LOOKAHEAD_DAYS": ("upcoming_lookahead_days", int),
        "BILL_REMINDER_DAYS": ("bill_reminder_days", int),
        "BUDGET_WARNING_THRESHOLD": ("budget_warning_threshold", Decimal),
        "BUDGET_CRITICAL_THRESHOLD": ("budget_critical_threshold", Decimal),
        "GENERATION_TIME_BUDGET_SECONDS": ("generation_time_budget_seconds", float),
        "MAX_OCCURRENCES_PER_RUN": ("max_occurrences_per_run", int),
        "CURRENCY_SYMBOL": ("currency_symbol", str),
    }

    # Ключи, которые сохраняются в config.json (секреты и путь к БД не сохраняются)
    PERSISTED_KEYS = (
        "log_level",
        "host",
        "port",
        "upcoming_lookahead_days",
        "bill_reminder_days",
        "budget_warning_threshold",
        "budget_critical_threshold",
        "generation_time_budget_seconds",
        "max_occurrences_per_run",
        "currency_symbol",
        "date_format",
    )

    @staticmethod
    def get_user_data_dir() -> Path:
        """
        Возвращает путь к директории пользовательских данных.

        Создаёт директорию и поддиректорию logs/ для файлов логов.

        Returns:
            Path: Путь к директории данных
        """
        data_dir = Path(
            os.getenv("EXPENSE_TRACKER_DATA_DIR", str(Path.home() / ".expense_tracker_data"))
        )

        data_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Директория пользовательских данных: {data_dir}")

        logs_dir = data_dir / "logs"
        logs_dir.mkdir(exist_ok=True)

        return data_dir

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._initialized = True

        self.user_data_dir = self.get_user_data_dir()

        # Пути к файлам
        self.config_file: str = os.getenv(
            "EXPENSE_TRACKER_CONFIG", str(self.user_data_dir / "config.json")
        )
        self.log_file: str = str(self.user_data_dir / "logs" / "expense_tracker.log")

        # База данных
        self.database_url: str = f"sqlite:///{self.user_data_dir / 'expense_tracker.db'}"

        # HTTP сервер
        self.host: str = "127.0.0.1"
        self.port: int = 5000

        # Секрет cron-эндпоинтов (None = проверка отключена)
        self.cron_secret: Optional[str] = None

        # Настройки логирования
        self.log_level: str = "INFO"

        # Планировщик периодических транзакций
        self.generation_time_budget_seconds: float = 60.0
        self.max_occurrences_per_run: int = 366

        # Уведомления
        self.upcoming_lookahead_days: int = 30
        self.bill_reminder_days: int = 2
        self.budget_warning_threshold: Decimal = Decimal("30000")
        self.budget_critical_threshold: Decimal = Decimal("40000")

        # Настройки форматов
        self.date_format: str = "%d.%m.%Y"
        self.currency_symbol: str = "₽"

        self.load()
        self.load_env()

    def load(self) -> None:
        """
        Загружает настройки из файла конфигурации.

        Если файл не существует, используются значения по умолчанию.
        """
        if not os.path.exists(self.config_file):
            logger.info(f"Файл конфигурации не найден, используются значения по умолчанию: {self.config_file}")
            return

        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Ошибка при загрузке конфигурации: {e}")
            return

        for key in self.PERSISTED_KEYS:
            if key not in data:
                continue
            current = getattr(self, key)
            try:
                setattr(self, key, self._coerce(data[key], type(current)))
            except (TypeError, ValueError, InvalidOperation):
                logger.warning(f"Некорректное значение '{key}' в {self.config_file}: {data[key]!r}")

        logger.info(f"Конфигурация загружена из {self.config_file}")

    def load_env(self) -> None:
        """Применяет переопределения из переменных окружения."""
        for env_name, (attr, cast) in self.ENV_OVERRIDES.items():
            raw = os.getenv(env_name)
            if raw is None or raw == "":
                continue
            try:
                setattr(self, attr, self._coerce(raw, cast))
            except (TypeError, ValueError, InvalidOperation):
                logger.warning(f"Некорректное значение переменной окружения {env_name}: {raw!r}")

    @staticmethod
    def _coerce(value, cast):
        if cast is Decimal:
            return Decimal(str(value))
        return cast(value)

    def save(self) -> None:
        """
        Сохраняет текущие настройки в файл конфигурации.

        DATABASE_URL и CRON_SECRET не сохраняются - они приходят из окружения.
        """
        data = {}
        for key in self.PERSISTED_KEYS:
            value = getattr(self, key)
            data[key] = str(value) if isinstance(value, Decimal) else value

        try:
            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=4, ensure_ascii=False)
            logger.info(f"Конфигурация сохранена в {self.config_file}")
        except OSError as e:
            logger.error(f"Ошибка при сохранении конфигурации: {e}")


# Глобальный экземпляр конфигурации
settings = Config()
