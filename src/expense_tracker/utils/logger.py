"""
Модуль настройки логирования для Expense Tracker.

Обеспечивает:
- Структурированное логирование в файл (JSON строки)
- Текстовый вывод в консоль
- Передачу контекста через extra (user_id, recurring_transaction_id и т.п.)
"""

import json
import logging
import sys
from pathlib import Path
from datetime import datetime, date
from typing import Any, Dict, Optional
from decimal import Decimal

from expense_tracker.config import settings

# Стандартные атрибуты LogRecord, которые не попадают в блок extra
_RESERVED_ATTRS = frozenset({
    "args", "asctime", "created", "exc_info", "exc_text", "filename",
    "funcName", "levelname", "levelno", "lineno", "module",
    "msecs", "message", "msg", "name", "pathname", "process",
    "processName", "relativeCreated", "stack_info", "thread", "threadName",
    "taskName",
})


class JsonFormatter(logging.Formatter):
    """
    Форматтер для вывода логов в формате JSON (одна запись на строку).
    """
    def format(self, record: logging.LogRecord) -> str:
        log_record: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S'),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        # Дополнительные поля из extra
        # Пример: logger.info("message", extra={"user_id": "u-1"})
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in log_record:
                log_record[key] = self._serialize_value(value)

        if record.exc_info:
            log_record['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_record, ensure_ascii=False)

    def _serialize_value(self, value: Any) -> Any:
        """
        Преобразует значение в JSON-сериализуемый формат.
        """
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        elif isinstance(value, Decimal):
            return str(value)
        elif isinstance(value, (str, int, float, bool)) or value is None:
            return value
        elif isinstance(value, (list, tuple)):
            return [self._serialize_value(item) for item in value]
        elif isinstance(value, dict):
            return {str(k): self._serialize_value(v) for k, v in value.items()}
        else:
            return str(value)


def setup_logging(log_file: Optional[str] = None, level: Optional[str] = None) -> None:
    """
    Настраивает систему логирования приложения.

    - Создаёт директорию для логов
    - Настраивает JSON форматирование для файла
    - Настраивает текстовый формат для консоли

    Args:
        log_file: Путь к файлу лога (по умолчанию settings.log_file)
        level: Уровень логирования (по умолчанию settings.log_level)
    """
    log_path = Path(log_file or settings.log_file)

    root_logger = logging.getLogger()
    root_logger.setLevel(level or settings.log_level)

    # Удаляем существующие хендлеры (повторный вызов не дублирует вывод)
    root_logger.handlers = []

    # 1. Файловый хендлер
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setFormatter(JsonFormatter())
        root_logger.addHandler(file_handler)
    except OSError as e:
        print(f"КРИТИЧЕСКАЯ ОШИБКА: Не удалось настроить файл логов {log_path}: {e}", file=sys.stderr)

    # 2. Консольный хендлер с текстовым форматом
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(
        fmt='%(asctime)s | %(levelname)-8s | %(module)s:%(funcName)s | %(message)s',
        datefmt='%H:%M:%S'
    ))
    root_logger.addHandler(console_handler)

    logging.info("Система логирования инициализирована")
    logging.info(f"Логи записываются в: {log_path}")


def get_logger(name: str) -> logging.Logger:
    """
    Возвращает логгер с указанным именем.

    Args:
        name: Имя логгера (обычно __name__)
    """
    return logging.getLogger(name)
