"""
Точка входа для запуска через python -m expense_tracker
"""
from expense_tracker.app import create_app
from expense_tracker.config import settings
from expense_tracker.utils.logger import setup_logging, get_logger

logger = get_logger(__name__)


def main() -> None:
    # 1. Настройка логирования
    setup_logging()
    logger.info(f"Запуск {settings.APP_NAME} API на {settings.host}:{settings.port}")

    # 2. Приложение (инициализирует БД)
    app = create_app()

    # 3. Сервер разработки; в продакшене используйте WSGI сервер
    app.run(host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
