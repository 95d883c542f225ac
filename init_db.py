"""
Скрипт для инициализации базы данных.

Создаёт все таблицы напрямую через SQLAlchemy (без Alembic миграций).
Удобно для локальной SQLite базы.

Запуск:
    python init_db.py
"""

import asyncio

from fireside_archive.core import build_engine, get_settings, init_db


async def main():
    """Создать все таблицы."""
    settings = get_settings()
    engine = build_engine(settings)

    print(f"Создание таблиц: {settings.DATABASE_URL}")
    await init_db(engine)
    await engine.dispose()
    print("✓ Таблицы созданы успешно!")


if __name__ == "__main__":
    asyncio.run(main())
