"""
Pytest fixtures для тестов.

Предоставляет:
- test_settings: настройки с тестовыми ключами и SQLite in-memory БД
- test_db: изолированная SQLite in-memory БД для каждого теста
- test_app: экземпляр приложения, работающий с тестовой БД
- test_client: HTTP клиент с админским ключом
- reader_client: HTTP клиент с ключом участника
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from fireside_archive.core import Settings, build_engine, build_session_factory, drop_db, init_db
from fireside_archive.main import create_app

API_KEY = "test-key"
ADMIN_API_KEY = "test-admin-key"


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        API_KEY=API_KEY,
        ADMIN_API_KEY=ADMIN_API_KEY,
        LOG_LEVEL="WARNING",
        LOG_FORMAT="simple",
    )


@pytest_asyncio.fixture
async def test_engine(test_settings):
    """
    Создаёт async engine для тестовой БД (SQLite in-memory).

    build_engine использует StaticPool для SQLite: одно соединение на engine,
    иначе in-memory БД теряет данные.

    ВАЖНО: Таблицы пересоздаются для каждого теста, обеспечивая полную изоляцию.
    """
    engine = build_engine(test_settings)

    await drop_db(engine)
    await init_db(engine)

    yield engine

    await drop_db(engine)
    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(test_engine):
    """
    Предоставляет async session для работы с тестовой БД.

    Каждый тест получает чистую БД.
    Транзакция откатывается после теста.
    """
    session_factory = build_session_factory(test_engine)

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def test_app(test_settings, test_engine):
    """
    Приложение, подключённое к тестовой БД.

    create_app строит свой engine; подменяем фабрику сессий на тестовую,
    чтобы запросы видели таблицы, созданные в test_engine.
    """
    app = create_app(test_settings)
    await app.state.engine.dispose()
    app.state.engine = test_engine
    app.state.session_factory = build_session_factory(test_engine)
    return app


@pytest_asyncio.fixture
async def test_client(test_app):
    """HTTP клиент с админским ключом (доступны все endpoints)."""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
        headers={"X-API-Key": ADMIN_API_KEY},
    ) as client:
        yield client


@pytest_asyncio.fixture
async def reader_client(test_app):
    """HTTP клиент с ключом участника (чтение и outlines)."""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
        headers={"X-API-Key": API_KEY},
    ) as client:
        yield client


@pytest_asyncio.fixture
async def anonymous_client(test_app):
    """HTTP клиент без ключа."""
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as client:
        yield client


# Pytest configuration
@pytest.fixture(scope="session")
def anyio_backend():
    """Используем asyncio для всех async тестов."""
    return "asyncio"
