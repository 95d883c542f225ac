"""
Главный файл FastAPI приложения Fireside Archive.

Запуск:
    uvicorn fireside_archive.main:app --reload

API документация:
    http://localhost:8000/docs       - Swagger UI
    http://localhost:8000/redoc      - ReDoc

Приложение собирается фабрикой create_app(settings): engine, фабрика
сессий и настройки живут в app.state конкретного экземпляра, поэтому
тесты создают своё приложение со своей БД.
"""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .api import (
    deepenings_router,
    families_router,
    firesides_router,
    outlines_router,
    snippets_router,
    tags_router,
)
from .api.dependencies import verify_api_key
from .api.errors import register_error_handlers
from .api.middleware import RequestLoggingMiddleware
from .core.config import Settings, get_settings
from .core.database import build_engine, build_session_factory
from .core.logging import get_logger, setup_logging

logger = get_logger(__name__)

APP_VERSION = "1.0.0"

DESCRIPTION = """
Архив firesides: семейства, firesides, сниппеты с тегами, углубления и outlines.

## Модель данных

```
FiresideFamily → Fireside → Snippet → Deepening
                              ↓          ↓
                        TagReference (tag_id, weight, distance) → Tag.reference_count
```

## Теги

* Тег задаётся по id или по имени; имя ищется без учёта регистра,
  отсутствующий тег создаётся
* reference_count тега = число сниппетов и углублений, ссылающихся на него
* При замене тегов меняются счётчики только добавленных и убранных тегов

## Доступ

* `X-API-Key: API_KEY` - чтение и outlines
* `X-API-Key: ADMIN_API_KEY` - создание, правка и удаление архива
"""


# ============================================================================
# RATE LIMIT HANDLER
# ============================================================================


def custom_rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Кастомный обработчик превышения лимита запросов.

    Возвращает ошибку в едином формате ErrorResponse.
    """
    return JSONResponse(
        status_code=429,
        content={
            "error": {
                "code": "RATE_LIMIT_EXCEEDED",
                "message": f"Слишком много запросов. Лимит: {exc.detail}",
                "details": [{"field": "rate_limit", "message": str(exc.detail)}],
            }
        },
    )


# ============================================================================
# LIFESPAN EVENT HANDLER
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: отметка времени запуска. Shutdown: закрытие пула соединений."""
    settings: Settings = app.state.settings
    app.state.started_at = time.time()

    logger.info(
        "Application started",
        extra={
            "app_name": settings.APP_NAME,
            "version": APP_VERSION,
            "debug": settings.DEBUG,
            "log_level": settings.LOG_LEVEL,
        },
    )

    yield

    uptime = int(time.time() - app.state.started_at)
    await app.state.engine.dispose()
    logger.info("Application stopped", extra={"uptime_seconds": uptime})


# ============================================================================
# APPLICATION FACTORY
# ============================================================================


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Собрать приложение.

    Args:
        settings: Настройки; по умолчанию читаются из окружения и config/.env
    """
    settings = settings or get_settings()

    setup_logging(
        log_level=settings.LOG_LEVEL,
        log_format=settings.LOG_FORMAT,
        sql_echo=settings.DATABASE_ECHO,
    )

    app = FastAPI(
        lifespan=lifespan,
        title=settings.APP_NAME,
        description=DESCRIPTION,
        version=APP_VERSION,
        debug=settings.DEBUG,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    engine = build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    # key_func группирует запросы по IP адресу
    limiter = Limiter(key_func=get_remote_address)
    app.state.limiter = limiter
    # slowapi handler имеет специфичный тип, но работает корректно
    app.add_exception_handler(RateLimitExceeded, custom_rate_limit_exceeded_handler)  # type: ignore[arg-type]

    # ========================================================================
    # MIDDLEWARE
    # ========================================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    # ========================================================================
    # API VERSIONING
    # ========================================================================

    api_v1_router = APIRouter(prefix="/api/v1")
    api_v1_router.include_router(families_router)
    api_v1_router.include_router(firesides_router)
    api_v1_router.include_router(snippets_router)
    api_v1_router.include_router(deepenings_router)
    api_v1_router.include_router(outlines_router)
    api_v1_router.include_router(tags_router)

    # Все endpoints v1 требуют ключ; записи дополнительно проверяют админский ключ
    app.include_router(api_v1_router, dependencies=[Depends(verify_api_key)])

    register_error_handlers(app, debug=settings.DEBUG)

    # ========================================================================
    # ROOT ENDPOINT
    # ========================================================================

    @app.get("/", tags=["root"], summary="Root endpoint", description="Информация о API")
    @limiter.limit(settings.RATE_LIMIT)
    async def root(request: Request):
        return {
            "name": settings.APP_NAME,
            "version": APP_VERSION,
            "api_version": "v1",
            "docs": "/docs",
            "redoc": "/redoc",
            "openapi": "/openapi.json",
            "endpoints": {
                "fireside_families": "/api/v1/fireside-families",
                "firesides": "/api/v1/firesides",
                "snippets": "/api/v1/snippets",
                "deepenings": "/api/v1/deepenings",
                "outlines": "/api/v1/outlines",
                "tags": "/api/v1/tags",
            },
            "rate_limit": settings.RATE_LIMIT,
        }

    # ========================================================================
    # HEALTH CHECK
    # ========================================================================

    @app.get(
        "/health",
        tags=["health"],
        summary="Health check",
        description="Проверка работоспособности API",
    )
    @limiter.limit(settings.RATE_LIMIT)
    async def health_check(request: Request):
        """
        Проверяет подключение к базе данных.

        Пример ответа (200 OK):
        ```json
        {
            "status": "ok",
            "checks": {"database": "connected", "version": "1.0.0", "uptime_seconds": 3600},
            "timestamp": "2026-10-19T12:00:00+00:00"
        }
        ```

        При недоступной БД - 503 и "status": "error".
        """
        started_at = getattr(request.app.state, "started_at", None)
        uptime_seconds = int(time.time() - started_at) if started_at else 0

        db_status = "disconnected"
        try:
            async with request.app.state.session_factory() as session:
                await session.execute(text("SELECT 1"))
                db_status = "connected"
        except (SQLAlchemyError, OSError) as e:
            logger.error("Health check failed", extra={"error": str(e)})

        overall_status = "ok" if db_status == "connected" else "error"
        return JSONResponse(
            status_code=200 if overall_status == "ok" else 503,
            content={
                "status": overall_status,
                "checks": {
                    "database": db_status,
                    "version": APP_VERSION,
                    "uptime_seconds": uptime_seconds,
                },
                "timestamp": datetime.now(UTC).isoformat(),
            },
        )

    return app


app = create_app()
