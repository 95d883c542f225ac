"""
Dependencies для FastAPI endpoints.

Сессия БД и настройки берутся из app.state (их создаёт create_app),
поэтому в приложении нет глобального engine: тесты и скрипты собирают
свой экземпляр приложения со своей БД.
"""

import secrets
from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..services import (
    DeepeningService,
    FiresideFamilyService,
    FiresideService,
    OutlineService,
    SnippetService,
    TagService,
)

# ============================================================================
# API KEY AUTHENTICATION
# ============================================================================

api_key_header = APIKeyHeader(
    name="X-API-Key",
    auto_error=False,  # Ошибку формируем сами
    description="API ключ. Участник - API_KEY, администратор - ADMIN_API_KEY",
)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "ApiKey"},
    )


async def verify_api_key(
    api_key: str | None = Depends(api_key_header),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    Доступ на чтение: подходит ключ участника или администратора.

    Пример запроса:
        curl -H "X-API-Key: your-key" http://localhost:8000/api/v1/snippets/1
    """
    if api_key is None:
        raise _unauthorized("API key is missing. Add header: X-API-Key: your-key")

    if not (
        secrets.compare_digest(api_key, settings.API_KEY)
        or secrets.compare_digest(api_key, settings.ADMIN_API_KEY)
    ):
        raise _unauthorized("Invalid API key")

    return api_key


async def verify_admin_key(
    api_key: str | None = Depends(api_key_header),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    Доступ к админским операциям (создание, правка, удаление).

    Ключ участника даёт 403, отсутствующий или неверный ключ - 401.
    """
    if api_key is None:
        raise _unauthorized("API key is missing. Add header: X-API-Key: your-key")

    if secrets.compare_digest(api_key, settings.ADMIN_API_KEY):
        return api_key

    if secrets.compare_digest(api_key, settings.API_KEY):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin API key required",
        )

    raise _unauthorized("Invalid API key")


# ============================================================================
# DATABASE SESSION DEPENDENCY
# ============================================================================


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Сессия БД на один запрос.

    Одна сессия = одна транзакция: разрешение тегов, сверка счётчиков и
    сохранение записи либо фиксируются вместе (commit), либо откатываются
    вместе (rollback) при любой ошибке.
    """
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ============================================================================
# SERVICE DEPENDENCIES
# ============================================================================


async def get_family_service(db: AsyncSession = Depends(get_db)) -> FiresideFamilyService:
    return FiresideFamilyService(db)


async def get_fireside_service(db: AsyncSession = Depends(get_db)) -> FiresideService:
    return FiresideService(db)


async def get_snippet_service(db: AsyncSession = Depends(get_db)) -> SnippetService:
    return SnippetService(db)


async def get_deepening_service(db: AsyncSession = Depends(get_db)) -> DeepeningService:
    return DeepeningService(db)


async def get_outline_service(db: AsyncSession = Depends(get_db)) -> OutlineService:
    return OutlineService(db)


async def get_tag_service(db: AsyncSession = Depends(get_db)) -> TagService:
    return TagService(db)
