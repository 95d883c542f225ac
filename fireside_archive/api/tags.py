"""
API endpoints для работы с тегами.

Названия уникальны без учёта регистра ("purpose" и "Purpose" - один тег),
регистр первого написания сохраняется для отображения. reference_count -
число сниппетов и углублений, ссылающихся на тег.
"""

from fastapi import APIRouter, Depends, Query, status

from ..services import TagService
from .dependencies import get_tag_service, verify_admin_key
from .errors import to_api_error
from .schemas import (
    ErrorResponse,
    RecountResponse,
    SuccessResponse,
    TagCreate,
    TagResponse,
    TagUpdate,
    TagUsageResponse,
)

router = APIRouter(prefix="/tags", tags=["tags"])


# ============================================================================
# GET TAGS
# ============================================================================


@router.get("", response_model=list[TagResponse], summary="Получить все теги")
async def get_tags(service: TagService = Depends(get_tag_service)) -> list[TagResponse]:
    """
    Все теги по алфавиту.

    Пример запроса:
    ```
    GET /tags
    ```
    """
    tags = await service.get_all_tags()
    return [TagResponse.model_validate(t) for t in tags]


@router.get(
    "/popular",
    response_model=list[TagResponse],
    summary="Получить популярные теги",
    description="Теги с наибольшим reference_count (только используемые).",
)
async def get_popular_tags(
    limit: int = Query(10, ge=1, le=100, description="Количество тегов"),
    service: TagService = Depends(get_tag_service),
) -> list[TagResponse]:
    """
    Пример ответа:
    ```json
    [
        {"id": 1, "name": "Purpose", "reference_count": 15, ...},
        {"id": 2, "name": "Creation", "reference_count": 12, ...}
    ]
    ```
    """
    tags = await service.get_popular_tags(limit)
    return [TagResponse.model_validate(t) for t in tags]


@router.get(
    "/unused",
    response_model=list[TagResponse],
    summary="Получить неиспользуемые теги",
    description="Теги с reference_count = 0.",
)
async def get_unused_tags(service: TagService = Depends(get_tag_service)) -> list[TagResponse]:
    tags = await service.get_unused_tags()
    return [TagResponse.model_validate(t) for t in tags]


@router.get("/search", response_model=list[TagResponse], summary="Поиск тегов")
async def search_tags(
    q: str = Query(..., min_length=1, description="Подстрока названия"),
    service: TagService = Depends(get_tag_service),
) -> list[TagResponse]:
    tags = await service.search_tags(q)
    return [TagResponse.model_validate(t) for t in tags]


@router.get(
    "/{tag_id}",
    response_model=TagResponse,
    summary="Получить тег по ID",
    responses={404: {"model": ErrorResponse, "description": "Не найден"}},
)
async def get_tag(tag_id: int, service: TagService = Depends(get_tag_service)) -> TagResponse:
    try:
        tag = await service.get_tag(tag_id)
    except ValueError as e:
        raise to_api_error(e) from e
    return TagResponse.model_validate(tag)


@router.get(
    "/{tag_id}/usage",
    response_model=TagUsageResponse,
    summary="Статистика использования тега",
    description="Сохранённый счётчик рядом с фактическим числом ссылок.",
)
async def get_tag_usage(
    tag_id: int, service: TagService = Depends(get_tag_service)
) -> TagUsageResponse:
    try:
        usage = await service.get_tag_usage(tag_id)
    except ValueError as e:
        raise to_api_error(e) from e
    return TagUsageResponse(**usage)


# ============================================================================
# CREATE / RENAME TAG
# ============================================================================


@router.post(
    "",
    response_model=TagResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Создать тег",
    dependencies=[Depends(verify_admin_key)],
    responses={400: {"model": ErrorResponse, "description": "Тег уже существует"}},
)
async def create_tag(
    data: TagCreate, service: TagService = Depends(get_tag_service)
) -> TagResponse:
    try:
        tag = await service.create_tag(data.name)
    except ValueError as e:
        raise to_api_error(e) from e
    return TagResponse.model_validate(tag)


@router.put(
    "/{tag_id}",
    response_model=TagResponse,
    summary="Переименовать тег",
    dependencies=[Depends(verify_admin_key)],
    responses={
        400: {"model": ErrorResponse, "description": "Название занято"},
        404: {"model": ErrorResponse, "description": "Не найден"},
    },
)
async def rename_tag(
    tag_id: int, data: TagUpdate, service: TagService = Depends(get_tag_service)
) -> TagResponse:
    try:
        tag = await service.rename_tag(tag_id, data.name)
    except ValueError as e:
        raise to_api_error(e) from e
    return TagResponse.model_validate(tag)


# ============================================================================
# MAINTENANCE
# ============================================================================


@router.post(
    "/recount",
    response_model=RecountResponse,
    summary="Пересчитать счётчики",
    description="Сверяет reference_count с фактическими ссылками и исправляет расхождения.",
    dependencies=[Depends(verify_admin_key)],
)
async def recount_tags(service: TagService = Depends(get_tag_service)) -> RecountResponse:
    corrected = await service.recount_references()
    return RecountResponse(corrected=corrected)


@router.delete(
    "/unused",
    response_model=SuccessResponse,
    summary="Удалить неиспользуемые теги",
    dependencies=[Depends(verify_admin_key)],
)
async def cleanup_unused_tags(service: TagService = Depends(get_tag_service)) -> SuccessResponse:
    removed = await service.cleanup_unused_tags()
    return SuccessResponse(message=f"Removed {removed} unused tags")


@router.delete(
    "/{tag_id}",
    response_model=SuccessResponse,
    summary="Удалить тег",
    description="Тег со ссылками удаляется только с force=true.",
    dependencies=[Depends(verify_admin_key)],
    responses={
        400: {"model": ErrorResponse, "description": "Тег используется"},
        404: {"model": ErrorResponse, "description": "Не найден"},
    },
)
async def delete_tag(
    tag_id: int,
    force: bool = Query(False, description="Удалить даже если тег используется"),
    service: TagService = Depends(get_tag_service),
) -> SuccessResponse:
    try:
        await service.delete_tag(tag_id, force=force)
    except ValueError as e:
        raise to_api_error(e) from e
    return SuccessResponse(message=f"Tag {tag_id} deleted")
