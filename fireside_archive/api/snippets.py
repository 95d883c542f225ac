"""
API endpoints для сниппетов.

Сниппет - фрагмент fireside с тегами. При сохранении теги разрешаются
(по id или по имени без учёта регистра) и счётчики ссылок сверяются
с прежним набором в одной транзакции.
"""

from fastapi import APIRouter, Depends, Query, status

from ..services import DeepeningService, SnippetService
from .dependencies import get_deepening_service, get_snippet_service, verify_admin_key
from .errors import to_api_error
from .schemas import (
    DeepeningResponse,
    ErrorResponse,
    SnippetCreate,
    SnippetResponse,
    SnippetUpdate,
    SuccessResponse,
)

router = APIRouter(prefix="/snippets", tags=["snippets"])


# ============================================================================
# CREATE SNIPPET
# ============================================================================


@router.post(
    "",
    response_model=SnippetResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Создать сниппет",
    description="Создать сниппет. Новые теги создаются по имени, счётчики увеличиваются.",
    dependencies=[Depends(verify_admin_key)],
    responses={
        400: {"model": ErrorResponse, "description": "Ошибка валидации"},
        404: {"model": ErrorResponse, "description": "Fireside не найден"},
        503: {"model": ErrorResponse, "description": "Не удалось разрешить тег"},
    },
)
async def create_snippet(
    data: SnippetCreate, service: SnippetService = Depends(get_snippet_service)
) -> SnippetResponse:
    """
    Пример запроса:
    ```json
    {
        "fireside_id": 1,
        "name": "The Purpose of Creation",
        "text": "...",
        "natural_order": 1.0,
        "tags": [{"name": "Purpose", "weight": 10}, {"name": "Creation", "distance": 1}]
    }
    ```
    """
    try:
        snippet = await service.create_snippet(
            fireside_id=data.fireside_id,
            name=data.name,
            text=data.text,
            natural_order=data.natural_order,
            visibility=data.visibility,
            tags=[t.to_input() for t in data.tags],
        )
    except ValueError as e:
        raise to_api_error(e) from e
    return SnippetResponse.model_validate(snippet)


# ============================================================================
# READ
# ============================================================================


@router.get(
    "/search",
    response_model=list[SnippetResponse],
    summary="Поиск сниппетов",
    description="Поиск по подстроке в названии и тексте (без учёта регистра).",
)
async def search_snippets(
    q: str = Query(..., min_length=1, description="Поисковый запрос"),
    public_only: bool = Query(False, description="Только публичные"),
    service: SnippetService = Depends(get_snippet_service),
) -> list[SnippetResponse]:
    snippets = await service.search_snippets(q, public_only=public_only)
    return [SnippetResponse.model_validate(s) for s in snippets]


@router.get(
    "/by-tag/{tag_id}",
    response_model=list[SnippetResponse],
    summary="Сниппеты с тегом",
)
async def get_snippets_by_tag(
    tag_id: int, service: SnippetService = Depends(get_snippet_service)
) -> list[SnippetResponse]:
    snippets = await service.get_snippets_by_tag(tag_id)
    return [SnippetResponse.model_validate(s) for s in snippets]


@router.get(
    "/{snippet_id}",
    response_model=SnippetResponse,
    summary="Получить сниппет по ID",
    responses={404: {"model": ErrorResponse, "description": "Не найден"}},
)
async def get_snippet(
    snippet_id: int, service: SnippetService = Depends(get_snippet_service)
) -> SnippetResponse:
    try:
        snippet = await service.get_snippet(snippet_id)
    except ValueError as e:
        raise to_api_error(e) from e
    return SnippetResponse.model_validate(snippet)


@router.get(
    "/{snippet_id}/deepenings",
    response_model=list[DeepeningResponse],
    summary="Углубления сниппета",
)
async def get_snippet_deepenings(
    snippet_id: int, service: DeepeningService = Depends(get_deepening_service)
) -> list[DeepeningResponse]:
    try:
        deepenings = await service.get_deepenings_by_snippet(snippet_id)
    except ValueError as e:
        raise to_api_error(e) from e
    return [DeepeningResponse.model_validate(d) for d in deepenings]


# ============================================================================
# UPDATE SNIPPET
# ============================================================================


@router.put(
    "/{snippet_id}",
    response_model=SnippetResponse,
    summary="Обновить сниппет",
    description="Поле tags не передано - теги не меняются; tags=[] - убрать все теги.",
    dependencies=[Depends(verify_admin_key)],
    responses={
        400: {"model": ErrorResponse, "description": "Ошибка валидации"},
        404: {"model": ErrorResponse, "description": "Не найден"},
        503: {"model": ErrorResponse, "description": "Не удалось разрешить тег"},
    },
)
async def update_snippet(
    snippet_id: int,
    data: SnippetUpdate,
    service: SnippetService = Depends(get_snippet_service),
) -> SnippetResponse:
    tags = None if data.tags is None else [t.to_input() for t in data.tags]
    try:
        snippet = await service.update_snippet(
            snippet_id,
            fireside_id=data.fireside_id,
            name=data.name,
            text=data.text,
            natural_order=data.natural_order,
            visibility=data.visibility,
            tags=tags,
        )
    except ValueError as e:
        raise to_api_error(e) from e
    return SnippetResponse.model_validate(snippet)


# ============================================================================
# DELETE SNIPPET
# ============================================================================


@router.delete(
    "/{snippet_id}",
    response_model=SuccessResponse,
    summary="Удалить сниппет",
    description="Удаляет сниппет и его углубления, счётчики тегов уменьшаются.",
    dependencies=[Depends(verify_admin_key)],
    responses={404: {"model": ErrorResponse, "description": "Не найден"}},
)
async def delete_snippet(
    snippet_id: int, service: SnippetService = Depends(get_snippet_service)
) -> SuccessResponse:
    try:
        await service.delete_snippet(snippet_id)
    except ValueError as e:
        raise to_api_error(e) from e
    return SuccessResponse(message=f"Snippet {snippet_id} deleted")
