"""
API endpoints для outlines.

Outline собирают участники (ключ участника достаточен), поэтому здесь
нет проверки админского ключа.
"""

from fastapi import APIRouter, Depends, Query, status

from ..services import OutlineService
from .dependencies import get_outline_service
from .errors import to_api_error
from .schemas import (
    ErrorResponse,
    OutlineCreate,
    OutlineMarkdownResponse,
    OutlineResponse,
    OutlineUpdate,
    SuccessResponse,
)

router = APIRouter(prefix="/outlines", tags=["outlines"])


@router.post(
    "",
    response_model=OutlineResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Создать outline",
    responses={
        400: {"model": ErrorResponse, "description": "Некорректные элементы"},
        404: {"model": ErrorResponse, "description": "Элемент ссылается на несуществующую запись"},
    },
)
async def create_outline(
    data: OutlineCreate, service: OutlineService = Depends(get_outline_service)
) -> OutlineResponse:
    try:
        outline = await service.create_outline(
            user_id=data.user_id,
            title=data.title,
            items=[item.model_dump(mode="json") for item in data.items],
            is_public=data.is_public,
        )
    except ValueError as e:
        raise to_api_error(e) from e
    return OutlineResponse.model_validate(outline)


@router.get("", response_model=list[OutlineResponse], summary="Получить outlines")
async def get_outlines(
    user_id: str | None = Query(None, description="Outlines пользователя; без него - публичные"),
    service: OutlineService = Depends(get_outline_service),
) -> list[OutlineResponse]:
    if user_id:
        outlines = await service.get_outlines_by_user(user_id)
    else:
        outlines = await service.get_public_outlines()
    return [OutlineResponse.model_validate(o) for o in outlines]


@router.get(
    "/{outline_id}",
    response_model=OutlineResponse,
    summary="Получить outline по ID",
    responses={404: {"model": ErrorResponse, "description": "Не найден"}},
)
async def get_outline(
    outline_id: int, service: OutlineService = Depends(get_outline_service)
) -> OutlineResponse:
    try:
        outline = await service.get_outline(outline_id)
    except ValueError as e:
        raise to_api_error(e) from e
    return OutlineResponse.model_validate(outline)


@router.put("/{outline_id}", response_model=OutlineResponse, summary="Обновить outline")
async def update_outline(
    outline_id: int,
    data: OutlineUpdate,
    service: OutlineService = Depends(get_outline_service),
) -> OutlineResponse:
    items = None
    if data.items is not None:
        items = [item.model_dump(mode="json") for item in data.items]
    try:
        outline = await service.update_outline(
            outline_id, title=data.title, items=items, is_public=data.is_public
        )
    except ValueError as e:
        raise to_api_error(e) from e
    return OutlineResponse.model_validate(outline)


@router.post(
    "/{outline_id}/markdown",
    response_model=OutlineMarkdownResponse,
    summary="Собрать markdown",
    description="Собирает документ из видимых элементов и сохраняет его в outline.",
)
async def compose_markdown(
    outline_id: int, service: OutlineService = Depends(get_outline_service)
) -> OutlineMarkdownResponse:
    try:
        markdown = await service.compose_markdown(outline_id)
    except ValueError as e:
        raise to_api_error(e) from e
    return OutlineMarkdownResponse(outline_id=outline_id, markdown=markdown)


@router.delete("/{outline_id}", response_model=SuccessResponse, summary="Удалить outline")
async def delete_outline(
    outline_id: int, service: OutlineService = Depends(get_outline_service)
) -> SuccessResponse:
    try:
        await service.delete_outline(outline_id)
    except ValueError as e:
        raise to_api_error(e) from e
    return SuccessResponse(message=f"Outline {outline_id} deleted")
