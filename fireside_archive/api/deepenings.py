"""API endpoints для углублений (deepenings)."""

from fastapi import APIRouter, Depends, status

from ..services import DeepeningService
from .dependencies import get_deepening_service, verify_admin_key
from .errors import to_api_error
from .schemas import (
    DeepeningCreate,
    DeepeningResponse,
    DeepeningUpdate,
    ErrorResponse,
    SuccessResponse,
)

router = APIRouter(prefix="/deepenings", tags=["deepenings"])


@router.post(
    "",
    response_model=DeepeningResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Создать углубление",
    dependencies=[Depends(verify_admin_key)],
    responses={
        400: {"model": ErrorResponse, "description": "Ошибка валидации"},
        404: {"model": ErrorResponse, "description": "Сниппет не найден"},
        503: {"model": ErrorResponse, "description": "Не удалось разрешить тег"},
    },
)
async def create_deepening(
    data: DeepeningCreate, service: DeepeningService = Depends(get_deepening_service)
) -> DeepeningResponse:
    try:
        deepening = await service.create_deepening(
            snippet_id=data.snippet_id,
            name=data.name,
            text=data.text,
            tags=[t.to_input() for t in data.tags],
        )
    except ValueError as e:
        raise to_api_error(e) from e
    return DeepeningResponse.model_validate(deepening)


@router.get(
    "/{deepening_id}",
    response_model=DeepeningResponse,
    summary="Получить углубление по ID",
    responses={404: {"model": ErrorResponse, "description": "Не найдено"}},
)
async def get_deepening(
    deepening_id: int, service: DeepeningService = Depends(get_deepening_service)
) -> DeepeningResponse:
    try:
        deepening = await service.get_deepening(deepening_id)
    except ValueError as e:
        raise to_api_error(e) from e
    return DeepeningResponse.model_validate(deepening)


@router.put(
    "/{deepening_id}",
    response_model=DeepeningResponse,
    summary="Обновить углубление",
    description="Поле tags не передано - теги не меняются; tags=[] - убрать все теги.",
    dependencies=[Depends(verify_admin_key)],
)
async def update_deepening(
    deepening_id: int,
    data: DeepeningUpdate,
    service: DeepeningService = Depends(get_deepening_service),
) -> DeepeningResponse:
    tags = None if data.tags is None else [t.to_input() for t in data.tags]
    try:
        deepening = await service.update_deepening(
            deepening_id, name=data.name, text=data.text, tags=tags
        )
    except ValueError as e:
        raise to_api_error(e) from e
    return DeepeningResponse.model_validate(deepening)


@router.delete(
    "/{deepening_id}",
    response_model=SuccessResponse,
    summary="Удалить углубление",
    dependencies=[Depends(verify_admin_key)],
)
async def delete_deepening(
    deepening_id: int, service: DeepeningService = Depends(get_deepening_service)
) -> SuccessResponse:
    try:
        await service.delete_deepening(deepening_id)
    except ValueError as e:
        raise to_api_error(e) from e
    return SuccessResponse(message=f"Deepening {deepening_id} deleted")
