"""API endpoints для firesides."""

from fastapi import APIRouter, Depends, Query, status

from ..services import FiresideService, SnippetService
from .dependencies import get_fireside_service, get_snippet_service, verify_admin_key
from .errors import to_api_error
from .schemas import (
    ErrorResponse,
    FiresideCreate,
    FiresideResponse,
    FiresideUpdate,
    SnippetResponse,
    SuccessResponse,
)

router = APIRouter(prefix="/firesides", tags=["firesides"])


@router.post(
    "",
    response_model=FiresideResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Создать fireside",
    dependencies=[Depends(verify_admin_key)],
    responses={
        400: {"model": ErrorResponse, "description": "Ошибка валидации"},
        404: {"model": ErrorResponse, "description": "Семейство не найдено"},
    },
)
async def create_fireside(
    data: FiresideCreate, service: FiresideService = Depends(get_fireside_service)
) -> FiresideResponse:
    try:
        fireside = await service.create_fireside(
            fireside_family_id=data.fireside_family_id,
            name=data.name,
            description=data.description,
            held_on=data.held_on,
        )
    except ValueError as e:
        raise to_api_error(e) from e
    return FiresideResponse.model_validate(fireside)


@router.get("", response_model=list[FiresideResponse], summary="Получить firesides")
async def get_firesides(
    skip: int = Query(0, ge=0, description="Пропустить N записей"),
    limit: int = Query(50, ge=1, le=200, description="Максимум записей"),
    service: FiresideService = Depends(get_fireside_service),
) -> list[FiresideResponse]:
    """Firesides от новых к старым."""
    firesides = await service.get_firesides(skip=skip, limit=limit)
    return [FiresideResponse.model_validate(f) for f in firesides]


@router.get(
    "/{fireside_id}",
    response_model=FiresideResponse,
    summary="Получить fireside по ID",
    responses={404: {"model": ErrorResponse, "description": "Не найден"}},
)
async def get_fireside(
    fireside_id: int, service: FiresideService = Depends(get_fireside_service)
) -> FiresideResponse:
    try:
        fireside = await service.get_fireside(fireside_id)
    except ValueError as e:
        raise to_api_error(e) from e
    return FiresideResponse.model_validate(fireside)


@router.get(
    "/{fireside_id}/snippets",
    response_model=list[SnippetResponse],
    summary="Сниппеты fireside",
    description="Сниппеты в естественном порядке (natural_order).",
)
async def get_fireside_snippets(
    fireside_id: int,
    public_only: bool = Query(False, description="Только публичные"),
    service: SnippetService = Depends(get_snippet_service),
) -> list[SnippetResponse]:
    try:
        snippets = await service.get_snippets_by_fireside(fireside_id, public_only=public_only)
    except ValueError as e:
        raise to_api_error(e) from e
    return [SnippetResponse.model_validate(s) for s in snippets]


@router.put(
    "/{fireside_id}",
    response_model=FiresideResponse,
    summary="Обновить fireside",
    dependencies=[Depends(verify_admin_key)],
)
async def update_fireside(
    fireside_id: int,
    data: FiresideUpdate,
    service: FiresideService = Depends(get_fireside_service),
) -> FiresideResponse:
    try:
        fireside = await service.update_fireside(
            fireside_id,
            fireside_family_id=data.fireside_family_id,
            name=data.name,
            description=data.description,
            held_on=data.held_on,
        )
    except ValueError as e:
        raise to_api_error(e) from e
    return FiresideResponse.model_validate(fireside)


@router.delete(
    "/{fireside_id}",
    response_model=SuccessResponse,
    summary="Удалить fireside",
    description="force=true удаляет и сниппеты (счётчики тегов уменьшаются).",
    dependencies=[Depends(verify_admin_key)],
)
async def delete_fireside(
    fireside_id: int,
    force: bool = Query(False, description="Удалить вместе со сниппетами"),
    service: FiresideService = Depends(get_fireside_service),
) -> SuccessResponse:
    try:
        await service.delete_fireside(fireside_id, force=force)
    except ValueError as e:
        raise to_api_error(e) from e
    return SuccessResponse(message=f"Fireside {fireside_id} deleted")
