"""
API endpoints для семейств firesides.

Семейство - верхний уровень архива: FiresideFamily → Fireside → Snippet.
"""

from fastapi import APIRouter, Depends, Query, status

from ..services import FiresideFamilyService, FiresideService
from .dependencies import get_family_service, get_fireside_service, verify_admin_key
from .errors import to_api_error
from .schemas import (
    ErrorResponse,
    FiresideFamilyCreate,
    FiresideFamilyResponse,
    FiresideFamilyUpdate,
    FiresideResponse,
    SuccessResponse,
)

router = APIRouter(prefix="/fireside-families", tags=["fireside-families"])


# ============================================================================
# CREATE
# ============================================================================


@router.post(
    "",
    response_model=FiresideFamilyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Создать семейство",
    dependencies=[Depends(verify_admin_key)],
    responses={400: {"model": ErrorResponse, "description": "Ошибка валидации"}},
)
async def create_family(
    data: FiresideFamilyCreate, service: FiresideFamilyService = Depends(get_family_service)
) -> FiresideFamilyResponse:
    try:
        family = await service.create_family(
            owner_uid=data.owner_uid, name=data.name, description=data.description
        )
    except ValueError as e:
        raise to_api_error(e) from e
    return FiresideFamilyResponse.model_validate(family)


# ============================================================================
# READ
# ============================================================================


@router.get("", response_model=list[FiresideFamilyResponse], summary="Получить семейства")
async def get_families(
    owner_uid: str | None = Query(None, description="Фильтр по владельцу"),
    service: FiresideFamilyService = Depends(get_family_service),
) -> list[FiresideFamilyResponse]:
    """
    Примеры запросов:
    ```
    GET /fireside-families
    GET /fireside-families?owner_uid=family-general
    ```
    """
    families = await service.get_families(owner_uid=owner_uid)
    return [FiresideFamilyResponse.model_validate(f) for f in families]


@router.get(
    "/{family_id}",
    response_model=FiresideFamilyResponse,
    summary="Получить семейство по ID",
    responses={404: {"model": ErrorResponse, "description": "Не найдено"}},
)
async def get_family(
    family_id: int, service: FiresideFamilyService = Depends(get_family_service)
) -> FiresideFamilyResponse:
    try:
        family = await service.get_family(family_id)
    except ValueError as e:
        raise to_api_error(e) from e
    return FiresideFamilyResponse.model_validate(family)


@router.get(
    "/{family_id}/firesides",
    response_model=list[FiresideResponse],
    summary="Firesides семейства",
)
async def get_family_firesides(
    family_id: int, service: FiresideService = Depends(get_fireside_service)
) -> list[FiresideResponse]:
    try:
        firesides = await service.get_firesides_by_family(family_id)
    except ValueError as e:
        raise to_api_error(e) from e
    return [FiresideResponse.model_validate(f) for f in firesides]


# ============================================================================
# UPDATE / DELETE
# ============================================================================


@router.put(
    "/{family_id}",
    response_model=FiresideFamilyResponse,
    summary="Обновить семейство",
    dependencies=[Depends(verify_admin_key)],
)
async def update_family(
    family_id: int,
    data: FiresideFamilyUpdate,
    service: FiresideFamilyService = Depends(get_family_service),
) -> FiresideFamilyResponse:
    try:
        family = await service.update_family(
            family_id, name=data.name, description=data.description
        )
    except ValueError as e:
        raise to_api_error(e) from e
    return FiresideFamilyResponse.model_validate(family)


@router.delete(
    "/{family_id}",
    response_model=SuccessResponse,
    summary="Удалить семейство",
    description="force=true удаляет и все firesides семейства со сниппетами.",
    dependencies=[Depends(verify_admin_key)],
)
async def delete_family(
    family_id: int,
    force: bool = Query(False, description="Удалить вместе с firesides"),
    service: FiresideFamilyService = Depends(get_family_service),
) -> SuccessResponse:
    try:
        await service.delete_family(family_id, force=force)
    except ValueError as e:
        raise to_api_error(e) from e
    return SuccessResponse(message=f"Fireside family {family_id} deleted")
