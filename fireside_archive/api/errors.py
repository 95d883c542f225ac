"""
Обработчики ошибок (Exception Handlers) для API.

Все ошибки API отдаются в едином формате ErrorResponse:
{"error": {"code": ..., "message": ..., "details": [...]}}

Как это работает:
1. Сервис выбрасывает ValueError / EntityNotFoundError / TagResolutionError
2. Endpoint превращает их в APIError (или handler ловит их напрямую)
3. Handler преобразует исключение в HTTP ответ
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..services import EntityNotFoundError, TagResolutionError
from .schemas import ErrorBody, ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


# =============================================================================
# CUSTOM EXCEPTIONS
# =============================================================================


class APIError(Exception):
    """
    Базовый класс для всех API ошибок.

    Использование:
        raise APIError(code="NOT_FOUND", message="Сниппет не найден", status_code=404)
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: list[dict] | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class NotFoundError(APIError):
    """
    Запись не найдена (404).

    Использование:
        raise NotFoundError("Snippet", 123)
        # Сообщение: "Snippet с id=123 не найден"
    """

    def __init__(self, resource: str, resource_id: int | str):
        super().__init__(
            code="NOT_FOUND",
            message=f"{resource} с id={resource_id} не найден",
            status_code=status.HTTP_404_NOT_FOUND,
        )

    @classmethod
    def from_service(cls, exc: EntityNotFoundError) -> "NotFoundError":
        return cls(exc.entity, exc.entity_id)


class ValidationError_(APIError):
    """
    Ошибка валидации бизнес-логики (400).

    Использование:
        raise ValidationError_("Snippet: missing required fields: text")
    """

    def __init__(self, message: str, details: list[dict] | None = None):
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
        )


def to_api_error(exc: ValueError) -> APIError:
    """ValueError сервисного слоя → APIError (404 для EntityNotFoundError, иначе 400)."""
    if isinstance(exc, EntityNotFoundError):
        return NotFoundError.from_service(exc)
    return ValidationError_(str(exc))


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================


def _render(status_code: int, code: str, message: str, details=None) -> JSONResponse:
    error_response = ErrorResponse(error=ErrorBody(code=code, message=message, details=details))
    return JSONResponse(status_code=status_code, content=error_response.model_dump())


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Обработчик для наших ошибок (APIError)."""
    logger.warning(
        "API error", extra={"code": exc.code, "error": exc.message, "path": request.url.path}
    )

    details = None
    if exc.details:
        details = [ErrorDetail(field=d["field"], message=d["message"]) for d in exc.details]

    return _render(exc.status_code, exc.code, exc.message, details)


async def tag_resolution_error_handler(request: Request, exc: TagResolutionError) -> JSONResponse:
    """
    Не удалось найти или создать тег.

    Сохранение целиком отменено (сессия откатилась), клиент может
    повторить запрос. Детали хранилища клиенту не показываем.
    """
    logger.error("Tag resolution failed", extra={"tag_name": exc.name, "path": request.url.path})
    return _render(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "TAG_RESOLUTION_FAILED",
        "Не удалось сохранить теги. Повторите попытку.",
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Обработчик для ошибок валидации Pydantic (422).

    Pydantic: {"detail": [{"loc": ["body", "tags", 0, "weight"], "msg": "..."}]}
    Наш формат: {"error": {"code": "VALIDATION_ERROR", "details": [{"field": "tags.0.weight"}]}}
    """
    logger.warning("Request validation failed", extra={"errors": exc.errors()})

    details = []
    for error in exc.errors():
        field_path = error.get("loc", [])
        field_name = field_path[-1] if field_path else "unknown"

        # Для полей из body убираем "body" из пути
        if len(field_path) > 1 and field_path[0] == "body":
            field_name = ".".join(str(p) for p in field_path[1:])

        details.append(
            ErrorDetail(field=str(field_name), message=error.get("msg", "Ошибка валидации"))
        )

    return _render(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Ошибка валидации входных данных",
        details,
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Обработчик для всех остальных ошибок (500).

    Детали внутренних ошибок клиенту не показываем.
    """
    logger.error(f"Internal Error: {type(exc).__name__}: {exc}", exc_info=True)
    return _render(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "Внутренняя ошибка сервера"
    )


# =============================================================================
# РЕГИСТРАЦИЯ HANDLERS
# =============================================================================


def register_error_handlers(app: FastAPI, debug: bool = False) -> None:
    """
    Регистрирует все error handlers в приложении FastAPI.

    В debug-режиме непойманные исключения не перехватываются,
    чтобы видеть полный stack trace.
    """
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(TagResolutionError, tag_resolution_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    if not debug:
        app.add_exception_handler(Exception, generic_error_handler)

    logger.info("Error handlers registered")
