"""
Pydantic схемы для API.

DTOs (Data Transfer Objects) - объекты для передачи данных через HTTP.
Схемы отделены от моделей SQLAlchemy: клиент видит только то, что мы
явно описали, а входящие данные проходят валидацию до сервисного слоя.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..models import OutlineItemType, Visibility
from ..services import TagInput

# ============================================================================
# TAG SCHEMAS
# ============================================================================


class TagInputSchema(BaseModel):
    """
    Тег в запросе на сохранение сниппета или углубления.

    Либо tag_id существующего тега, либо name (тег будет найден
    без учёта регистра или создан).

    Примеры:
    {"tag_id": 3, "weight": 5, "distance": 0}
    {"name": "Purpose", "weight": 8, "distance": 1}
    """

    tag_id: int | None = Field(None, description="ID существующего тега")
    name: str | None = Field(None, min_length=1, max_length=100, description="Название тега")
    weight: int = Field(1, ge=1, le=10, description="Вес (1-10)")
    distance: int = Field(0, ge=0, description="Дистанция (0 и больше)")

    @model_validator(mode="after")
    def _require_id_or_name(self) -> "TagInputSchema":
        if self.tag_id is None and not (self.name and self.name.strip()):
            raise ValueError("Either tag_id or name is required")
        return self

    def to_input(self) -> TagInput:
        return TagInput(
            tag_id=self.tag_id, name=self.name, weight=self.weight, distance=self.distance
        )


class TagReferenceResponse(BaseModel):
    """Ссылка на тег внутри сниппета или углубления."""

    tag_id: int
    weight: int
    distance: int


class TagCreate(BaseModel):
    """
    Схема для создания тега (POST /tags).

    Пример:
    {"name": "Purpose"}
    """

    name: str = Field(..., min_length=1, max_length=100, description="Название тега")


class TagUpdate(BaseModel):
    """Схема для переименования тега."""

    name: str = Field(..., min_length=1, max_length=100)


class TagResponse(BaseModel):
    """
    Тег в ответе.

    Пример:
    {"id": 1, "name": "Purpose", "reference_count": 3, ...}
    """

    id: int
    name: str
    reference_count: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TagUsageResponse(BaseModel):
    """Сохранённый счётчик и фактическое число ссылок."""

    tag_id: int
    tag_name: str
    reference_count: int
    snippet_count: int
    deepening_count: int


class RecountResponse(BaseModel):
    """Результат пересчёта счётчиков: {tag_id: новое значение}."""

    corrected: dict[int, int]


# ============================================================================
# FIRESIDE FAMILY SCHEMAS
# ============================================================================


class FiresideFamilyCreate(BaseModel):
    """
    Пример запроса:
    {
        "owner_uid": "family-general",
        "name": "General Firesides",
        "description": "Introductory firesides"
    }
    """

    owner_uid: str = Field(..., min_length=1, max_length=128)
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)


class FiresideFamilyUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, min_length=1)


class FiresideFamilyResponse(BaseModel):
    id: int
    owner_uid: str
    name: str
    description: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# FIRESIDE SCHEMAS
# ============================================================================


class FiresideCreate(BaseModel):
    """
    Пример запроса:
    {
        "fireside_family_id": 1,
        "name": "Why Life?",
        "description": "The purpose of life",
        "held_on": "2024-01-15"
    }
    """

    fireside_family_id: int
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    held_on: date | None = Field(None, description="Дата проведения (по умолчанию сегодня)")


class FiresideUpdate(BaseModel):
    fireside_family_id: int | None = None
    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, min_length=1)
    held_on: date | None = None


class FiresideResponse(BaseModel):
    id: int
    fireside_family_id: int
    name: str
    description: str
    held_on: date
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# SNIPPET SCHEMAS
# ============================================================================


class SnippetCreate(BaseModel):
    """
    Схема для создания сниппета (POST /snippets).

    Пример запроса:
    {
        "fireside_id": 1,
        "name": "The Purpose of Creation",
        "text": "# The Purpose of Creation ...",
        "natural_order": 1.0,
        "tags": [{"name": "Purpose", "weight": 10}, {"tag_id": 4}]
    }
    """

    fireside_id: int
    name: str = Field(..., min_length=1, max_length=300)
    text: str = Field(..., min_length=1, description="Текст (Markdown)")
    natural_order: float = Field(..., description="Позиция внутри fireside")
    visibility: Visibility = Visibility.PUBLIC
    tags: list[TagInputSchema] = Field(default_factory=list)


class SnippetUpdate(BaseModel):
    """
    Схема для обновления сниппета.

    tags не передан - теги не меняются; tags=[] - убрать все теги.
    """

    fireside_id: int | None = None
    name: str | None = Field(None, min_length=1, max_length=300)
    text: str | None = Field(None, min_length=1)
    natural_order: float | None = None
    visibility: Visibility | None = None
    tags: list[TagInputSchema] | None = None


class SnippetResponse(BaseModel):
    id: int
    fireside_id: int
    name: str
    text: str
    natural_order: float
    visibility: Visibility
    tags: list[TagReferenceResponse] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# DEEPENING SCHEMAS
# ============================================================================


class DeepeningCreate(BaseModel):
    snippet_id: int
    name: str = Field(..., min_length=1, max_length=300)
    text: str = Field(..., min_length=1, description="Текст (Markdown)")
    tags: list[TagInputSchema] = Field(default_factory=list)


class DeepeningUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=300)
    text: str | None = Field(None, min_length=1)
    tags: list[TagInputSchema] | None = None


class DeepeningResponse(BaseModel):
    id: int
    snippet_id: int
    name: str
    text: str
    tags: list[TagReferenceResponse] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# OUTLINE SCHEMAS
# ============================================================================


class OutlineItemSchema(BaseModel):
    """
    Элемент outline (рекурсивный).

    Пример:
    {
        "item_id": "intro",
        "type": "snippet",
        "ref_id": 1,
        "is_visible": true,
        "children": [{"item_id": "intro-more", "type": "deepening", "ref_id": 2}]
    }
    """

    item_id: str = Field(..., min_length=1, max_length=64)
    type: OutlineItemType
    ref_id: int
    is_visible: bool = True
    children: list["OutlineItemSchema"] = Field(default_factory=list)


class OutlineCreate(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=128)
    title: str = Field(..., min_length=1, max_length=300)
    items: list[OutlineItemSchema] = Field(default_factory=list)
    is_public: bool = False


class OutlineUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=300)
    items: list[OutlineItemSchema] | None = None
    is_public: bool | None = None


class OutlineResponse(BaseModel):
    id: int
    user_id: str
    title: str
    items: list[OutlineItemSchema] = []
    markdown: str | None
    is_public: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OutlineMarkdownResponse(BaseModel):
    outline_id: int
    markdown: str


# ============================================================================
# COMMON SCHEMAS
# ============================================================================


class ErrorDetail(BaseModel):
    """
    Детали ошибки для конкретного поля.

    Пример:
    {"field": "tags.0.weight", "message": "Input should be less than or equal to 10"}
    """

    field: str = Field(..., description="Название поля с ошибкой")
    message: str = Field(..., description="Описание ошибки")


class ErrorBody(BaseModel):
    """
    Тело ошибки с кодом и деталями.

    Коды:
    - VALIDATION_ERROR: ошибка валидации
    - NOT_FOUND: запись не найдена
    - TAG_RESOLUTION_FAILED: не удалось найти или создать тег
    - INTERNAL_ERROR: внутренняя ошибка сервера
    """

    code: str = Field(..., description="Код ошибки")
    message: str = Field(..., description="Человекочитаемое сообщение")
    details: list[ErrorDetail] | None = Field(default=None, description="Ошибки по полям")


class ErrorResponse(BaseModel):
    """
    Единый формат ответа для всех ошибок API.

    Пример:
    {
        "error": {
            "code": "NOT_FOUND",
            "message": "Snippet с id=999 не найден",
            "details": null
        }
    }
    """

    error: ErrorBody


class SuccessResponse(BaseModel):
    """
    Схема для успешных операций без возврата данных.

    Пример:
    {"message": "Snippet deleted"}
    """

    message: str
