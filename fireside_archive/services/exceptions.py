"""Исключения сервисного слоя."""


class EntityNotFoundError(ValueError):
    """
    Запрошенная запись не найдена.

    Наследует ValueError: существующий код, ловящий ValueError, продолжает
    работать, а API-слой отличает этот случай и отвечает 404.
    """

    def __init__(self, entity: str, entity_id: int | str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} with id {entity_id} not found")


class TagResolutionError(Exception):
    """
    Хранилище упало при поиске или создании тега по имени.

    Весь пакет тегов прерывается: счётчики не меняются, сущность не
    сохраняется. API-слой отвечает 503 TAG_RESOLUTION_FAILED.
    """

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Failed to resolve tag '{name}'")
