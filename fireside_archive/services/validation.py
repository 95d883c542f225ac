"""Shared validation helpers for services."""

from typing import Any


def require_fields(entity: str, **fields: Any) -> None:
    """
    Проверить обязательные поля до любых обращений к БД.

    Пустая строка (или строка из пробелов) считается отсутствующим значением,
    ноль - нет (natural_order = 0 допустим).

    Raises:
        ValueError: Если хотя бы одно поле отсутствует

    Пример:
        require_fields("Snippet", name=name, text=text)
    """
    missing = [
        field
        for field, value in fields.items()
        if value is None or (isinstance(value, str) and not value.strip())
    ]
    if missing:
        raise ValueError(f"{entity}: missing required fields: {', '.join(missing)}")


def reject_blank(entity: str, **fields: Any) -> None:
    """Для частичного обновления: переданное поле не может быть пустой строкой."""
    blank = [
        field
        for field, value in fields.items()
        if isinstance(value, str) and not value.strip()
    ]
    if blank:
        raise ValueError(f"{entity}: fields cannot be empty: {', '.join(blank)}")
