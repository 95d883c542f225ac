"""
Тесты для Service Layer (Бизнес-логика).

Проверяем:
- Валидацию бизнес-правил
- Координацию между репозиториями (каскадные удаления, освобождение тегов)
- Управление тегами (переименование, удаление, пересчёт счётчиков)
- Сборку markdown из outline
"""

from datetime import date

import pytest

from fireside_archive.models import Visibility
from fireside_archive.repositories import TagRepository
from fireside_archive.services import (
    DeepeningService,
    EntityNotFoundError,
    FiresideFamilyService,
    FiresideService,
    OutlineService,
    SnippetService,
    TagInput,
    TagService,
)


async def create_fireside(db, family_id: int | None = None, **kwargs):
    if family_id is None:
        family = await FiresideFamilyService(db).create_family(
            owner_uid="family-general", name="General", description="General firesides"
        )
        family_id = family.id
    defaults = {"name": "Why Life?", "description": "Purpose of life"}
    defaults.update(kwargs)
    return await FiresideService(db).create_fireside(fireside_family_id=family_id, **defaults)


async def create_snippet(db, fireside_id: int, name: str = "S1", tags=None, **kwargs):
    return await SnippetService(db).create_snippet(
        fireside_id=fireside_id,
        name=name,
        text=kwargs.pop("text", f"Text of {name}"),
        natural_order=kwargs.pop("natural_order", 1.0),
        tags=tags,
        **kwargs,
    )


async def tag_count(db, name: str) -> int:
    tag = await TagRepository(db).get_by_name(name)
    return tag.reference_count


# ============================================================================
# FIRESIDE FAMILY SERVICE TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_create_family_validation(test_db):
    """Test: валидация - обязательные поля семейства."""
    service = FiresideFamilyService(test_db)

    with pytest.raises(ValueError, match="missing required fields: name"):
        await service.create_family(owner_uid="owner", name="  ", description="d")


@pytest.mark.asyncio
async def test_get_families_by_owner(test_db):
    service = FiresideFamilyService(test_db)
    await service.create_family(owner_uid="a", name="Alpha", description="d")
    await service.create_family(owner_uid="b", name="Beta", description="d")

    assert [f.name for f in await service.get_families(owner_uid="b")] == ["Beta"]
    assert len(await service.get_families()) == 2


@pytest.mark.asyncio
async def test_get_family_not_found(test_db):
    with pytest.raises(EntityNotFoundError, match="FiresideFamily with id 42 not found"):
        await FiresideFamilyService(test_db).get_family(42)


@pytest.mark.asyncio
async def test_delete_family_requires_force_and_releases_tags(test_db):
    """Test: удаление семейства с firesides только с force, счётчики тегов уменьшаются."""
    fireside = await create_fireside(test_db)
    await create_snippet(test_db, fireside.id, tags=[TagInput(name="Purpose")])
    service = FiresideFamilyService(test_db)

    with pytest.raises(ValueError, match="Use force=True"):
        await service.delete_family(fireside.fireside_family_id)

    assert await service.delete_family(fireside.fireside_family_id, force=True) is True
    assert await tag_count(test_db, "Purpose") == 0
    with pytest.raises(EntityNotFoundError):
        await FiresideService(test_db).get_fireside(fireside.id)


# ============================================================================
# FIRESIDE SERVICE TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_create_fireside_requires_existing_family(test_db):
    with pytest.raises(EntityNotFoundError, match="FiresideFamily with id 999"):
        await FiresideService(test_db).create_fireside(
            fireside_family_id=999, name="Orphan", description="d"
        )


@pytest.mark.asyncio
async def test_create_fireside_defaults_held_on_to_today(test_db):
    fireside = await create_fireside(test_db)

    assert fireside.held_on == date.today()


@pytest.mark.asyncio
async def test_firesides_listed_newest_first(test_db):
    first = await create_fireside(test_db, held_on=date(2023, 1, 1))
    second = await create_fireside(
        test_db, family_id=first.fireside_family_id, name="Later", held_on=date(2024, 1, 1)
    )

    firesides = await FiresideService(test_db).get_firesides()
    assert [f.id for f in firesides] == [second.id, first.id]


@pytest.mark.asyncio
async def test_update_fireside(test_db):
    fireside = await create_fireside(test_db)
    service = FiresideService(test_db)

    updated = await service.update_fireside(fireside.id, name=" Renamed ")
    assert updated.name == "Renamed"
    assert updated.description == "Purpose of life"

    with pytest.raises(ValueError, match="cannot be empty"):
        await service.update_fireside(fireside.id, description="   ")


@pytest.mark.asyncio
async def test_delete_fireside_with_snippets(test_db):
    fireside = await create_fireside(test_db)
    await create_snippet(test_db, fireside.id, tags=[TagInput(name="Prayer")])
    service = FiresideService(test_db)

    with pytest.raises(ValueError, match="with 1 snippets"):
        await service.delete_fireside(fireside.id)

    await service.delete_fireside(fireside.id, force=True)
    assert await tag_count(test_db, "Prayer") == 0


# ============================================================================
# SNIPPET SERVICE TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_create_snippet_stores_references(test_db):
    fireside = await create_fireside(test_db)

    snippet = await create_snippet(
        test_db,
        fireside.id,
        tags=[TagInput(name="Purpose", weight=10), TagInput(name="Creation", distance=2)],
    )

    refs = snippet.tag_references
    assert [(r.weight, r.distance) for r in refs] == [(10, 0), (1, 2)]
    purpose = await TagRepository(test_db).get_by_name("purpose")
    assert refs[0].tag_id == purpose.id
    assert purpose.reference_count == 1


@pytest.mark.asyncio
async def test_create_snippet_allows_zero_natural_order(test_db):
    fireside = await create_fireside(test_db)

    snippet = await create_snippet(test_db, fireside.id, natural_order=0.0)

    assert snippet.natural_order == 0.0
    assert snippet.tags == []


@pytest.mark.asyncio
async def test_create_snippet_requires_fireside(test_db):
    with pytest.raises(EntityNotFoundError, match="Fireside with id 5"):
        await create_snippet(test_db, 5, tags=[TagInput(name="Purpose")])

    assert await TagRepository(test_db).get_by_name("Purpose") is None


@pytest.mark.asyncio
async def test_update_snippet_without_tags_keeps_counts(test_db):
    """Test: tags=None не трогает теги, tags=[] освобождает их."""
    fireside = await create_fireside(test_db)
    snippet = await create_snippet(test_db, fireside.id, tags=[TagInput(name="Purpose")])
    service = SnippetService(test_db)

    updated = await service.update_snippet(snippet.id, name="Renamed")
    assert updated.name == "Renamed"
    assert len(updated.tag_references) == 1
    assert await tag_count(test_db, "Purpose") == 1

    cleared = await service.update_snippet(snippet.id, tags=[])
    assert cleared.tags == []
    assert await tag_count(test_db, "Purpose") == 0


@pytest.mark.asyncio
async def test_update_snippet_changes_only_metadata(test_db):
    """Test: смена веса существующего тега не меняет счётчик."""
    fireside = await create_fireside(test_db)
    snippet = await create_snippet(test_db, fireside.id, tags=[TagInput(name="Purpose")])

    updated = await SnippetService(test_db).update_snippet(
        snippet.id, tags=[TagInput(name="Purpose", weight=9)]
    )

    assert updated.tag_references[0].weight == 9
    assert await tag_count(test_db, "Purpose") == 1


@pytest.mark.asyncio
async def test_snippets_by_fireside_and_search(test_db):
    fireside = await create_fireside(test_db)
    await create_snippet(test_db, fireside.id, name="Second", natural_order=2.0)
    await create_snippet(
        test_db, fireside.id, name="First", natural_order=1.0, visibility=Visibility.PRIVATE
    )
    service = SnippetService(test_db)

    ordered = await service.get_snippets_by_fireside(fireside.id)
    assert [s.name for s in ordered] == ["First", "Second"]

    public = await service.get_snippets_by_fireside(fireside.id, public_only=True)
    assert [s.name for s in public] == ["Second"]

    assert [s.name for s in await service.search_snippets("text of first")] == ["First"]
    assert await service.search_snippets("   ") == []


@pytest.mark.asyncio
async def test_get_snippets_by_tag(test_db):
    fireside = await create_fireside(test_db)
    tagged = await create_snippet(test_db, fireside.id, tags=[TagInput(name="Soul")])
    await create_snippet(test_db, fireside.id, name="Untagged")
    soul = await TagRepository(test_db).get_by_name("Soul")

    found = await SnippetService(test_db).get_snippets_by_tag(soul.id)

    assert [s.id for s in found] == [tagged.id]


@pytest.mark.asyncio
async def test_delete_snippet_cascades_to_deepenings(test_db):
    """Test: удаление сниппета удаляет углубления и освобождает их теги."""
    fireside = await create_fireside(test_db)
    snippet = await create_snippet(test_db, fireside.id, tags=[TagInput(name="Purpose")])
    deepening = await DeepeningService(test_db).create_deepening(
        snippet_id=snippet.id,
        name="Deeper",
        text="More text",
        tags=[TagInput(name="Purpose"), TagInput(name="Soul")],
    )
    assert await tag_count(test_db, "Purpose") == 2

    await SnippetService(test_db).delete_snippet(snippet.id)

    assert await tag_count(test_db, "Purpose") == 0
    assert await tag_count(test_db, "Soul") == 0
    with pytest.raises(EntityNotFoundError):
        await DeepeningService(test_db).get_deepening(deepening.id)


# ============================================================================
# DEEPENING SERVICE TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_deepening_lifecycle(test_db):
    fireside = await create_fireside(test_db)
    snippet = await create_snippet(test_db, fireside.id)
    service = DeepeningService(test_db)

    deepening = await service.create_deepening(
        snippet_id=snippet.id, name="Deeper", text="t", tags=[TagInput(name="Soul")]
    )
    assert await tag_count(test_db, "Soul") == 1
    assert [d.id for d in await service.get_deepenings_by_snippet(snippet.id)] == [deepening.id]

    updated = await service.update_deepening(deepening.id, tags=[TagInput(name="Prayer")])
    assert len(updated.tag_references) == 1
    assert await tag_count(test_db, "Soul") == 0
    assert await tag_count(test_db, "Prayer") == 1

    await service.delete_deepening(deepening.id)
    assert await tag_count(test_db, "Prayer") == 0


@pytest.mark.asyncio
async def test_create_deepening_requires_snippet(test_db):
    with pytest.raises(EntityNotFoundError, match="Snippet with id 77"):
        await DeepeningService(test_db).create_deepening(snippet_id=77, name="n", text="t")


# ============================================================================
# TAG SERVICE TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_create_tag_rejects_case_insensitive_duplicate(test_db):
    service = TagService(test_db)
    tag = await service.create_tag("Purpose")
    assert tag.reference_count == 0

    with pytest.raises(ValueError, match="already exists"):
        await service.create_tag("PURPOSE")


@pytest.mark.asyncio
async def test_create_tag_validation(test_db):
    service = TagService(test_db)

    with pytest.raises(ValueError, match="cannot be empty"):
        await service.create_tag("   ")
    with pytest.raises(ValueError, match="longer than"):
        await service.create_tag("x" * 101)


@pytest.mark.asyncio
async def test_get_or_create_tag(test_db):
    service = TagService(test_db)

    first = await service.get_or_create_tag("Soul")
    second = await service.get_or_create_tag("soul")

    assert first.id == second.id


@pytest.mark.asyncio
async def test_rename_tag(test_db):
    """Test: смена регистра разрешена, занятое имя - нет."""
    service = TagService(test_db)
    tag = await service.create_tag("purpose")
    await service.create_tag("Creation")

    renamed = await service.rename_tag(tag.id, "Purpose")
    assert renamed.name == "Purpose"

    with pytest.raises(ValueError, match="already exists"):
        await service.rename_tag(tag.id, "creation")


@pytest.mark.asyncio
async def test_delete_tag_in_use_requires_force(test_db):
    fireside = await create_fireside(test_db)
    snippet = await create_snippet(test_db, fireside.id, tags=[TagInput(name="Purpose")])
    service = TagService(test_db)
    purpose = await service.get_tag_by_name("Purpose")

    with pytest.raises(ValueError, match="referenced 1 times"):
        await service.delete_tag(purpose.id)

    assert await service.delete_tag(purpose.id, force=True) is True

    # Висячая ссылка не мешает удалить сниппет
    assert await SnippetService(test_db).delete_snippet(snippet.id) is True


@pytest.mark.asyncio
async def test_popular_unused_and_cleanup(test_db):
    fireside = await create_fireside(test_db)
    service = TagService(test_db)
    await service.create_tag("Lonely")
    await create_snippet(test_db, fireside.id, name="A", tags=[TagInput(name="Purpose")])
    await create_snippet(
        test_db,
        fireside.id,
        name="B",
        tags=[TagInput(name="Purpose"), TagInput(name="Soul")],
    )

    popular = await service.get_popular_tags(limit=1)
    assert [t.name for t in popular] == ["Purpose"]
    assert [t.name for t in await service.get_unused_tags()] == ["Lonely"]
    assert [t.name for t in await service.search_tags("ou")] == ["Soul"]

    assert await service.cleanup_unused_tags() == 1
    assert await service.get_tag_by_name("Lonely") is None


@pytest.mark.asyncio
async def test_tag_usage(test_db):
    fireside = await create_fireside(test_db)
    snippet = await create_snippet(test_db, fireside.id, tags=[TagInput(name="Purpose")])
    await DeepeningService(test_db).create_deepening(
        snippet_id=snippet.id, name="D", text="t", tags=[TagInput(name="Purpose")]
    )
    service = TagService(test_db)
    purpose = await service.get_tag_by_name("Purpose")

    usage = await service.get_tag_usage(purpose.id)

    assert usage == {
        "tag_id": purpose.id,
        "tag_name": "Purpose",
        "reference_count": 2,
        "snippet_count": 1,
        "deepening_count": 1,
    }


@pytest.mark.asyncio
async def test_recount_references_repairs_drift(test_db):
    """Test: пересчёт восстанавливает счётчики по фактическим ссылкам."""
    fireside = await create_fireside(test_db)
    await create_snippet(test_db, fireside.id, tags=[TagInput(name="Purpose")])
    repo = TagRepository(test_db)
    purpose = await repo.get_by_name("Purpose")
    orphan = await repo.resolve_or_create("Orphan")
    await repo.set_count(purpose.id, 7)
    await repo.set_count(orphan.id, 3)

    corrected = await TagService(test_db).recount_references()

    assert corrected == {purpose.id: 1, orphan.id: 0}
    assert await tag_count(test_db, "Purpose") == 1
    assert await TagService(test_db).recount_references() == {}


# ============================================================================
# OUTLINE SERVICE TESTS
# ============================================================================


@pytest.mark.asyncio
async def test_outline_validates_items(test_db):
    fireside = await create_fireside(test_db)
    snippet = await create_snippet(test_db, fireside.id)
    service = OutlineService(test_db)
    item = {"item_id": "a", "type": "snippet", "ref_id": snippet.id}

    with pytest.raises(ValueError, match="Duplicate outline item_id 'a'"):
        await service.create_outline(
            user_id="u1", title="T", items=[item, {**item, "children": []}]
        )

    with pytest.raises(ValueError, match="Unknown outline item type"):
        await service.create_outline(user_id="u1", title="T", items=[{**item, "type": "video"}])

    with pytest.raises(EntityNotFoundError, match="Deepening with id 404"):
        await service.create_outline(
            user_id="u1",
            title="T",
            items=[{**item, "children": [{"item_id": "b", "type": "deepening", "ref_id": 404}]}],
        )


@pytest.mark.asyncio
async def test_compose_markdown(test_db):
    """Test: скрытый элемент скрывает поддерево, уровни заголовков по глубине."""
    fireside = await create_fireside(test_db)
    intro = await create_snippet(test_db, fireside.id, name="Intro", text="Intro text")
    hidden = await create_snippet(test_db, fireside.id, name="Hidden", text="Hidden text")
    deeper = await DeepeningService(test_db).create_deepening(
        snippet_id=intro.id, name="Deeper", text="Deeper text"
    )
    service = OutlineService(test_db)

    outline = await service.create_outline(
        user_id="u1",
        title="My Outline",
        items=[
            {
                "item_id": "intro",
                "type": "snippet",
                "ref_id": intro.id,
                "children": [{"item_id": "deeper", "type": "deepening", "ref_id": deeper.id}],
            },
            {
                "item_id": "hidden",
                "type": "snippet",
                "ref_id": hidden.id,
                "is_visible": False,
                "children": [{"item_id": "under-hidden", "type": "deepening", "ref_id": deeper.id}],
            },
        ],
    )

    markdown = await service.compose_markdown(outline.id)

    assert markdown == (
        "# My Outline\n\n## Intro\n\nIntro text\n\n### Deeper\n\nDeeper text\n"
    )
    assert (await service.get_outline(outline.id)).markdown == markdown


@pytest.mark.asyncio
async def test_compose_markdown_skips_deleted_records(test_db):
    fireside = await create_fireside(test_db)
    kept = await create_snippet(test_db, fireside.id, name="Kept", text="Kept text")
    gone = await create_snippet(test_db, fireside.id, name="Gone", text="Gone text")
    service = OutlineService(test_db)
    outline = await service.create_outline(
        user_id="u1",
        title="T",
        items=[
            {"item_id": "gone", "type": "snippet", "ref_id": gone.id},
            {"item_id": "kept", "type": "snippet", "ref_id": kept.id},
        ],
    )
    await SnippetService(test_db).delete_snippet(gone.id)

    markdown = await service.compose_markdown(outline.id)

    assert markdown == "# T\n\n## Kept\n\nKept text\n"


@pytest.mark.asyncio
async def test_outlines_by_user_public_and_update(test_db):
    service = OutlineService(test_db)
    private = await service.create_outline(user_id="u1", title="Private")
    await service.create_outline(user_id="u2", title="Shared", is_public=True)

    assert [o.title for o in await service.get_outlines_by_user("u1")] == ["Private"]
    assert [o.title for o in await service.get_public_outlines()] == ["Shared"]

    updated = await service.update_outline(private.id, is_public=True, title="Now shared")
    assert updated.is_public is True
    assert len(await service.get_public_outlines()) == 2

    assert await service.delete_outline(private.id) is True
    with pytest.raises(EntityNotFoundError):
        await service.get_outline(private.id)
