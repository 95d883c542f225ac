"""
Тесты для API Layer (REST endpoints).

Проверяем:
- HTTP статус-коды
- Форматы запросов/ответов (JSON)
- Обработку ошибок (400, 401, 403, 404, 422) в едином формате
- Интеграцию всех слоёв (API → Service → Repository → DB)
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from fireside_archive.repositories import TagRepository


async def create_fireside(client: AsyncClient) -> int:
    family = await client.post(
        "/api/v1/fireside-families",
        json={"owner_uid": "family-general", "name": "General", "description": "Intro"},
    )
    assert family.status_code == 201
    fireside = await client.post(
        "/api/v1/firesides",
        json={
            "fireside_family_id": family.json()["id"],
            "name": "Why Life?",
            "description": "The purpose of life",
            "held_on": "2024-01-15",
        },
    )
    assert fireside.status_code == 201
    return fireside.json()["id"]


async def tag_counts(client: AsyncClient) -> dict[str, int]:
    response = await client.get("/api/v1/tags")
    assert response.status_code == 200
    return {tag["name"]: tag["reference_count"] for tag in response.json()}


# ============================================================================
# ROOT / HEALTH
# ============================================================================


@pytest.mark.asyncio
async def test_root(anonymous_client: AsyncClient):
    response = await anonymous_client.get("/")

    assert response.status_code == 200
    assert response.json()["endpoints"]["snippets"] == "/api/v1/snippets"


@pytest.mark.asyncio
async def test_health_check(anonymous_client: AsyncClient):
    response = await anonymous_client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["checks"]["database"] == "connected"


@pytest.mark.asyncio
async def test_request_id_header_is_echoed(test_client: AsyncClient):
    response = await test_client.get("/api/v1/tags", headers={"X-Request-ID": "trace-123"})

    assert response.headers["X-Request-ID"] == "trace-123"


# ============================================================================
# AUTHENTICATION
# ============================================================================


@pytest.mark.asyncio
async def test_missing_api_key(anonymous_client: AsyncClient):
    response = await anonymous_client.get("/api/v1/tags")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_invalid_api_key(anonymous_client: AsyncClient):
    response = await anonymous_client.get("/api/v1/tags", headers={"X-API-Key": "wrong"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_reader_can_read_but_not_write(reader_client: AsyncClient):
    """Test: ключ участника - чтение разрешено, админские операции - 403."""
    read = await reader_client.get("/api/v1/tags")
    assert read.status_code == 200

    write = await reader_client.post("/api/v1/tags", json={"name": "Purpose"})
    assert write.status_code == 403


@pytest.mark.asyncio
async def test_reader_can_compose_outline(test_client: AsyncClient, reader_client: AsyncClient):
    fireside_id = await create_fireside(test_client)
    snippet = await test_client.post(
        "/api/v1/snippets",
        json={"fireside_id": fireside_id, "name": "Intro", "text": "Hello", "natural_order": 1},
    )

    outline = await reader_client.post(
        "/api/v1/outlines",
        json={
            "user_id": "u1",
            "title": "Mine",
            "items": [{"item_id": "a", "type": "snippet", "ref_id": snippet.json()["id"]}],
        },
    )
    assert outline.status_code == 201

    composed = await reader_client.post(f"/api/v1/outlines/{outline.json()['id']}/markdown")
    assert composed.status_code == 200
    assert composed.json()["markdown"] == "# Mine\n\n## Intro\n\nHello\n"


# ============================================================================
# FAMILIES / FIRESIDES
# ============================================================================


@pytest.mark.asyncio
async def test_family_and_fireside_crud(test_client: AsyncClient):
    fireside_id = await create_fireside(test_client)

    fireside = await test_client.get(f"/api/v1/firesides/{fireside_id}")
    assert fireside.status_code == 200
    family_id = fireside.json()["fireside_family_id"]

    listed = await test_client.get(f"/api/v1/fireside-families/{family_id}/firesides")
    assert [f["id"] for f in listed.json()] == [fireside_id]

    updated = await test_client.put(
        f"/api/v1/firesides/{fireside_id}", json={"name": "Renamed"}
    )
    assert updated.status_code == 200
    assert updated.json()["name"] == "Renamed"

    refused = await test_client.delete(f"/api/v1/fireside-families/{family_id}")
    assert refused.status_code == 400
    assert refused.json()["error"]["code"] == "VALIDATION_ERROR"

    forced = await test_client.delete(
        f"/api/v1/fireside-families/{family_id}", params={"force": "true"}
    )
    assert forced.status_code == 200


@pytest.mark.asyncio
async def test_fireside_missing_family(test_client: AsyncClient):
    response = await test_client.post(
        "/api/v1/firesides",
        json={"fireside_family_id": 999, "name": "Orphan", "description": "d"},
    )

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


# ============================================================================
# SNIPPETS AND TAG COUNTS
# ============================================================================


@pytest.mark.asyncio
async def test_snippet_tag_counts_through_api(test_client: AsyncClient):
    """Test: Purpose → Purpose+Creation → удаление через HTTP."""
    fireside_id = await create_fireside(test_client)

    created = await test_client.post(
        "/api/v1/snippets",
        json={
            "fireside_id": fireside_id,
            "name": "S1",
            "text": "The purpose of creation",
            "natural_order": 1.0,
            "tags": [{"name": "Purpose", "weight": 10}],
        },
    )
    assert created.status_code == 201
    snippet_id = created.json()["id"]
    assert created.json()["tags"][0]["weight"] == 10
    assert await tag_counts(test_client) == {"Purpose": 1}

    updated = await test_client.put(
        f"/api/v1/snippets/{snippet_id}",
        json={"tags": [{"name": "purpose"}, {"name": "Creation", "distance": 1}]},
    )
    assert updated.status_code == 200
    assert len(updated.json()["tags"]) == 2
    assert await tag_counts(test_client) == {"Creation": 1, "Purpose": 1}

    deleted = await test_client.delete(f"/api/v1/snippets/{snippet_id}")
    assert deleted.status_code == 200
    assert await tag_counts(test_client) == {"Creation": 0, "Purpose": 0}


@pytest.mark.asyncio
async def test_snippet_duplicate_names_in_batch(test_client: AsyncClient):
    fireside_id = await create_fireside(test_client)

    response = await test_client.post(
        "/api/v1/snippets",
        json={
            "fireside_id": fireside_id,
            "name": "Soul",
            "text": "On the soul",
            "natural_order": 1.0,
            "tags": [{"name": "Soul"}, {"name": "Soul"}],
        },
    )

    assert response.status_code == 201
    assert len(response.json()["tags"]) == 1
    assert await tag_counts(test_client) == {"Soul": 1}


@pytest.mark.asyncio
async def test_snippet_invalid_tag_weight(test_client: AsyncClient):
    """Test: вес тега вне 1-10 → 422 с путём к полю, теги не созданы."""
    fireside_id = await create_fireside(test_client)

    response = await test_client.post(
        "/api/v1/snippets",
        json={
            "fireside_id": fireside_id,
            "name": "S1",
            "text": "t",
            "natural_order": 1.0,
            "tags": [{"name": "Purpose"}, {"name": "Creation", "weight": 11}],
        },
    )

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert "tags.1.weight" in [d["field"] for d in error["details"]]
    assert await tag_counts(test_client) == {}


@pytest.mark.asyncio
async def test_snippet_tag_without_id_or_name(test_client: AsyncClient):
    fireside_id = await create_fireside(test_client)

    response = await test_client.post(
        "/api/v1/snippets",
        json={
            "fireside_id": fireside_id,
            "name": "S1",
            "text": "t",
            "natural_order": 1.0,
            "tags": [{"weight": 3}],
        },
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_snippet_missing_fireside_creates_no_tags(test_client: AsyncClient):
    """Test: несуществующий fireside отклоняется до разрешения тегов."""
    response = await test_client.post(
        "/api/v1/snippets",
        json={
            "fireside_id": 999,
            "name": "S1",
            "text": "t",
            "natural_order": 1.0,
            "tags": [{"name": "Purpose"}],
        },
    )

    assert response.status_code == 404
    assert await tag_counts(test_client) == {}


@pytest.mark.asyncio
async def test_tag_resolution_failure_rolls_back(test_client: AsyncClient, monkeypatch):
    """Test: сбой разрешения тега - 503, уже созданные в запросе теги откатываются."""
    fireside_id = await create_fireside(test_client)
    original = TagRepository.resolve_or_create

    async def flaky_resolve(self, name):
        if name == "Broken":
            raise OperationalError("INSERT INTO tags", {}, Exception("database is locked"))
        return await original(self, name)

    monkeypatch.setattr(TagRepository, "resolve_or_create", flaky_resolve)

    response = await test_client.post(
        "/api/v1/snippets",
        json={
            "fireside_id": fireside_id,
            "name": "S1",
            "text": "t",
            "natural_order": 1.0,
            "tags": [{"name": "Purpose"}, {"name": "Broken"}],
        },
    )

    assert response.status_code == 503
    assert response.json()["error"]["code"] == "TAG_RESOLUTION_FAILED"
    assert await tag_counts(test_client) == {}


@pytest.mark.asyncio
async def test_snippet_not_found(test_client: AsyncClient):
    response = await test_client.get("/api/v1/snippets/999")

    assert response.status_code == 404
    assert response.json() == {
        "error": {"code": "NOT_FOUND", "message": "Snippet с id=999 не найден", "details": None}
    }


@pytest.mark.asyncio
async def test_snippet_search_and_by_tag(test_client: AsyncClient, reader_client: AsyncClient):
    fireside_id = await create_fireside(test_client)
    for name, visibility in [("Public prayer", "public"), ("Private prayer", "private")]:
        await test_client.post(
            "/api/v1/snippets",
            json={
                "fireside_id": fireside_id,
                "name": name,
                "text": "On prayer",
                "natural_order": 1.0,
                "visibility": visibility,
                "tags": [{"name": "Prayer"}],
            },
        )

    found = await reader_client.get(
        "/api/v1/snippets/search", params={"q": "PRAYER", "public_only": "true"}
    )
    assert [s["name"] for s in found.json()] == ["Public prayer"]

    tag_id = (await reader_client.get("/api/v1/tags")).json()[0]["id"]
    by_tag = await reader_client.get(f"/api/v1/snippets/by-tag/{tag_id}")
    assert len(by_tag.json()) == 2

    listed = await reader_client.get(
        f"/api/v1/firesides/{fireside_id}/snippets", params={"public_only": "true"}
    )
    assert [s["name"] for s in listed.json()] == ["Public prayer"]


@pytest.mark.asyncio
async def test_deepening_endpoints(test_client: AsyncClient):
    fireside_id = await create_fireside(test_client)
    snippet = await test_client.post(
        "/api/v1/snippets",
        json={"fireside_id": fireside_id, "name": "S", "text": "t", "natural_order": 1.0},
    )
    snippet_id = snippet.json()["id"]

    created = await test_client.post(
        "/api/v1/deepenings",
        json={"snippet_id": snippet_id, "name": "D", "text": "t", "tags": [{"name": "Soul"}]},
    )
    assert created.status_code == 201
    deepening_id = created.json()["id"]

    listed = await test_client.get(f"/api/v1/snippets/{snippet_id}/deepenings")
    assert [d["id"] for d in listed.json()] == [deepening_id]

    cleared = await test_client.put(f"/api/v1/deepenings/{deepening_id}", json={"tags": []})
    assert cleared.json()["tags"] == []
    assert await tag_counts(test_client) == {"Soul": 0}

    deleted = await test_client.delete(f"/api/v1/deepenings/{deepening_id}")
    assert deleted.status_code == 200
    assert (await test_client.get(f"/api/v1/deepenings/{deepening_id}")).status_code == 404


# ============================================================================
# TAGS
# ============================================================================


@pytest.mark.asyncio
async def test_tag_management(test_client: AsyncClient):
    created = await test_client.post("/api/v1/tags", json={"name": "Purpose"})
    assert created.status_code == 201
    tag_id = created.json()["id"]
    assert created.json()["reference_count"] == 0

    duplicate = await test_client.post("/api/v1/tags", json={"name": "PURPOSE"})
    assert duplicate.status_code == 400

    renamed = await test_client.put(f"/api/v1/tags/{tag_id}", json={"name": "Life purpose"})
    assert renamed.json()["name"] == "Life purpose"

    unused = await test_client.get("/api/v1/tags/unused")
    assert [t["id"] for t in unused.json()] == [tag_id]

    usage = await test_client.get(f"/api/v1/tags/{tag_id}/usage")
    assert usage.json()["snippet_count"] == 0

    removed = await test_client.delete("/api/v1/tags/unused")
    assert removed.json()["message"] == "Removed 1 unused tags"
    assert (await test_client.get(f"/api/v1/tags/{tag_id}")).status_code == 404


@pytest.mark.asyncio
async def test_delete_tag_in_use(test_client: AsyncClient):
    fireside_id = await create_fireside(test_client)
    await test_client.post(
        "/api/v1/snippets",
        json={
            "fireside_id": fireside_id,
            "name": "S",
            "text": "t",
            "natural_order": 1.0,
            "tags": [{"name": "Purpose"}],
        },
    )
    tag_id = (await test_client.get("/api/v1/tags/popular")).json()[0]["id"]

    refused = await test_client.delete(f"/api/v1/tags/{tag_id}")
    assert refused.status_code == 400

    forced = await test_client.delete(f"/api/v1/tags/{tag_id}", params={"force": "true"})
    assert forced.status_code == 200


@pytest.mark.asyncio
async def test_recount_endpoint(test_client: AsyncClient):
    response = await test_client.post("/api/v1/tags/recount")

    assert response.status_code == 200
    assert response.json() == {"corrected": {}}
