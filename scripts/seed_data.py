#!/usr/bin/env python3
"""
Seed script: наполняет архив примерами через HTTP API.

Сервер должен быть запущен (uvicorn fireside_archive.main:app), таблицы
созданы (python init_db.py или alembic upgrade head).
"""

import os

import requests

API_URL = os.environ.get("API_URL", "http://localhost:8000/api/v1")
ADMIN_API_KEY = os.environ.get("ADMIN_API_KEY", "dev-admin-key-change-in-production")
HEADERS = {"X-API-Key": ADMIN_API_KEY, "Content-Type": "application/json"}

FAMILY = {
    "owner_uid": "family-general",
    "name": "General Firesides",
    "description": "Вводные беседы о смысле жизни",
}

# Firesides и их сниппеты; теги задаются по имени и создаются при первом упоминании
FIRESIDES = [
    {
        "name": "Why Life?",
        "description": "The purpose of life and creation",
        "held_on": "2024-01-15",
        "snippets": [
            {
                "name": "The Purpose of Creation",
                "text": "Why were we created? ...",
                "tags": [{"name": "Purpose", "weight": 10}, {"name": "Creation", "weight": 6}],
                "deepenings": [
                    {
                        "name": "Creation out of love",
                        "text": "...",
                        "tags": [{"name": "Love", "weight": 8}, {"name": "Creation"}],
                    }
                ],
            },
            {
                "name": "The Soul",
                "text": "What is the soul? ...",
                "tags": [{"name": "Soul", "weight": 9}, {"name": "purpose", "distance": 1}],
            },
        ],
    },
    {
        "name": "Prayer",
        "description": "Conversation with the Creator",
        "held_on": "2024-02-12",
        "snippets": [
            {
                "name": "What is prayer?",
                "text": "Prayer is ...",
                "visibility": "public",
                "tags": [{"name": "Prayer", "weight": 10}, {"name": "Soul", "distance": 2}],
            },
        ],
    },
]


def post(path, payload):
    """POST в API; при ошибке печатает ответ и возвращает None."""
    response = requests.post(f"{API_URL}{path}", headers=HEADERS, json=payload, timeout=10)
    if response.status_code == 201:
        return response.json()
    print(f"Error POST {path}: {response.status_code} {response.text}")
    return None


def main():
    print("=" * 60)
    print("Seeding Fireside Archive")
    print("=" * 60)

    family = post("/fireside-families", FAMILY)
    if not family:
        return
    print(f"\n📁 {family['name']} (id={family['id']})")

    snippet_total = 0
    for fireside_data in FIRESIDES:
        snippets = fireside_data["snippets"]
        fireside = post(
            "/firesides",
            {
                "fireside_family_id": family["id"],
                "name": fireside_data["name"],
                "description": fireside_data["description"],
                "held_on": fireside_data["held_on"],
            },
        )
        if not fireside:
            continue
        print(f"\n  🔥 {fireside['name']} ({fireside['held_on']})")

        for order, snippet_data in enumerate(snippets, start=1):
            snippet = post(
                "/snippets",
                {
                    "fireside_id": fireside["id"],
                    "name": snippet_data["name"],
                    "text": snippet_data["text"],
                    "natural_order": float(order),
                    "visibility": snippet_data.get("visibility", "public"),
                    "tags": snippet_data.get("tags", []),
                },
            )
            if not snippet:
                continue
            snippet_total += 1
            print(f"    ✅ {snippet['name']} ({len(snippet['tags'])} tags)")

            for deepening_data in snippet_data.get("deepenings", []):
                deepening = post("/deepenings", {"snippet_id": snippet["id"], **deepening_data})
                if deepening:
                    print(f"       ↳ {deepening['name']}")

    tags = requests.get(f"{API_URL}/tags", headers=HEADERS, timeout=10).json()
    print("\n🏷  Tags:")
    for tag in tags:
        print(f"    {tag['name']}: {tag['reference_count']}")

    print("\n" + "=" * 60)
    print(f"✅ Done! Created {len(FIRESIDES)} firesides and {snippet_total} snippets")
    print("=" * 60)


if __name__ == "__main__":
    main()
