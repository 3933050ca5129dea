from __future__ import annotations

import asyncio

from fastapi.testclient import TestClient

from algoarena.api.dependencies import memory_stores
from algoarena.models.catalog import Level
from algoarena.models.progress import ApproachRecord
from tests.conftest import add_category, add_questions, add_user, admin_headers, user_headers


def _seed() -> tuple[str, list[str]]:
    add_user(memory_stores, "user-1")
    arrays = add_category(memory_stores, "Arrays")
    trees = add_category(memory_stores, "Trees")
    a = add_questions(memory_stores, arrays, Level.EASY, 3)
    t = add_questions(memory_stores, trees, Level.MEDIUM, 2)
    return trees.id, [q.id for q in a + t]


def test_summary_page(client: TestClient) -> None:
    _, ids = _seed()
    client.put(f"/v1/progress/questions/{ids[0]}", json={"solved": True}, headers=user_headers())
    asyncio.run(
        memory_stores.approaches.add(ApproachRecord.new(user_id="user-1", question_id=ids[0]))
    )

    resp = client.get("/v1/questions/summary?size=10", headers=user_headers())

    assert resp.status_code == 200
    body = resp.json()
    assert body["total_elements"] == 5
    assert body["total_pages"] == 1
    by_id = {item["id"]: item for item in body["items"]}
    assert by_id[ids[0]]["user_progress"]["solved"] is True
    assert by_id[ids[0]]["user_progress"]["approach_count"] == 1
    assert by_id[ids[4]]["user_progress"] == {
        "solved": False,
        "solved_at": None,
        "approach_count": 0,
    }


def test_summary_filters(client: TestClient) -> None:
    trees_id, _ = _seed()

    by_category = client.get(
        f"/v1/questions/summary?category_id={trees_id}", headers=user_headers()
    ).json()
    by_level = client.get("/v1/questions/summary?level=easy", headers=user_headers()).json()
    paged = client.get("/v1/questions/summary?page=1&size=2", headers=user_headers()).json()

    assert by_category["total_elements"] == 2
    assert by_level["total_elements"] == 3
    assert paged["page"] == 1
    assert paged["total_pages"] == 3
    assert len(paged["items"]) == 2


def test_summary_rejects_bad_level_and_size(client: TestClient) -> None:
    assert client.get(
        "/v1/questions/summary?level=impossible", headers=user_headers()
    ).status_code == 422
    assert client.get("/v1/questions/summary?size=500", headers=user_headers()).status_code == 422


def test_summary_reflects_progress_write(client: TestClient) -> None:
    _, ids = _seed()
    first = client.get("/v1/questions/summary", headers=user_headers()).json()
    assert not any(i["user_progress"]["solved"] for i in first["items"])

    client.put(f"/v1/progress/questions/{ids[1]}", json={"solved": True}, headers=user_headers())

    second = client.get("/v1/questions/summary", headers=user_headers()).json()
    assert {i["id"] for i in second["items"] if i["user_progress"]["solved"]} == {ids[1]}


def test_approach_counts(client: TestClient) -> None:
    _, ids = _seed()
    for _ in range(2):
        asyncio.run(
            memory_stores.approaches.add(ApproachRecord.new(user_id="user-1", question_id=ids[2]))
        )

    resp = client.post(
        "/v1/questions/approach-counts",
        json={"question_ids": [ids[0], ids[2]]},
        headers=user_headers(),
    )

    assert resp.status_code == 200
    assert resp.json() == {ids[0]: 0, ids[2]: 2}


def test_admin_question_lifecycle(client: TestClient) -> None:
    trees_id, _ = _seed()

    created = client.post(
        "/v1/questions",
        json={"title": "Level Order", "category_id": trees_id, "level": "MEDIUM"},
        headers=admin_headers(),
    )
    assert created.status_code == 201
    qid = created.json()["id"]

    patched = client.patch(f"/v1/questions/{qid}", json={"level": "hard"}, headers=admin_headers())
    assert patched.status_code == 200
    assert patched.json()["level"] == "HARD"

    assert client.delete(f"/v1/questions/{qid}", headers=admin_headers()).status_code == 204
    assert client.delete(f"/v1/questions/{qid}", headers=admin_headers()).status_code == 404


def test_create_question_unknown_category_is_404(client: TestClient) -> None:
    resp = client.post(
        "/v1/questions",
        json={"title": "Orphan", "category_id": "nope", "level": "easy"},
        headers=admin_headers(),
    )
    assert resp.status_code == 404


def test_create_question_requires_admin(client: TestClient) -> None:
    resp = client.post(
        "/v1/questions",
        json={"title": "Sneaky", "category_id": "x", "level": "easy"},
        headers=user_headers(),
    )
    assert resp.status_code == 403
