"""Notes API tests — CRUD, ownership scoping, search, dates, paging.

Learn: Each test creates its own data via the API and verifies the response.
Thanks to the fresh-database-per-test fixture in conftest.py, tests are isolated.

Pattern: test_<verb>_<noun>_<scenario>
"""

import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy import update

from notekeeper.db.models import Note
from notekeeper.services.filters import MAX_PAGE


async def _create(c, content="hello", **extra):
    r = await c.post("/notes", json={"content": content, **extra})
    assert r.status_code == 201, r.text
    return r.json()["note"]


# ═══════════════════════════════════════════════════════════
# CRUD
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_note(alice):
    c, user = alice
    note = await _create(c, "buy milk")
    assert note["content"] == "buy milk"
    assert note["owner_id"] == user["id"]
    assert note["author_id"] == user["id"]
    assert "created_at" in note and "updated_at" in note


@pytest.mark.asyncio
async def test_create_then_get_round_trip(alice):
    c, _ = alice
    note = await _create(c, "x")
    r = await c.get(f"/notes/{note['id']}")
    assert r.status_code == 200
    assert r.json()["note"]["content"] == "x"


@pytest.mark.asyncio
async def test_update_note_refreshes_updated_at(alice):
    c, _ = alice
    note = await _create(c, "x")

    r = await c.put(f"/notes/{note['id']}", json={"content": "y"})
    assert r.status_code == 200

    r = await c.get(f"/notes/{note['id']}")
    fetched = r.json()["note"]
    assert fetched["content"] == "y"
    assert datetime.fromisoformat(fetched["updated_at"]) > datetime.fromisoformat(
        note["updated_at"]
    )
    assert fetched["created_at"] == note["created_at"]


@pytest.mark.asyncio
async def test_delete_note(alice):
    c, _ = alice
    note = await _create(c)

    r = await c.delete(f"/notes/{note['id']}")
    assert r.status_code == 200
    assert r.json() == {"message": "Note deleted"}

    r = await c.get(f"/notes/{note['id']}")
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_create_note_requires_content(alice):
    c, _ = alice
    r = await c.post("/notes", json={"content": ""})
    assert r.status_code == 400
    r = await c.post("/notes", json={})
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_create_note_rejects_blank_content(alice):
    c, _ = alice
    r = await c.post("/notes", json={"content": "   \n"})
    assert r.status_code == 400
    assert r.json() == {"message": "Content required"}


@pytest.mark.asyncio
async def test_update_note_rejects_blank_content(alice):
    c, _ = alice
    note = await _create(c)
    r = await c.put(f"/notes/{note['id']}", json={"content": " "})
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_missing_note_is_404(alice):
    c, _ = alice
    for note_id in (str(uuid.uuid4()), "not-a-uuid"):
        assert (await c.get(f"/notes/{note_id}")).status_code == 404
        assert (await c.put(f"/notes/{note_id}", json={"content": "z"})).status_code == 404
        assert (await c.delete(f"/notes/{note_id}")).status_code == 404


@pytest.mark.asyncio
async def test_notes_require_session(client):
    assert (await client.get("/notes")).status_code == 401
    assert (await client.post("/notes", json={"content": "x"})).status_code == 401
    assert (await client.get(f"/notes/{uuid.uuid4()}")).status_code == 401


# ═══════════════════════════════════════════════════════════
# Ownership
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_user_cannot_read_update_or_delete_others_note(alice, bob):
    a, _ = alice
    b, _ = bob
    note = await _create(a, "alice's secret")

    r = await b.get(f"/notes/{note['id']}")
    assert r.status_code == 403
    assert r.json() == {"message": "Forbidden"}
    assert (await b.put(f"/notes/{note['id']}", json={"content": "pwned"})).status_code == 403
    assert (await b.delete(f"/notes/{note['id']}")).status_code == 403

    r = await a.get(f"/notes/{note['id']}")
    assert r.json()["note"]["content"] == "alice's secret"


@pytest.mark.asyncio
async def test_user_cannot_list_others_notes(alice, bob):
    a, alice_user = alice
    b, _ = bob
    await _create(a)

    r = await b.get("/notes", params={"userId": alice_user["id"]})
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_list_only_returns_own_notes(alice, bob):
    a, alice_user = alice
    b, _ = bob
    await _create(a, "a1")
    await _create(a, "a2")
    await _create(b, "b1")

    r = await a.get("/notes")
    data = r.json()
    assert data["total"] == 2
    assert {n["owner_id"] for n in data["notes"]} == {alice_user["id"]}


@pytest.mark.asyncio
async def test_user_id_in_body_is_ignored_for_non_admin(alice, bob):
    a, alice_user = alice
    _, bob_user = bob
    note = await _create(a, "mine", userId=bob_user["id"])
    assert note["owner_id"] == alice_user["id"]


# ═══════════════════════════════════════════════════════════
# Admin on notes
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_admin_creates_note_for_user(admin, alice):
    root, root_user = admin
    a, alice_user = alice

    note = await _create(root, "from admin", userId=alice_user["id"])
    assert note["owner_id"] == alice_user["id"]
    assert note["author_id"] == root_user["id"]

    r = await a.get(f"/notes/{note['id']}")
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_admin_create_for_missing_user_is_404(admin):
    root, _ = admin
    r = await root.post("/notes", json={"content": "x", "userId": str(uuid.uuid4())})
    assert r.status_code == 404
    assert r.json() == {"message": "Target user not found"}


@pytest.mark.asyncio
async def test_admin_lists_and_edits_user_notes(admin, alice):
    root, _ = admin
    a, alice_user = alice
    note = await _create(a, "original")

    r = await root.get("/notes", params={"userId": alice_user["id"]})
    assert r.status_code == 200
    assert r.json()["total"] == 1

    r = await root.put(f"/notes/{note['id']}", json={"content": "moderated"})
    assert r.status_code == 200
    assert r.json()["note"]["content"] == "moderated"

    r = await root.delete(f"/notes/{note['id']}")
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_admin_list_defaults_to_own_notes(admin, alice):
    root, root_user = admin
    a, _ = alice
    await _create(a)
    await _create(root, "admin's own")

    data = (await root.get("/notes")).json()
    assert data["total"] == 1
    assert data["notes"][0]["owner_id"] == root_user["id"]


# ═══════════════════════════════════════════════════════════
# Search, sort, paging
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_pagination(alice):
    c, _ = alice
    for i in range(15):
        await _create(c, f"note {i}")

    r = await c.get("/notes", params={"page": 2, "limit": 10})
    data = r.json()
    assert len(data["notes"]) == 5
    assert data["total"] == 15
    assert data["page"] == 2
    assert data["limit"] == 10

    r = await c.get("/notes", params={"page": 5, "limit": 10})
    assert r.json()["notes"] == []
    assert r.json()["total"] == 15


@pytest.mark.asyncio
async def test_limit_is_clamped(alice):
    c, _ = alice
    await _create(c)
    data = (await c.get("/notes", params={"limit": 1000, "page": 0})).json()
    assert data["limit"] == 100
    assert data["page"] == 1


@pytest.mark.asyncio
async def test_default_page_size_is_10(alice):
    c, _ = alice
    for i in range(12):
        await _create(c, f"n{i}")
    data = (await c.get("/notes")).json()
    assert len(data["notes"]) == 10
    assert data["limit"] == 10


@pytest.mark.asyncio
async def test_search_is_case_insensitive_substring(alice):
    c, _ = alice
    await _create(c, "Buy MILK today")
    await _create(c, "call mom")

    data = (await c.get("/notes", params={"q": "milk"})).json()
    assert data["total"] == 1
    assert data["notes"][0]["content"] == "Buy MILK today"


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(alice):
    c, _ = alice
    await _create(c, "100% done")
    await _create(c, "half done")

    data = (await c.get("/notes", params={"q": "%"})).json()
    assert data["total"] == 1


@pytest.mark.asyncio
async def test_default_sort_is_newest_first(alice):
    c, _ = alice
    for content in ("first", "second", "third"):
        await _create(c, content)

    data = (await c.get("/notes")).json()
    assert [n["content"] for n in data["notes"]] == ["third", "second", "first"]

    data = (await c.get("/notes", params={"order": "asc"})).json()
    assert [n["content"] for n in data["notes"]] == ["first", "second", "third"]


@pytest.mark.asyncio
async def test_sort_by_updated_at(alice):
    c, _ = alice
    first = await _create(c, "first")
    await _create(c, "second")
    await c.put(f"/notes/{first['id']}", json={"content": "first, edited"})

    data = (await c.get("/notes", params={"sortBy": "updatedAt", "order": "desc"})).json()
    assert data["notes"][0]["content"] == "first, edited"


@pytest.mark.asyncio
async def test_unknown_sort_field_falls_back_to_created_desc(alice):
    c, _ = alice
    for content in ("b", "a", "c"):
        await _create(c, content)

    data = (await c.get("/notes", params={"sortBy": "content", "order": "asc"})).json()
    assert [n["content"] for n in data["notes"]] == ["c", "a", "b"]


# ═══════════════════════════════════════════════════════════
# Date ranges
# ═══════════════════════════════════════════════════════════


async def _backdate(db_session, note_id: str, created: datetime, updated: datetime | None = None):
    await db_session.execute(
        update(Note)
        .where(Note.id == uuid.UUID(note_id))
        .values(created_at=created, updated_at=updated or created)
    )
    await db_session.commit()


@pytest.mark.asyncio
async def test_same_day_created_range_matches_whole_day(alice, db_session):
    c, _ = alice
    late = await _create(c, "late on new year's day")
    other = await _create(c, "next day")
    await _backdate(db_session, late["id"], datetime(2024, 1, 1, 22, 45, tzinfo=timezone.utc))
    await _backdate(db_session, other["id"], datetime(2024, 1, 2, 0, 0, 1, tzinfo=timezone.utc))

    r = await c.get("/notes", params={"createdFrom": "2024-01-01", "createdTo": "2024-01-01"})
    data = r.json()
    assert data["total"] == 1
    assert data["notes"][0]["id"] == late["id"]


@pytest.mark.asyncio
async def test_updated_range_filter(alice, db_session):
    c, _ = alice
    old = await _create(c, "old")
    await _create(c, "fresh")
    await _backdate(db_session, old["id"], datetime(2023, 6, 1, 12, tzinfo=timezone.utc))

    data = (await c.get("/notes", params={"updatedTo": "2023-12-31"})).json()
    assert [n["content"] for n in data["notes"]] == ["old"]

    data = (await c.get("/notes", params={"updatedFrom": "2024-01-01"})).json()
    assert [n["content"] for n in data["notes"]] == ["fresh"]


@pytest.mark.asyncio
async def test_invalid_date_is_400(alice):
    c, _ = alice
    r = await c.get("/notes", params={"createdFrom": "not-a-date"})
    assert r.status_code == 400
    assert "createdFrom" in r.json()["message"]


@pytest.mark.asyncio
async def test_huge_page_number_is_an_empty_page(alice):
    c, _ = alice
    await _create(c)

    r = await c.get("/notes", params={"page": "10000000000000000000"})
    assert r.status_code == 200
    data = r.json()
    assert data["notes"] == []
    assert data["total"] == 1
    assert data["page"] == MAX_PAGE
