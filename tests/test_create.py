import re
from datetime import timedelta

import pytest

from serialgate.models import utcnow
from serialgate.store import StorageError
from tests.helpers import ADMIN, create_code

pytestmark = pytest.mark.asyncio

async def test_create_with_no_body_uses_defaults(client, store):
    before = utcnow()
    r = await client.post("/api/create", headers=ADMIN)
    after = utcnow()

    assert r.status_code == 201
    data = r.json()
    assert re.fullmatch(r"[A-Z0-9]{12}", data["code"])
    assert "Max uses: 1" in data["message"]

    [row] = store.list_codes(utcnow(), active_only=False)
    assert row.code == data["code"]
    assert row.max_uses == 1
    assert row.uses_count == 0
    assert row.expires_at - row.created_at == timedelta(days=7)
    assert before <= row.created_at <= after

async def test_create_with_empty_json_object(client):
    r = await client.post("/api/create", json={}, headers=ADMIN)
    assert r.status_code == 201
    assert len(r.json()["code"]) == 12

async def test_generated_codes_differ(client):
    codes = {await create_code(client) for _ in range(5)}
    assert len(codes) == 5

async def test_create_with_expiry_in_days(client, store):
    before = utcnow()
    await create_code(client, expiry="2d")

    [row] = store.list_codes(utcnow(), active_only=False)
    assert row.expires_at - row.created_at == timedelta(hours=48)
    assert abs(row.expires_at - (before + timedelta(hours=48))) < timedelta(seconds=5)

async def test_create_with_expiry_in_hours_is_case_insensitive(client, store):
    await create_code(client, expiry="12H")

    [row] = store.list_codes(utcnow(), active_only=False)
    assert row.expires_at - row.created_at == timedelta(hours=12)

async def test_create_with_bad_expiry_unit_is_rejected(client, store):
    r = await client.post("/api/create", json={"expiry": "3x"}, headers=ADMIN)
    assert r.status_code == 400
    assert r.json()["error"].startswith("Invalid expiry format")
    assert store.list_codes(utcnow(), active_only=False) == []

async def test_create_with_bad_expiry_value_is_rejected(client):
    for expiry in ("xd", "d", "1.5h", "-1d"):
        r = await client.post("/api/create", json={"expiry": expiry}, headers=ADMIN)
        assert r.status_code == 400, expiry

async def test_create_with_explicit_fields(client, store):
    r = await client.post("/api/create", json={"code": "WELCOME2026", "max_uses": 5}, headers=ADMIN)
    assert r.status_code == 201
    data = r.json()
    assert data["code"] == "WELCOME2026"
    assert data["message"].startswith("Serial code created successfully. Expires at: ")
    assert data["message"].endswith("Max uses: 5")

    [row] = store.list_codes(utcnow(), active_only=False)
    assert row.max_uses == 5

async def test_non_positive_max_uses_falls_back_to_one(client, store):
    await create_code(client, code="ZERO", max_uses=0)
    await create_code(client, code="NEGATIVE", max_uses=-4)

    rows = store.list_codes(utcnow(), active_only=False)
    assert [r.max_uses for r in rows] == [1, 1]

async def test_duplicate_code_is_a_storage_error(client):
    await create_code(client, code="DUPLICATE")

    r = await client.post("/api/create", json={"code": "DUPLICATE"}, headers=ADMIN)
    assert r.status_code == 500
    assert r.json()["error"].startswith("Could not create serial code")

async def test_malformed_body_is_rejected(client, store):
    r = await client.post("/api/create", content=b"{oops", headers={**ADMIN, "Content-Type": "application/json"})
    assert r.status_code == 400
    assert r.json()["error"].startswith("Invalid request body")

    r = await client.post("/api/create", json={"max_uses": "three"}, headers=ADMIN)
    assert r.status_code == 400

    assert store.list_codes(utcnow(), active_only=False) == []

async def test_create_rejects_get(client, store):
    r = await client.get("/api/create", headers=ADMIN)
    assert r.status_code == 405
    assert r.headers["allow"] == "POST"
    assert r.json()["error"] == "Only POST method is allowed"

    r = await client.put("/api/create", json={"code": "PUTCODE"}, headers=ADMIN)
    assert r.status_code == 405
    assert store.list_codes(utcnow(), active_only=False) == []

async def test_max_uses_beyond_integer_column_is_rejected(client, store):
    r = await client.post("/api/create", json={"max_uses": 2**63}, headers=ADMIN)
    assert r.status_code == 400
    assert r.json()["error"].startswith("Invalid request body: max_uses")
    assert store.list_codes(utcnow(), active_only=False) == []

    r = await client.post("/api/create", json={"max_uses": 2**63 - 1}, headers=ADMIN)
    assert r.status_code == 201

async def test_store_reports_integer_overflow_as_storage_error(store):
    now = utcnow()
    with pytest.raises(StorageError, match="Could not create serial code"):
        store.create("TOOBIG", now, now + timedelta(days=1), 2**64)
    assert store.list_codes(now, active_only=False) == []
