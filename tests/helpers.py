import httpx

ADMIN_TOKEN = "test-admin-token"
ADMIN = {"X-Admin-Token": ADMIN_TOKEN}

async def create_code(client: httpx.AsyncClient, **body) -> str:
    r = await client.post("/api/create", json=body, headers=ADMIN)
    assert r.status_code == 201, r.text
    return r.json()["code"]

async def verify(client: httpx.AsyncClient, code: str) -> dict:
    r = await client.post("/api/verify", json={"code": code})
    assert r.status_code == 200, r.text
    return r.json()

async def list_serials(client: httpx.AsyncClient, all: str | None = None) -> dict:
    params = {"all": all} if all is not None else {}
    r = await client.get("/api/serials", params=params, headers=ADMIN)
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["count"] == len(data["serials"])
    return data
