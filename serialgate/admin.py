from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from .access_log import publish_summary
from .codes import DEFAULT_EXPIRY, generate_code, parse_expiry
from .models import SerialCode, rfc3339, utcnow
from .schemas import CreateReq, describe_error
from .security import AuthVerdict, require_admin
from .store import SerialStore, StorageError, get_store

router = APIRouter(prefix="/api", tags=["admin"])

# Every method is routed so the admin check runs before the method check.
ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


# -------------------------
# Helpers
# -------------------------
def _create_error(message: str, status_code: int, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, headers=headers, content={"code": "", "message": "", "error": message}
    )


def _list_error(message: str, status_code: int, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, headers=headers, content={"serials": [], "count": 0, "error": message}
    )


def _serial_info(row: SerialCode, now: datetime) -> dict:
    return {
        "id": row.id,
        "code": row.code,
        "created_at": rfc3339(row.created_at),
        "expires_at": rfc3339(row.expires_at),
        "max_uses": row.max_uses,
        "uses_count": row.uses_count,
        "is_valid": row.is_valid(now),
    }


# -------------------------
# Issue a code
# -------------------------
@router.api_route("/create", methods=ALL_METHODS, status_code=201)
async def create_code(
    request: Request,
    verdict: AuthVerdict = Depends(require_admin),
    store: SerialStore = Depends(get_store),
):
    """
    Body is optional. Any field left out falls back to a default:
    a generated 12-character code, a 7 day expiry and a single use.
    """
    if request.method != "POST":
        return _create_error("Only POST method is allowed", 405, headers={"Allow": "POST"})

    raw = await request.body()
    req = CreateReq()
    if raw.strip():
        try:
            req = CreateReq.model_validate_json(raw)
        except ValidationError as e:
            return _create_error(f"Invalid request body: {describe_error(e)}", 400)

    code = req.code or generate_code()

    now = utcnow()
    duration = DEFAULT_EXPIRY
    try:
        if req.expiry:
            duration = parse_expiry(req.expiry)
        expires_at = now + duration
    except (ValueError, OverflowError) as e:
        return _create_error(f"Invalid expiry format: {e}", 400)

    max_uses = req.max_uses if req.max_uses and req.max_uses > 0 else 1

    try:
        await run_in_threadpool(store.create, code, now, expires_at, max_uses)
    except StorageError as e:
        return _create_error(str(e), 500)

    publish_summary(request, "CreatedSuccess", True)
    return JSONResponse(
        status_code=201,
        content={
            "code": code,
            "message": (
                f"Serial code created successfully. Expires at: {rfc3339(expires_at)}, Max uses: {max_uses}"
            ),
        },
    )


# -------------------------
# List codes
# -------------------------
@router.api_route("/serials", methods=ALL_METHODS)
async def list_serials(
    request: Request,
    show_all: str = Query(default="", alias="all"),
    verdict: AuthVerdict = Depends(require_admin),
    store: SerialStore = Depends(get_store),
):
    if request.method != "GET":
        return _list_error("Only GET method is allowed", 405, headers={"Allow": "GET"})

    active_only = show_all in ("", "false")
    now = utcnow()

    try:
        rows = await run_in_threadpool(store.list_codes, now, active_only)
    except StorageError as e:
        return _list_error(str(e), 500)

    serials = [_serial_info(r, now) for r in rows]
    publish_summary(request, "SerialsCount", len(serials))
    return {"serials": serials, "count": len(serials)}
