from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from .access_log import install_access_log, publish_summary
from .admin import router as admin_router
from .config import Settings, load_settings, setup_logging
from .db import Base, make_engine, make_session_factory
from .models import utcnow
from .schemas import VerifyReq, describe_error
from .security import AuthError
from .store import SerialStore, StorageError, get_store

router = APIRouter(prefix="/api", tags=["verify"])


def _verify_error(request: Request, message: str, status_code: int) -> JSONResponse:
    publish_summary(request, "VerifySuccess", False)
    return JSONResponse(
        status_code=status_code,
        content={"valid": False, "message": "Verification failed", "error": message},
    )


@router.post("/verify")
async def verify_code(request: Request, store: SerialStore = Depends(get_store)):
    try:
        req = VerifyReq.model_validate_json(await request.body())
    except ValidationError as e:
        return _verify_error(request, f"Invalid request body: {describe_error(e)}", 400)

    if not req.code:
        return _verify_error(request, "Code is required", 400)

    try:
        result = await run_in_threadpool(store.redeem, req.code, utcnow())
    except StorageError as e:
        return _verify_error(request, str(e), 500)

    publish_summary(request, "VerifySuccess", result.valid)
    return {"valid": result.valid, "message": result.message}


async def auth_error_handler(request: Request, exc: AuthError) -> PlainTextResponse:
    return PlainTextResponse(exc.detail + "\n", status_code=exc.status_code)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the service.

    With no settings the config file is loaded and logging is configured, which
    is what `uvicorn serialgate.main:create_app --factory` does. Tests pass
    their own Settings.
    """
    if settings is None:
        settings = load_settings()
        setup_logging(settings)

    engine = make_engine(settings.database_url)
    Base.metadata.create_all(bind=engine)

    app = FastAPI(title="Serial Gate", version="1.0.0")
    app.state.settings = settings
    app.state.engine = engine
    app.state.store = SerialStore(make_session_factory(engine))

    install_access_log(app)
    app.add_exception_handler(AuthError, auth_error_handler)

    app.include_router(router)
    app.include_router(admin_router)
    return app
