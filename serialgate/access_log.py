import logging
import time
from typing import Union

from fastapi import FastAPI, Request

access_log = logging.getLogger("serialgate.access")

SummaryValue = Union[bool, int, str]


def publish_summary(request: Request, name: str, value: SummaryValue) -> None:
    """Attach the route's one-field outcome for the access log line."""
    request.state.summary = (name, value)


def _render(value: SummaryValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def format_line(request: Request, status_code: int, elapsed: float) -> str:
    uri = request.url.path
    if request.url.query:
        uri += "?" + request.url.query
    proto = "HTTP/" + request.scope.get("http_version", "1.1")

    line = f"[{request.method}] {uri} {proto} {status_code} {elapsed * 1000:.3f}ms"

    verdict = getattr(request.state, "auth_verdict", None)
    if verdict is not None:
        line += f" Auth: {verdict}"

    summary = getattr(request.state, "summary", None)
    if summary is not None:
        name, value = summary
        line += f" {name}: {_render(value)}"
    return line


def install_access_log(app: FastAPI) -> None:
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            access_log.info(format_line(request, 500, time.perf_counter() - start))
            raise
        access_log.info(format_line(request, response.status_code, time.perf_counter() - start))
        return response
