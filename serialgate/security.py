import logging
from dataclasses import dataclass

from fastapi import Header, Request

log = logging.getLogger(__name__)

ADMIN_TOKEN_HEADER = "X-Admin-Token"


@dataclass(frozen=True)
class AuthVerdict:
    accepted: bool
    reason: str = ""

    def __str__(self) -> str:
        return "accept" if self.accepted else f"reject ({self.reason})"


ACCEPT = AuthVerdict(True)


class AuthError(Exception):
    def __init__(self, verdict: AuthVerdict, status_code: int, detail: str):
        super().__init__(detail)
        self.verdict = verdict
        self.status_code = status_code
        self.detail = detail


def check_admin_token(token: str | None, expected: str) -> AuthVerdict:
    if not token:
        return AuthVerdict(False, "missing token")
    if token != expected:
        return AuthVerdict(False, f"invalid token: {token}")
    return ACCEPT


def require_admin(
    request: Request,
    x_admin_token: str | None = Header(default=None, alias=ADMIN_TOKEN_HEADER),
) -> AuthVerdict:
    """Gate for admin routes.

    The verdict is stored on request.state before rejecting, so the access
    log records why a request was refused even though the route never runs.
    """
    verdict = check_admin_token(x_admin_token, request.app.state.settings.admin_token)
    request.state.auth_verdict = verdict

    if not x_admin_token:
        raise AuthError(verdict, 401, f"Unauthorized: Missing {ADMIN_TOKEN_HEADER} header")
    if not verdict.accepted:
        log.debug("admin token rejected for %s", request.url.path)
        raise AuthError(verdict, 403, f"Forbidden: Invalid {ADMIN_TOKEN_HEADER}")
    return verdict
