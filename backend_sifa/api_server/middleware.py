"""
HTTP middleware and dependencies — request logging and access-token auth.

Authenticated endpoints accept the shared token as `X-Secret: <token>` or
`Authorization: Bearer <token>`. Comparison is constant time. Failures are
rejected here and never reach the store or the alert engine.
"""

from __future__ import annotations

import hmac
import time

from fastapi import Header, HTTPException, Request

from backend_sifa.sifa_logging import get_logger

logger = get_logger(__name__)


def _bearer(authorization: str | None) -> str:
    if not authorization:
        return ""
    scheme, _, value = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return value.strip()


def require_access_token(
    request: Request,
    x_secret: str | None = Header(None, description="Shared access token"),
    authorization: str | None = Header(None, description="Bearer <access token>"),
) -> None:
    """Dependency: 401 unless the request carries the configured access token."""
    context = getattr(request.app.state, "context", None)
    expected = context.settings.access_token if context is not None else ""
    provided = (x_secret or "").strip() or _bearer(authorization)
    if not expected or not provided or not hmac.compare_digest(
        provided.encode("utf-8"), expected.encode("utf-8")
    ):
        logger.warning("auth_rejected", path=request.url.path, has_token=bool(provided))
        raise HTTPException(
            status_code=401,
            detail="Invalid or missing access token",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def log_requests(request: Request, call_next):
    """Log method, path, status and latency for every request (mute tokens masked)."""
    start = time.perf_counter()
    response = await call_next(request)
    path = request.url.path
    if path.startswith("/mute/"):
        path = path.rsplit("/", 1)[0] + "/***"
    logger.info(
        "http_request",
        method=request.method,
        path=path,
        status=response.status_code,
        duration_ms=round((time.perf_counter() - start) * 1000, 2),
    )
    return response
