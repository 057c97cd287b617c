from __future__ import annotations

import logging
import re
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse

from cockpit.core.config import settings

REQUEST_ID_HEADER = "X-Request-ID"
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._-]{1,128}$")
_LOG = logging.getLogger("cockpit.http")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "X-Permitted-Cross-Domain-Policies": "none",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=(), payment=(), usb=()",
    "Content-Security-Policy": "default-src 'self'; object-src 'none'; frame-ancestors 'none'; base-uri 'self'",
}


def _request_id_from_header(raw: str | None) -> str:
    value = str(raw or "").strip()
    if not value:
        return uuid4().hex
    if not _REQUEST_ID_RE.fullmatch(value):
        return uuid4().hex
    return value


def origin_allowed(origin: str | None) -> bool:
    # Same-origin and non-browser callers send no Origin header.
    if not origin:
        return True
    return origin in settings.cors_origins_list


def _apply_common_headers(response, request_id: str) -> None:
    for key, value in SECURITY_HEADERS.items():
        response.headers[key] = value
    response.headers["Cache-Control"] = "no-store"
    response.headers["Pragma"] = "no-cache"
    response.headers["Expires"] = "0"
    response.headers[REQUEST_ID_HEADER] = request_id


def install_http_hardening(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    @app.middleware("http")
    async def _http_hardening_middleware(request: Request, call_next):
        request_id = _request_id_from_header(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        started_at = perf_counter()

        origin = request.headers.get("origin")
        if not origin_allowed(origin):
            _LOG.warning(
                "%s %s rejected origin=%s request_id=%s",
                request.method,
                request.url.path,
                origin,
                request_id,
            )
            response = PlainTextResponse("Forbidden", status_code=403)
            _apply_common_headers(response, request_id)
            return response

        try:
            response = await call_next(request)
        except Exception:
            _LOG.exception("%s %s unhandled error request_id=%s", request.method, request.url.path, request_id)
            response = JSONResponse(status_code=500, content={"detail": "Internal server error"})

        _apply_common_headers(response, request_id)

        duration_ms = (perf_counter() - started_at) * 1000.0
        _LOG.info(
            "%s %s status=%s duration_ms=%.2f request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request_id,
        )
        return response
