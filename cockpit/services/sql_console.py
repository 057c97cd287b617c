"""
Natural-language-to-SQL service client.

Used endpoints (query parameters, no body):
- POST /generate-sql?question=...   -> {"generated_sql": "..."}
- POST /execute-sql?sql_query=...   -> {"result": [{column: value, ...}, ...]}

The caller's bearer token is forwarded so the service applies its own checks.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import httpx
from fastapi import Request

from cockpit.core.config import Settings

_LOG = logging.getLogger("cockpit.sql_console")


class SqlServiceError(RuntimeError):
    pass


class SqlServiceRejected(Exception):
    """The service answered with a 4xx; `detail` is safe to show to the caller."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


def _format_error_detail(data: Any, fallback: str) -> str:
    if isinstance(data, list):
        parts = []
        for err in data:
            if isinstance(err, dict):
                loc = ".".join(str(x) for x in err.get("loc") or [])
                parts.append(f"{err.get('msg')} at {loc}" if loc else str(err.get("msg")))
        if parts:
            return "; ".join(parts)
    if isinstance(data, dict):
        detail = data.get("detail")
        if isinstance(detail, list):
            return _format_error_detail(detail, fallback)
        if isinstance(detail, dict):
            return str(detail)
        if isinstance(detail, str) and detail.strip():
            return detail.strip()
    return fallback


def _json_or_none(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return None


def _raise_for_status(resp: httpx.Response, data: Any, fallback: str) -> None:
    if resp.status_code == 200:
        return
    if 400 <= resp.status_code < 500:
        raise SqlServiceRejected(resp.status_code, _format_error_detail(data, fallback))
    raise SqlServiceError(f"Unexpected status from SQL service: {resp.status_code}")


class SqlServiceClient:
    def __init__(
        self,
        *,
        base_url: str,
        timeout_s: float = 30.0,
        retries: int = 3,
        retry_delay_s: float = 1.0,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.retries = max(int(retries), 1)
        self.retry_delay_s = max(float(retry_delay_s), 0.0)
        self._sleep = sleep
        self._client = httpx.Client(
            base_url=str(base_url or "").rstrip("/"),
            timeout=timeout_s,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, cfg: Settings) -> "SqlServiceClient":
        return cls(
            base_url=cfg.SQL_SERVICE_URL,
            timeout_s=cfg.SQL_SERVICE_TIMEOUT_SECONDS,
            retries=cfg.SQL_SERVICE_RETRIES,
            retry_delay_s=cfg.SQL_SERVICE_RETRY_DELAY_SECONDS,
        )

    def close(self) -> None:
        self._client.close()

    def _post_with_retry(self, path: str, *, params: dict[str, str], token: str) -> tuple[httpx.Response, Any]:
        last_error: Exception | None = None
        for attempt in range(1, self.retries + 1):
            try:
                resp = self._client.post(
                    path,
                    params=params,
                    headers={"Authorization": f"Bearer {token}"},
                )
            except httpx.TransportError as exc:
                last_error = exc
                _LOG.warning("%s attempt %s/%s failed: %s", path, attempt, self.retries, exc)
            else:
                if resp.status_code < 500:
                    return resp, _json_or_none(resp)
                last_error = SqlServiceError(f"Server error: {resp.status_code}")
                _LOG.warning("%s attempt %s/%s failed: status=%s", path, attempt, self.retries, resp.status_code)
            if attempt < self.retries and self.retry_delay_s > 0:
                self._sleep(self.retry_delay_s * attempt)
        raise SqlServiceError(f"{path} failed after {self.retries} attempts") from last_error

    def generate_sql(self, question: str, *, token: str) -> str:
        resp, data = self._post_with_retry("/generate-sql", params={"question": question}, token=token)
        _raise_for_status(resp, data, "Failed to generate SQL query")
        if not isinstance(data, dict):
            raise SqlServiceError("Invalid response format from SQL service")
        sql = str(data.get("generated_sql") or "").strip()
        if not sql:
            raise SqlServiceError("SQL service returned no SQL")
        return sql if sql.endswith(";") else f"{sql};"

    def execute_sql(self, sql_query: str, *, token: str) -> dict[str, Any]:
        resp, data = self._post_with_retry("/execute-sql", params={"sql_query": sql_query}, token=token)
        _raise_for_status(resp, data, "Failed to execute SQL query")
        rows = data.get("result") if isinstance(data, dict) else None
        if not isinstance(rows, list):
            raise SqlServiceError("Invalid response format from SQL service")
        columns = list(rows[0].keys()) if rows and isinstance(rows[0], dict) else []
        return {"columns": columns, "rows": rows}


def get_sql_service(request: Request) -> SqlServiceClient:
    client = getattr(request.app.state, "sql_service", None)
    if client is None:
        raise RuntimeError("SQL service client is not initialized. It is created in the application lifespan.")
    return client
