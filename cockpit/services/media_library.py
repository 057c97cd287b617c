"""
Media host (ImageKit-compatible) HTTP client.

Used endpoints:
- GET /v1/files?path=&type=&sort=&skip=&limit=  -> [{"type": "file"|"folder", ...}, ...]

Authentication is HTTP basic with the private key as the user name.
Throttling follows the host's contract: a 429 response carries `Retry-After`
(seconds) or `X-RateLimit-Reset` (milliseconds) and the client waits that
long before the next attempt.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
import uuid
from typing import Any, Callable

import httpx
from fastapi import Request

from cockpit.core.config import Settings

_LOG = logging.getLogger("cockpit.media")

_RETRYABLE_STATUSES = {429, 500, 502, 503, 504}
_MAX_WAIT_SECONDS = 60.0


class MediaLibraryError(RuntimeError):
    pass


def _fallback_wait(attempt: int) -> float:
    return min(_MAX_WAIT_SECONDS, 0.5 * (2 ** (attempt - 1)))


def retry_wait_seconds(response: httpx.Response, attempt: int) -> float:
    retry_after = str(response.headers.get("Retry-After") or "").strip()
    if retry_after:
        try:
            return min(_MAX_WAIT_SECONDS, max(float(retry_after), 0.0))
        except ValueError:
            pass
    reset_ms = str(response.headers.get("X-RateLimit-Reset") or "").strip()
    if reset_ms:
        try:
            return min(_MAX_WAIT_SECONDS, max(float(reset_ms) / 1000.0, 0.0))
        except ValueError:
            pass
    return _fallback_wait(attempt)


def _normalize_path(path: str) -> str:
    text = "/" + str(path or "").strip().strip("/")
    return text if text != "/" else "/"


class MediaLibraryClient:
    def __init__(
        self,
        *,
        base_url: str,
        private_key: str,
        public_key: str = "",
        url_endpoint: str = "",
        root_path: str = "/wines",
        page_size: int = 1000,
        max_attempts: int = 5,
        timeout_s: float = 15.0,
        auth_ttl_s: int = 2400,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.private_key = str(private_key or "").strip()
        self.public_key = str(public_key or "").strip()
        self.url_endpoint = str(url_endpoint or "").strip()
        self.root_path = _normalize_path(root_path)
        self.page_size = max(int(page_size), 1)
        self.max_attempts = max(int(max_attempts), 1)
        self.auth_ttl_s = int(auth_ttl_s)
        self._sleep = sleep
        self._client = httpx.Client(
            base_url=str(base_url or "").rstrip("/"),
            auth=(self.private_key, ""),
            timeout=timeout_s,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, cfg: Settings) -> "MediaLibraryClient":
        return cls(
            base_url=cfg.MEDIA_API_URL,
            private_key=cfg.MEDIA_PRIVATE_KEY,
            public_key=cfg.MEDIA_PUBLIC_KEY,
            url_endpoint=cfg.MEDIA_URL_ENDPOINT,
            root_path=cfg.MEDIA_ROOT_PATH,
            page_size=cfg.MEDIA_PAGE_SIZE,
            max_attempts=cfg.MEDIA_MAX_ATTEMPTS,
            timeout_s=cfg.MEDIA_TIMEOUT_SECONDS,
            auth_ttl_s=cfg.MEDIA_AUTH_TTL_SECONDS,
        )

    def close(self) -> None:
        self._client.close()

    def _ensure_configured(self) -> None:
        if not self.private_key:
            raise MediaLibraryError("MEDIA_PRIVATE_KEY is empty.")

    def _get_page(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        self._ensure_configured()
        for attempt in range(1, self.max_attempts + 1):
            try:
                resp = self._client.get("/v1/files", params=params)
            except httpx.TransportError as exc:
                if attempt >= self.max_attempts:
                    raise MediaLibraryError(f"Media host request failed: {exc}") from exc
                wait = _fallback_wait(attempt)
                _LOG.warning("media host unreachable (attempt %s/%s), retry in %.2fs: %s", attempt, self.max_attempts, wait, exc)
                self._sleep(wait)
                continue

            if resp.status_code == 200:
                try:
                    data = resp.json()
                except ValueError as exc:
                    raise MediaLibraryError("Media host returned a non-JSON file listing.") from exc
                if not isinstance(data, list):
                    raise MediaLibraryError("Media host returned a non-list file listing.")
                return data

            if resp.status_code not in _RETRYABLE_STATUSES or attempt >= self.max_attempts:
                body = resp.text[:500]
                raise MediaLibraryError(f"Media host listing failed: {resp.status_code} {body}")

            wait = retry_wait_seconds(resp, attempt)
            _LOG.warning(
                "media host status=%s (attempt %s/%s), retry in %.2fs",
                resp.status_code,
                attempt,
                self.max_attempts,
                wait,
            )
            self._sleep(wait)
        raise MediaLibraryError("Media host listing failed.")

    def list_items(self, path: str, *, kind: str = "file", sort: str | None = None) -> list[dict[str, Any]]:
        """
        Return every item of `kind` directly under `path`, following skip/limit pages.
        """
        items: list[dict[str, Any]] = []
        skip = 0
        while True:
            params: dict[str, Any] = {
                "path": _normalize_path(path),
                "type": kind,
                "skip": skip,
                "limit": self.page_size,
            }
            if sort:
                params["sort"] = sort
            page = self._get_page(params)
            items.extend(page)
            if len(page) < self.page_size:
                return items
            skip += len(page)

    def list_folders(self) -> list[dict[str, Any]]:
        return self.list_items(self.root_path, kind="folder")

    def folder_path(self, folder: dict[str, Any]) -> str:
        path = str(folder.get("folderPath") or "").strip()
        if path:
            return path
        return f"{self.root_path.rstrip('/')}/{folder.get('name')}"

    def count_files(self, path: str) -> int:
        return len(self.list_items(path, kind="file"))

    def folder_stats(self) -> list[dict[str, Any]]:
        stats = []
        for folder in self.list_folders():
            path = self.folder_path(folder)
            try:
                file_count = self.count_files(path)
            except MediaLibraryError as exc:
                # One unreadable folder is reported as empty; the rest still count.
                _LOG.warning("file listing for %s failed, reporting 0 files: %s", path, exc)
                file_count = 0
            stats.append(
                {
                    "folderName": str(folder.get("name") or ""),
                    "fileCount": file_count,
                    "createdAt": folder.get("createdAt"),
                }
            )
        return stats

    def image_stats(self) -> dict[str, int]:
        stats = self.folder_stats()
        return {"folders": len(stats), "total": sum(int(item["fileCount"]) for item in stats)}

    def wine_photos(self, wine_id: int) -> list[dict[str, Any]]:
        path = f"{self.root_path.rstrip('/')}/{int(wine_id)}"
        files = self.list_items(path, kind="file", sort="DESC_CREATED")
        return [{"url": item.get("url"), "fileId": item.get("fileId")} for item in files]

    def upload_auth(self, *, now: float | None = None) -> dict[str, Any]:
        """
        Signature for browser uploads: HMAC-SHA1 over token + expire with the private key.
        """
        self._ensure_configured()
        token = str(uuid.uuid4())
        issued = int(now if now is not None else time.time())
        expire = issued + self.auth_ttl_s
        signature = hmac.new(
            self.private_key.encode("utf-8"),
            f"{token}{expire}".encode("utf-8"),
            hashlib.sha1,
        ).hexdigest()
        return {
            "token": token,
            "expire": expire,
            "signature": signature,
            "publicKey": self.public_key,
            "urlEndpoint": self.url_endpoint,
        }


def get_media_client(request: Request) -> MediaLibraryClient:
    client = getattr(request.app.state, "media", None)
    if client is None:
        raise RuntimeError("Media client is not initialized. It is created in the application lifespan.")
    return client
