from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from cockpit.core.config import settings
from cockpit.db.session import run_with_retry
from cockpit.models.contact_message import ContactMessage
from cockpit.models.wine import Wine
from cockpit.models.wine_user import WineUser
from cockpit.services.media_library import MediaLibraryClient

_LOG = logging.getLogger("cockpit.stats")

SessionFactory = Callable[[], Session]


def _with_session(session_factory: SessionFactory, operation: Callable[[Session], Any]) -> Any:
    with session_factory() as db:
        return run_with_retry(
            db,
            operation,
            attempts=settings.DB_RETRY_ATTEMPTS,
            delay_seconds=settings.DB_RETRY_DELAY_SECONDS,
        )


def user_stats(session_factory: SessionFactory) -> dict[str, int]:
    def _op(db: Session) -> dict[str, int]:
        total = db.execute(select(func.count(WineUser.id))).scalar_one()
        pro = db.execute(select(func.count(WineUser.id)).where(WineUser.has_proaccount.is_(True))).scalar_one()
        return {"total": int(total or 0), "pro": int(pro or 0)}

    return _with_session(session_factory, _op)


def wine_count(session_factory: SessionFactory) -> int:
    return int(_with_session(session_factory, lambda db: db.execute(select(func.count(Wine.id))).scalar_one()) or 0)


def message_count(session_factory: SessionFactory) -> int:
    return int(
        _with_session(session_factory, lambda db: db.execute(select(func.count(ContactMessage.id))).scalar_one()) or 0
    )


def collect_dashboard_stats(session_factory: SessionFactory, media: MediaLibraryClient) -> dict[str, Any]:
    """
    Run every statistics fetch concurrently.

    A failing fetch is logged and reported as its zero value so the rest of
    the dashboard still renders.
    """
    fetches: dict[str, tuple[Callable[[], Any], Any]] = {
        "users": (lambda: user_stats(session_factory), {"total": 0, "pro": 0}),
        "images": (media.image_stats, {"folders": 0, "total": 0}),
        "wines": (lambda: wine_count(session_factory), 0),
        "messages": (lambda: message_count(session_factory), 0),
    }
    workers = max(1, min(int(settings.STATS_MAX_WORKERS), len(fetches)))
    result: dict[str, Any] = {}
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="cockpit-stats") as pool:
        futures = {name: pool.submit(fetch) for name, (fetch, _) in fetches.items()}
        for name, future in futures.items():
            try:
                result[name] = future.result()
            except Exception:
                _LOG.exception("stats fetch %s failed; reporting zero", name)
                result[name] = fetches[name][1]
    return result
