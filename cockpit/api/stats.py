from typing import Callable

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cockpit.core.deps import get_current_admin
from cockpit.db.session import get_session_factory
from cockpit.services.dashboard_stats import collect_dashboard_stats
from cockpit.services.media_library import MediaLibraryClient, get_media_client

router = APIRouter()


@router.get("")
def dashboard_stats(
    admin: dict = Depends(get_current_admin),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
    media: MediaLibraryClient = Depends(get_media_client),
):
    return collect_dashboard_stats(session_factory, media)
