import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from cockpit.core.config import settings
from cockpit.core.deps import get_current_admin
from cockpit.db.session import get_db, run_with_retry
from cockpit.models.wine import Wine
from cockpit.services.media_library import MediaLibraryClient, MediaLibraryError, get_media_client

router = APIRouter()

_LOG = logging.getLogger("cockpit.wines")

_DETAIL_COLUMNS = (
    Wine.name,
    Wine.producer,
    Wine.grapes,
    Wine.country,
    Wine.region,
    Wine.year,
    Wine.price,
    Wine.quantity,
)


@router.get("/{wine_id}")
def wine_detail(wine_id: int, admin: dict = Depends(get_current_admin), db: Session = Depends(get_db)):
    row = run_with_retry(
        db,
        lambda session: session.execute(select(*_DETAIL_COLUMNS).where(Wine.id == wine_id)).mappings().first(),
        attempts=settings.DB_RETRY_ATTEMPTS,
        delay_seconds=settings.DB_RETRY_DELAY_SECONDS,
    )
    if row is None:
        raise HTTPException(status_code=404, detail="Wine not found")
    return dict(row)


@router.get("/{wine_id}/photos")
def wine_photos(
    wine_id: int,
    admin: dict = Depends(get_current_admin),
    media: MediaLibraryClient = Depends(get_media_client),
):
    try:
        photos = media.wine_photos(wine_id)
    except MediaLibraryError:
        _LOG.exception("photo listing for wine %s failed", wine_id)
        raise HTTPException(status_code=500, detail="Failed to fetch photos")
    return {"photos": photos}
