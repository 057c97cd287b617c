import logging

from fastapi import APIRouter, Depends, HTTPException

from cockpit.core.deps import get_current_admin
from cockpit.services.media_library import MediaLibraryClient, MediaLibraryError, get_media_client

router = APIRouter()

_LOG = logging.getLogger("cockpit.media")


@router.get("/auth")
def upload_auth(admin: dict = Depends(get_current_admin), media: MediaLibraryClient = Depends(get_media_client)):
    try:
        return media.upload_auth()
    except MediaLibraryError:
        _LOG.exception("upload signature could not be issued")
        raise HTTPException(status_code=500, detail="Media host is not configured")
