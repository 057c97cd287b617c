import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from cockpit.core.deps import get_current_admin
from cockpit.db.session import get_db
from cockpit.schemas.lists import ListRequest, ListResponse
from cockpit.services.list_query import (
    ListQueryError,
    paginate_rows,
    resolve_resource,
    run_list_query,
    validate_list_request,
)
from cockpit.services.media_library import MediaLibraryClient, MediaLibraryError, get_media_client
from cockpit.services.resources import RESOURCES

router = APIRouter()

_LOG = logging.getLogger("cockpit.lists")


@router.post("/{resource}", response_model=ListResponse)
def list_resource(
    resource: str,
    lr: ListRequest,
    admin: dict = Depends(get_current_admin),
    db: Session = Depends(get_db),
    media: MediaLibraryClient = Depends(get_media_client),
):
    try:
        descriptor = resolve_resource(RESOURCES, resource)
        if descriptor.in_memory:
            validate_list_request(descriptor, lr)
            try:
                rows = descriptor.loader(db, media)
            except MediaLibraryError:
                _LOG.exception("media listing for %s failed", descriptor.name)
                raise HTTPException(status_code=500, detail="Failed to fetch list data")
            return paginate_rows(descriptor, rows, lr)
        return run_list_query(db, descriptor, lr)
    except ListQueryError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
