from __future__ import annotations

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from cockpit.core.config import settings
from cockpit.db.session import run_with_retry
from cockpit.models.contact_message import ContactMessage
from cockpit.models.wine import Wine
from cockpit.models.wine_user import WineUser
from cockpit.services.list_query import ResourceDescriptor
from cockpit.services.media_library import MediaLibraryClient


def wine_ids(db: Session) -> set[str]:
    rows = run_with_retry(
        db,
        lambda session: session.execute(select(Wine.id)).scalars().all(),
        attempts=settings.DB_RETRY_ATTEMPTS,
        delay_seconds=settings.DB_RETRY_DELAY_SECONDS,
    )
    return {str(value) for value in rows}


def _load_image_folders(db: Session, media: MediaLibraryClient) -> list[dict[str, Any]]:
    return media.folder_stats()


def _load_orphaned_image_folders(db: Session, media: MediaLibraryClient) -> list[dict[str, Any]]:
    known = wine_ids(db)
    return [
        {"folderName": str(folder.get("name") or ""), "createdAt": folder.get("createdAt")}
        for folder in media.list_folders()
        if str(folder.get("name") or "") not in known
    ]


USERS = ResourceDescriptor(
    name="users",
    columns={
        "id": WineUser.id,
        "username": WineUser.username,
        "email": WineUser.email,
        "isPro": WineUser.has_proaccount,
        "createdAt": WineUser.created_at,
    },
)

WINES = ResourceDescriptor(
    name="wines",
    columns={
        "id": Wine.id,
        "userId": Wine.user_id,
        "name": Wine.name,
        "producer": Wine.producer,
        "grapes": Wine.grapes,
        "country": Wine.country,
        "region": Wine.region,
        "year": Wine.year,
        "price": Wine.price,
        "quantity": Wine.quantity,
        "createdAt": Wine.created_at,
    },
)

MESSAGES = ResourceDescriptor(
    name="messages",
    columns={
        "id": ContactMessage.id,
        "name": ContactMessage.name,
        "email": ContactMessage.email,
        "subject": ContactMessage.subject,
        "message": ContactMessage.message,
        "createdAt": ContactMessage.created_at,
    },
)

USERS_WINE_COUNT = ResourceDescriptor(
    name="users_wine_count",
    columns={
        "id": WineUser.id,
        "username": WineUser.username,
        "email": WineUser.email,
        "wineCount": func.count(Wine.id),
    },
    select_from=WineUser.__table__.outerjoin(Wine.__table__, Wine.user_id == WineUser.id),
    group_by=(WineUser.id, WineUser.username, WineUser.email),
)

IMAGE_FOLDERS = ResourceDescriptor(
    name="image_folders",
    columns={"folderName": "folderName", "fileCount": "fileCount", "createdAt": "createdAt"},
    key="folderName",
    loader=_load_image_folders,
)

ORPHANED_IMAGE_FOLDERS = ResourceDescriptor(
    name="orphaned_image_folders",
    columns={"folderName": "folderName", "createdAt": "createdAt"},
    key="folderName",
    loader=_load_orphaned_image_folders,
)

RESOURCES: dict[str, ResourceDescriptor] = {
    descriptor.name: descriptor
    for descriptor in (
        USERS,
        WINES,
        MESSAGES,
        USERS_WINE_COUNT,
        IMAGE_FOLDERS,
        ORPHANED_IMAGE_FOLDERS,
    )
}
