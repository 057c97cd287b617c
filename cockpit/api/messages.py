from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from cockpit.core.config import settings
from cockpit.core.deps import get_current_admin
from cockpit.db.session import get_db, run_with_retry
from cockpit.models.contact_message import ContactMessage

router = APIRouter()


@router.delete("/{message_id}")
def delete_message(message_id: int, admin: dict = Depends(get_current_admin), db: Session = Depends(get_db)):
    row = run_with_retry(
        db,
        lambda session: session.get(ContactMessage, message_id),
        attempts=settings.DB_RETRY_ATTEMPTS,
        delay_seconds=settings.DB_RETRY_DELAY_SECONDS,
    )
    if row is None:
        raise HTTPException(status_code=404, detail="Message not found")
    db.delete(row)
    db.commit()
    return {"success": True}
