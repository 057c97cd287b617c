from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from cockpit.core.config import settings
from cockpit.core.deps import get_current_admin
from cockpit.db.session import get_db, run_with_retry
from cockpit.models.wine_user import WineUser

router = APIRouter()


@router.post("/{user_id}/toggle-pro")
def toggle_pro(user_id: int, admin: dict = Depends(get_current_admin), db: Session = Depends(get_db)):
    user = run_with_retry(
        db,
        lambda session: session.query(WineUser).filter(WineUser.id == user_id).with_for_update().first(),
        attempts=settings.DB_RETRY_ATTEMPTS,
        delay_seconds=settings.DB_RETRY_DELAY_SECONDS,
    )
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    user.has_proaccount = not bool(user.has_proaccount)
    db.add(user)
    db.commit()
    return {"success": True, "isPro": bool(user.has_proaccount)}
