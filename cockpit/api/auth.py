from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from cockpit.core.config import settings
from cockpit.core.deps import ADMIN_ROLE, get_cookie_session
from cockpit.core.security import create_jwt
from cockpit.db.session import get_db
from cockpit.schemas.auth import LoginIn, LoginOut, SessionOut
from cockpit.services.account_auth import authenticate, mark_last_login, normalize_email

router = APIRouter()


@router.post("/login", response_model=LoginOut)
def login(payload: LoginIn, response: Response, db: Session = Depends(get_db)):
    account = authenticate(db, payload.email, payload.password_hash)
    if account is None:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    ttl = timedelta(minutes=settings.ADMIN_JWT_TTL_MINUTES)
    token = create_jwt(
        {"sub": normalize_email(account.email), "role": ADMIN_ROLE},
        settings.JWT_SECRET,
        ttl,
    )
    mark_last_login(db, account)

    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=int(ttl.total_seconds()),
        httponly=True,
        secure=settings.AUTH_COOKIE_SECURE,
        samesite="lax",
        path="/",
    )
    return LoginOut(token=token)


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(key=settings.AUTH_COOKIE_NAME, path="/")
    return {"success": True}


@router.get("/session", response_model=SessionOut)
def session_info(claims: dict = Depends(get_cookie_session)):
    return SessionOut(
        email=str(claims.get("sub") or ""),
        role=str(claims.get("role") or ""),
        expires_at=int(claims.get("exp") or 0),
    )
