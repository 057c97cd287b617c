import logging

from fastapi import Depends, Cookie, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from cockpit.core.config import settings
from cockpit.core.security import decode_jwt

ADMIN_ROLE = "admin"
AUTH_FAILED_DETAIL = "Authentication failed"

_LOG = logging.getLogger("cockpit.auth")

bearer = HTTPBearer(auto_error=False)


def _claims_or_401(token: str) -> dict:
    try:
        if settings.AUTH_VERIFY_TOKENS:
            claims = decode_jwt(token, settings.JWT_SECRET)
        else:
            claims = jwt.get_unverified_claims(token)
    except JWTError as exc:
        _LOG.info("rejected credential: %s", exc)
        raise HTTPException(status_code=401, detail=AUTH_FAILED_DETAIL)
    if str(claims.get("role") or "").lower() != ADMIN_ROLE or not str(claims.get("sub") or "").strip():
        _LOG.info("rejected credential: missing subject or admin role")
        raise HTTPException(status_code=401, detail=AUTH_FAILED_DETAIL)
    return claims


def get_bearer_token(creds: HTTPAuthorizationCredentials | None = Depends(bearer)) -> str:
    if not creds or not str(creds.credentials or "").strip():
        raise HTTPException(status_code=401, detail="Invalid authorization header")
    return creds.credentials.strip()


def get_current_admin(token: str = Depends(get_bearer_token)) -> dict:
    return _claims_or_401(token)


def get_cookie_session(
    auth_token: str | None = Cookie(default=None, alias=settings.AUTH_COOKIE_NAME),
) -> dict:
    if not auth_token:
        raise HTTPException(status_code=401, detail="Missing session")
    return _claims_or_401(auth_token)
