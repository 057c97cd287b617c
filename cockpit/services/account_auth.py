from __future__ import annotations

import logging

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cockpit.core.config import settings
from cockpit.core.security import pwd_context, verify_password
from cockpit.db.session import run_with_retry
from cockpit.models.cockpit_account import CockpitAccount
from cockpit.models.common import utcnow

_LOG = logging.getLogger("cockpit.auth")


def normalize_email(raw: str | None) -> str:
    return str(raw or "").strip().lower()


def get_account_by_email(db: Session, email: str) -> CockpitAccount | None:
    normalized = normalize_email(email)
    if not normalized:
        return None
    return run_with_retry(
        db,
        lambda session: session.query(CockpitAccount).filter(func.lower(CockpitAccount.email) == normalized).first(),
        attempts=settings.DB_RETRY_ATTEMPTS,
        delay_seconds=settings.DB_RETRY_DELAY_SECONDS,
    )


def authenticate(db: Session, email: str, password_digest: str) -> CockpitAccount | None:
    account = get_account_by_email(db, email)
    if account is None:
        # Keeps unknown and known emails indistinguishable by timing.
        pwd_context.dummy_verify()
        return None
    if not verify_password(password_digest, account.password_hash):
        return None
    return account


def mark_last_login(db: Session, account: CockpitAccount) -> None:
    account.last_login = utcnow()
    db.add(account)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        _LOG.warning("failed to update last_login for account id=%s", account.id, exc_info=True)
