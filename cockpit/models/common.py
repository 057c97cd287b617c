from datetime import datetime, timezone
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import DateTime, Integer

def utcnow():
    return datetime.now(timezone.utc)

class IntIdMixin:
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

class CreatedAtMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
