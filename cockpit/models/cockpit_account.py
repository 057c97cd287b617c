from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column
from cockpit.db.session import Base
from cockpit.models.common import IntIdMixin, CreatedAtMixin

class CockpitAccount(Base, IntIdMixin, CreatedAtMixin):
    __tablename__ = "wine_cockpit_auth"
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
