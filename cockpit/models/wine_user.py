from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column
from cockpit.db.session import Base
from cockpit.models.common import IntIdMixin, CreatedAtMixin

class WineUser(Base, IntIdMixin, CreatedAtMixin):
    __tablename__ = "wine_users"
    username: Mapped[str | None] = mapped_column(String(200), nullable=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    has_proaccount: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
