from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column
from cockpit.db.session import Base
from cockpit.models.common import IntIdMixin, CreatedAtMixin

class ContactMessage(Base, IntIdMixin, CreatedAtMixin):
    __tablename__ = "wine_contact"
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    subject: Mapped[str | None] = mapped_column(String(300), nullable=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
