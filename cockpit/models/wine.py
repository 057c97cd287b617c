from sqlalchemy import Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column
from cockpit.db.session import Base
from cockpit.models.common import IntIdMixin, CreatedAtMixin

class Wine(Base, IntIdMixin, CreatedAtMixin):
    __tablename__ = "wine_table"
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    producer: Mapped[str | None] = mapped_column(String(300), nullable=True)
    grapes: Mapped[str | None] = mapped_column(String(300), nullable=True)
    country: Mapped[str | None] = mapped_column(String(120), nullable=True)
    region: Mapped[str | None] = mapped_column(String(200), nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    price: Mapped[float | None] = mapped_column(Numeric(10, 2), nullable=True)
    quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
