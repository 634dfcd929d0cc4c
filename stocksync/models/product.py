from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from stocksync.database import Base


class Product(Base):
    __tablename__ = "products"

    sku: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, default="")
    location: Mapped[str | None] = mapped_column(String, default="")  # free-text bin/shelf label
    quantity: Mapped[int] = mapped_column(Integer, default=0)
    image: Mapped[str | None] = mapped_column(String, default="")  # Drive link or /uploads/ path
