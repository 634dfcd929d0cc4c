from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from stocksync.database import Base


class User(Base):
    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String, primary_key=True)
    password: Mapped[str] = mapped_column(String, nullable=False)  # bcrypt hash
    role: Mapped[str] = mapped_column(String, default="staff")  # admin, staff
