from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from stocksync.database import Base


class LogEntry(Base):
    """Append-only audit trail of stock movements.

    ``sku`` is not a foreign key: entries outlive the product they describe.
    """

    __tablename__ = "logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    user: Mapped[str] = mapped_column(String, default="")
    action: Mapped[str] = mapped_column(String, nullable=False)  # inbound, outbound, delete
    sku: Mapped[str] = mapped_column(String, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, default=0)  # delta applied
    balance: Mapped[int] = mapped_column(Integer, default=0)  # quantity after the change
