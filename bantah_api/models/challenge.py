from datetime import datetime
from sqlalchemy import BigInteger, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from bantah_api.database import Base

# pending -> active -> completed
PENDING = "pending"
ACTIVE = "active"
COMPLETED = "completed"

class Challenge(Base):
    __tablename__ = "challenges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    challenger_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), index=True)
    challenged_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=True, index=True)

    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)  # ставка каждой стороны

    status: Mapped[str] = mapped_column(String, default=PENDING, index=True)
    result: Mapped[str | None] = mapped_column(String, nullable=True)  # challenger, challenged, draw

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Challenge(id={self.id}, status={self.status})>"
