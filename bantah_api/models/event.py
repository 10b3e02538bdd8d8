from datetime import datetime
from sqlalchemy import BigInteger, Boolean, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from bantah_api.database import Base

class Event(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String, index=True)

    # Пулы ставок "да"/"нет" и общий банк
    yes_pool: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")
    no_pool: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")
    event_pool: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")

    entry_fee: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")
    max_participants: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 0/None = без лимита
    status: Mapped[str] = mapped_column(String, default="active", index=True)  # active, completed, cancelled
    creator_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

class EventParticipant(Base):
    __tablename__ = "event_participants"
    __table_args__ = (UniqueConstraint("event_id", "user_id", name="uq_event_participant"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_id: Mapped[int] = mapped_column(Integer, ForeignKey("events.id"), index=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), index=True)
    prediction: Mapped[bool] = mapped_column(Boolean, nullable=False)  # True = "да"
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[str] = mapped_column(String, default="active")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
