from datetime import datetime
from sqlalchemy import BigInteger, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from bantah_api.database import Base

# Типы движений по кошельку
BET = "bet"
BET_REFUND = "bet_refund"
WITHDRAWAL = "withdrawal"
DEPOSIT = "deposit"
CHALLENGE_STAKE = "challenge_stake"
CHALLENGE_REFUND = "challenge_refund"
CHALLENGE_WIN = "challenge_win"
EVENT_WIN = "event_win"
BET_WIN = "bet_win"

SPENT_TYPES = (BET, WITHDRAWAL, CHALLENGE_STAKE)
EARNED_TYPES = (DEPOSIT, BET_WIN, CHALLENGE_WIN, EVENT_WIN)
WINNING_TYPES = (CHALLENGE_WIN, EVENT_WIN)

class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), index=True)
    type: Mapped[str] = mapped_column(String, index=True)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    description: Mapped[str] = mapped_column(String, default="")
    related_id: Mapped[str | None] = mapped_column(String, nullable=True)  # id события/челленджа/референс
    status: Mapped[str] = mapped_column(String, default="completed")  # pending, completed
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
