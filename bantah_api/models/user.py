from datetime import datetime
from sqlalchemy import BigInteger, String, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from bantah_api.database import Base

class User(Base):
    __tablename__ = "users"

    # Telegram ID может быть больше 2^31, поэтому используем BigInteger
    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)

    username: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    first_name: Mapped[str] = mapped_column(String, nullable=False)
    last_name: Mapped[str | None] = mapped_column(String, nullable=True)
    photo_url: Mapped[str | None] = mapped_column(String, nullable=True)

    # Кошелек и прогресс
    balance: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")
    coins: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    level: Mapped[int] = mapped_column(Integer, default=1, server_default="1")
    xp: Mapped[int] = mapped_column(Integer, default=0, server_default="0", index=True)
    points: Mapped[int] = mapped_column(Integer, default=1000, server_default="1000")

    # Время создания и обновления
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    @property
    def display_name(self) -> str:
        if self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.first_name

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username})>"
