from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase
from bantah_api.config import settings

# Драйвер postgresql+asyncpg, URL собирается в Settings.database_url
engine = create_async_engine(
    settings.database_url,
    echo=False,  # True — печатать SQL в консоль
)

# expire_on_commit=False обязателен для асинхронной работы
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False
)

# Базовый класс для всех моделей
class Base(DeclarativeBase):
    pass

# Dependency для FastAPI: одна сессия на запрос
async def get_db():
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
