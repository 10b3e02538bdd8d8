from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bantah_api.database import get_db
from bantah_api.responses import clamp_limit, ok
from bantah_api.schemas import TelegramUser
from bantah_api.security import get_current_user
from bantah_api.services import stats, users

router = APIRouter(tags=["stats"])

@router.get("/stats")
async def get_stats(user: TelegramUser = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    result, _ = await stats.user_stats(db, user.id)
    return ok({"stats": result.model_dump()})

# Лидерборд публичный, без initData
@router.get("/leaderboard")
async def get_leaderboard(limit: int = 10, db: AsyncSession = Depends(get_db)):
    entries = await users.leaderboard(db, clamp_limit(limit, 10))
    return ok({"leaderboard": [e.model_dump() for e in entries]})

@router.get("/achievements")
async def get_achievements(user: TelegramUser = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    result, wins = await stats.user_stats(db, user.id)
    return ok({"achievements": stats.achievements_for(result, wins)})
