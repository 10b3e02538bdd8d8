from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bantah_api.database import get_db
from bantah_api.errors import NotFound
from bantah_api.responses import ok
from bantah_api.schemas import TelegramUser
from bantah_api.security import get_current_user
from bantah_api.services import users

router = APIRouter(prefix="/users", tags=["users"])

@router.get("/search")
async def search(q: str = "", user: TelegramUser = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    found = await users.search_users(db, q, exclude_id=user.id)
    return ok({"users": [u.model_dump() for u in found]})

@router.get("/suggestions")
async def suggestions(user: TelegramUser = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return ok(await users.suggestions(db, exclude_id=user.id))

@router.get("/{user_id}/profile")
async def profile(user_id: int, db: AsyncSession = Depends(get_db)):
    found = await users.get_user(db, user_id)
    if found is None:
        raise NotFound("User not found")
    return ok(users.to_profile(found).model_dump())
