import base64

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bantah_api.config import settings
from bantah_api.database import get_db
from bantah_api.errors import BadRequest, Unauthorized
from bantah_api.responses import ok
from bantah_api.schemas import TelegramAuthData
from bantah_api.security import verify_telegram_data
from bantah_api.services.users import to_user_out, upsert_telegram_user

router = APIRouter(tags=["auth"])

@router.post("/auth")
async def authenticate(payload: TelegramAuthData, db: AsyncSession = Depends(get_db)):
    """
    Вход по initData из тела запроса: находит или создает пользователя.
    token — это base64 от initData, фронт кладет его в заголовок как есть.
    """
    if not payload.initData:
        raise BadRequest("Missing initData")

    tg_user = verify_telegram_data(payload.initData, settings.BOT_TOKEN, max_age=settings.INIT_DATA_MAX_AGE)
    if tg_user is None:
        raise Unauthorized("Invalid Telegram data")

    user = await upsert_telegram_user(db, tg_user)
    return ok({
        "user": to_user_out(user).model_dump(),
        "token": base64.b64encode(payload.initData.encode()).decode(),
    })
