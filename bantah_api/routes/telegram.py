import hmac
import logging

from fastapi import APIRouter, Request

from bantah_api.config import settings
from bantah_api.errors import BadRequest, Unauthorized
from bantah_api.responses import ok
from bantah_api.schemas import TelegramAuthData
from bantah_api.security import verify_telegram_data

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/telegram", tags=["telegram"])

WEBHOOK_SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"

@router.get("/status")
async def bot_status(request: Request):
    """Проверяет, что токен рабочий: getMe через aiogram."""
    bot = request.app.state.bot
    if bot is None:
        raise BadRequest("BOT_TOKEN not configured")
    me = await bot.get_me()
    return ok({"botInfo": {"id": me.id, "username": me.username, "first_name": me.first_name}})

@router.post("/validate")
async def validate_init_data(payload: TelegramAuthData):
    if not payload.initData:
        raise BadRequest("Missing initData")
    user = verify_telegram_data(payload.initData, settings.BOT_TOKEN, max_age=settings.INIT_DATA_MAX_AGE)
    if user is None:
        raise Unauthorized("Invalid Telegram signature")
    return ok({"user": user.model_dump(exclude_none=True)})

@router.post("/webhook")
async def telegram_webhook(request: Request):
    """
    Апдейты от Bot API. Отвечаем 200 всегда, иначе Telegram будет ретраить.
    Апдейт уходит в диспетчер только с верным X-Telegram-Bot-Api-Secret-Token.
    """
    if not settings.TELEGRAM_WEBHOOK_SECRET:
        logger.warning("TELEGRAM_WEBHOOK_SECRET is not set, ignoring webhook update")
        return {"ok": True}

    received = request.headers.get(WEBHOOK_SECRET_HEADER, "")
    if not hmac.compare_digest(received.encode(), settings.TELEGRAM_WEBHOOK_SECRET.encode()):
        logger.warning("Webhook update with wrong secret token ignored")
        return {"ok": True}

    bot = request.app.state.bot
    if bot is None:
        logger.warning("Webhook update received but bot is not configured")
        return {"ok": True}
    try:
        update = await request.json()
        await request.app.state.dp.feed_webhook_update(bot, update)
    except ValueError:
        logger.warning("Webhook body is not valid JSON")
    except Exception:
        logger.exception("Webhook processing error")
    return {"ok": True}
