import logging

from aiogram import Bot, Dispatcher
from aiogram.types import BotCommand
from aiogram.utils.token import TokenValidationError

from bantah_api.bot.handlers import router

logger = logging.getLogger(__name__)

def create_dispatcher() -> Dispatcher:
    dp = Dispatcher()
    dp.include_router(router)
    return dp

def create_bot(token: str | None) -> Bot | None:
    """Бот нужен только при заданном токене; API работает и без него."""
    if not token:
        logger.error("BOT_TOKEN is not set: bot is disabled and Telegram auth will reject requests")
        return None
    try:
        return Bot(token=token)
    except TokenValidationError:
        logger.error("BOT_TOKEN has invalid format: bot is disabled")
        return None

async def set_bot_commands(bot: Bot) -> None:
    commands = [
        BotCommand(command="start", description="Open the Bantah mini-app"),
    ]
    await bot.set_my_commands(commands)
