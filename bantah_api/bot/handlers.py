from aiogram import Router
from aiogram.filters import CommandStart
from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup, Message, WebAppInfo

from bantah_api.config import settings

# Роутер бота подключается в Dispatcher в main.py
router = Router()

def webapp_keyboard(url: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[[InlineKeyboardButton(text="🎲 Open Bantah", web_app=WebAppInfo(url=url))]]
    )

# Обработчик команды /start
@router.message(CommandStart())
async def command_start_handler(message: Message) -> None:
    """Приветствует пользователя и, если задан WEBAPP_URL, дает кнопку мини-аппа."""
    text = (
        f"Hi, {message.from_user.full_name}! Predict events, challenge friends "
        "and climb the leaderboard."
    )
    if settings.WEBAPP_URL:
        await message.answer(text, reply_markup=webapp_keyboard(settings.WEBAPP_URL))
    else:
        await message.answer(text)
