import hmac
import hashlib
import logging
import time
from urllib.parse import parse_qsl

from fastapi import Header, Request
from pydantic import ValidationError

from bantah_api.config import settings
from bantah_api.errors import Unauthorized
from bantah_api.schemas import TelegramUser

logger = logging.getLogger(__name__)

INIT_DATA_HEADER = "X-Telegram-Init-Data"
WEBAPP_KEY = b"WebAppData"


def parse_init_data(init_data: str) -> list[tuple[str, str]]:
    """
    Разбирает query string initData в список пар (ключ, значение).
    Повторяющиеся ключи сохраняются: подписывается весь набор пар.
    """
    return parse_qsl(init_data, keep_blank_values=True)


def build_data_check_string(pairs: list[tuple[str, str]]) -> str:
    # Сортировка по ключу побайтно (sorted стабилен для одинаковых ключей)
    items = sorted(((k, v) for k, v in pairs if k != "hash"), key=lambda item: item[0])
    return "\n".join(f"{k}={v}" for k, v in items)


def derive_secret_key(bot_token: str) -> bytes:
    # Ключ = "WebAppData", сообщение = токен бота. Порядок не менять.
    return hmac.new(key=WEBAPP_KEY, msg=bot_token.encode(), digestmod=hashlib.sha256).digest()


def sign_init_data(pairs: list[tuple[str, str]], bot_token: str) -> str:
    """Hex-подпись набора пар так, как ее считает Telegram."""
    return hmac.new(
        key=derive_secret_key(bot_token),
        msg=build_data_check_string(pairs).encode(),
        digestmod=hashlib.sha256,
    ).hexdigest()


def verify_telegram_data(
    init_data: str,
    bot_token: str | None,
    *,
    max_age: int = 0,
) -> TelegramUser | None:
    """
    Валидирует initData от Telegram WebApp.

    Возвращает TelegramUser, если подпись совпала и поле user прошло схему,
    иначе None. Причина отказа наружу не отдается, только в лог.
    max_age > 0 включает проверку свежести auth_date (по умолчанию выключено).
    """
    if not bot_token:
        logger.error("BOT_TOKEN is not configured, rejecting Telegram auth")
        return None

    try:
        pairs = parse_init_data(init_data)

        received_hash = next((v for k, v in pairs if k == "hash"), None)
        if not received_hash:
            raise ValueError("No hash found in initData")

        calculated_hash = sign_init_data(pairs, bot_token)
        if not hmac.compare_digest(calculated_hash.encode(), received_hash.encode()):
            raise ValueError("Invalid hash signature")

        if max_age:
            auth_date = int(next((v for k, v in pairs if k == "auth_date"), "0"))
            if time.time() - auth_date > max_age:
                raise ValueError("initData is outdated")

        user_data_json = next((v for k, v in pairs if k == "user"), None)
        if not user_data_json:
            raise ValueError("No user data found")

        return TelegramUser.model_validate_json(user_data_json)

    except (ValueError, TypeError, ValidationError) as e:
        logger.warning("Telegram auth rejected: %s", e)
        return None


# --- FASTAPI DEPENDENCY ---
# Подключается в аргументы эндпоинтов: user: TelegramUser = Depends(get_current_user)

async def get_current_user(
    request: Request,
    x_telegram_init_data: str | None = Header(None, alias=INIT_DATA_HEADER),
) -> TelegramUser:
    """
    Достает initData из заголовка X-Telegram-Init-Data и валидирует её.
    Проверенный пользователь кладется в request.state.telegram_user.
    """
    if not x_telegram_init_data:
        raise Unauthorized("Missing Telegram authentication data")

    user = verify_telegram_data(
        x_telegram_init_data,
        settings.BOT_TOKEN,
        max_age=settings.INIT_DATA_MAX_AGE,
    )
    if user is None:
        raise Unauthorized("Invalid Telegram authentication")

    request.state.telegram_user = user
    return user
