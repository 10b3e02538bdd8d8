import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from bantah_api.bot import create_bot, create_dispatcher, set_bot_commands
from bantah_api.config import settings
from bantah_api.responses import error_body, now_ms
from bantah_api.routes import auth, challenges, events, stats, telegram, users, wallet

# Настройка логирования
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# --- AIOGRAM SETUP ---
bot = create_bot(settings.BOT_TOKEN)
dp = create_dispatcher()

# --- FASTAPI LIFESPAN ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    polling_task = None
    if bot is not None and settings.BOT_POLLING:
        logger.info("Startup: Setting up bot...")
        await set_bot_commands(bot)
        polling_task = asyncio.create_task(dp.start_polling(bot, handle_signals=False))
    yield
    if polling_task is not None:
        logger.info("Shutdown: Stopping bot...")
        polling_task.cancel()
        try:
            await polling_task
        except asyncio.CancelledError:
            pass
    if bot is not None:
        await bot.session.close()

# --- FASTAPI SETUP ---
app = FastAPI(title="Bantah Mini-App API", version="1.0.0", lifespan=lifespan)
app.state.bot = bot
app.state.dp = dp

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept", "X-Telegram-Init-Data"],
)

@app.middleware("http")
async def log_requests(request: Request, call_next):
    response = await call_next(request)
    logger.info(f"{request.method} {request.url.path} -> {response.status_code}")
    return response

# --- ERROR HANDLERS ---
# Все ошибки уходят клиенту как {"ok": false, "error": "..."}

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    error = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == 404 and error == "Not Found":
        error = "Endpoint not found"
    return JSONResponse(status_code=exc.status_code, content=error_body(error), headers=exc.headers)

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content=error_body("Invalid request"))

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Server error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content=error_body("Internal server error"))

# --- ENDPOINTS ---

@app.get("/health")
async def health_check():
    return {"ok": True, "service": "bantah-miniapp-backend", "timestamp": now_ms()}

for module in (auth, wallet, events, challenges, stats, users, telegram):
    app.include_router(module.router, prefix="/api")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("bantah_api.main:app", host="0.0.0.0", port=settings.API_PORT)
