import os

# Settings читаются при импорте приложения, поэтому окружение задаем до него
os.environ["BOT_TOKEN"] = "123456:test-token"
os.environ.setdefault("LOG_LEVEL", "INFO")
os.environ.setdefault("CORS_ORIGINS", "*")
os.environ["BOT_POLLING"] = "false"

import pytest
from fastapi.testclient import TestClient

from bantah_api import main
from bantah_api.database import get_db
from tests.helpers import BOT_TOKEN, FakeSession, make_init_data, user_fields


@pytest.fixture
def fake_db():
    return FakeSession()


# ─── sync TestClient без реальной БД ───────────────────────────────────
@pytest.fixture
def client(fake_db):
    async def override_get_db():
        yield fake_db

    main.app.dependency_overrides[get_db] = override_get_db
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


@pytest.fixture
def init_data():
    return make_init_data(user_fields(42, username="alice"), BOT_TOKEN)


@pytest.fixture
def auth_headers(init_data):
    return {"X-Telegram-Init-Data": init_data}
