import base64
from datetime import datetime, timezone
from types import SimpleNamespace

from bantah_api import main
from bantah_api.config import settings
from bantah_api.errors import ApiError
from bantah_api.models.user import User
from bantah_api.schemas import LeaderboardEntry, WalletOut
from bantah_api.services import challenges as challenges_service
from bantah_api.services import events as events_service
from bantah_api.services import users as users_service
from bantah_api.services import wallet as wallet_service
from tests.helpers import make_init_data, user_fields


def stub_wallet(monkeypatch, seen=None):
    async def fake_get_wallet(db, user_id):
        if seen is not None:
            seen.append(user_id)
        summary = WalletOut(balance=1500, coins=3, currency="NGN", totalSpent=0, totalEarned=0, lastUpdated=0)
        return summary, []

    monkeypatch.setattr(wallet_service, "get_wallet", fake_get_wallet)


# ─── auth gate ─────────────────────────────────────────────────────────
def test_missing_header_is_unauthorized(client, monkeypatch):
    stub_wallet(monkeypatch)
    res = client.get("/api/wallet")
    assert res.status_code == 401
    assert res.json() == {"ok": False, "error": "Missing Telegram authentication data"}


def test_forged_header_is_unauthorized(client, monkeypatch):
    stub_wallet(monkeypatch)
    forged = make_init_data(user_fields(42), bot_token="999:other-bot")
    res = client.get("/api/wallet", headers={"X-Telegram-Init-Data": forged})
    assert res.status_code == 401
    assert res.json() == {"ok": False, "error": "Invalid Telegram authentication"}


def test_valid_header_passes_identity_to_handler(client, auth_headers, monkeypatch):
    seen = []
    stub_wallet(monkeypatch, seen)

    res = client.get("/api/wallet", headers=auth_headers)

    assert res.status_code == 200
    body = res.json()
    assert body["ok"] is True
    assert body["data"]["wallet"]["balance"] == 1500
    assert seen == [42]


def test_unset_token_rejects_every_request(client, auth_headers, monkeypatch):
    stub_wallet(monkeypatch)
    monkeypatch.setattr(settings, "BOT_TOKEN", None)
    res = client.get("/api/wallet", headers=auth_headers)
    assert res.status_code == 401
    assert res.json()["error"] == "Invalid Telegram authentication"


# ─── /api/auth ─────────────────────────────────────────────────────────
def test_auth_requires_init_data(client):
    res = client.post("/api/auth", json={})
    assert res.status_code == 400
    assert res.json() == {"ok": False, "error": "Missing initData"}


def test_auth_rejects_bad_signature(client):
    forged = make_init_data(user_fields(42), bot_token="999:other-bot")
    res = client.post("/api/auth", json={"initData": forged})
    assert res.status_code == 401
    assert res.json()["error"] == "Invalid Telegram data"


def test_auth_returns_user_and_token(client, init_data, monkeypatch):
    async def fake_upsert(db, tg_user):
        return User(id=tg_user.id, username=tg_user.username, first_name="Test", last_name=None,
                    photo_url=None, balance=0, coins=0, level=1, xp=0, points=1000)

    monkeypatch.setattr("bantah_api.routes.auth.upsert_telegram_user", fake_upsert)

    res = client.post("/api/auth", json={"initData": init_data})

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["user"]["telegramId"] == 42
    assert data["user"]["username"] == "alice"
    assert data["user"]["lastName"] == ""
    assert base64.b64decode(data["token"]).decode() == init_data


# ─── events / challenges wiring ────────────────────────────────────────
def test_join_event_service_error_shape(client, auth_headers, monkeypatch):
    async def fake_join(db, user_id, event_id, prediction, amount):
        raise ApiError(409, "Already joined")

    monkeypatch.setattr(events_service, "join_event", fake_join)
    res = client.post("/api/events/3/join", json={"prediction": True, "amount": 100}, headers=auth_headers)
    assert res.status_code == 409
    assert res.json() == {"ok": False, "error": "Already joined"}


def test_join_event_validation_error(client, auth_headers):
    res = client.post("/api/events/3/join", json={"amount": 100}, headers=auth_headers)
    assert res.status_code == 422
    assert res.json() == {"ok": False, "error": "Invalid request"}


def test_join_event_passes_arguments(client, auth_headers, monkeypatch):
    calls = []

    async def fake_join(db, user_id, event_id, prediction, amount):
        calls.append((user_id, event_id, prediction, amount))

    monkeypatch.setattr(events_service, "join_event", fake_join)
    res = client.post("/api/events/3/join", json={"prediction": False, "amount": 100}, headers=auth_headers)
    assert res.json()["data"] == {"success": True}
    assert calls == [(42, 3, False, 100)]


def test_list_events_clamps_limit(client, auth_headers, monkeypatch):
    calls = []

    async def fake_list(db, limit, offset):
        calls.append((limit, offset))
        return []

    monkeypatch.setattr(events_service, "list_events", fake_list)
    client.get("/api/events?limit=1000&offset=-3", headers=auth_headers)
    client.get("/api/events", headers=auth_headers)
    assert calls == [(100, 0), (20, 0)]


def test_settle_challenge_passes_result(client, auth_headers, monkeypatch):
    calls = []

    async def fake_settle(db, user_id, challenge_id, result):
        calls.append((user_id, challenge_id, result))
        return []

    monkeypatch.setattr(challenges_service, "settle_challenge", fake_settle)
    res = client.post("/api/challenges/9/settle", json={"result": "draw"}, headers=auth_headers)
    assert res.status_code == 200
    assert calls == [(42, 9, "draw")]


def test_create_challenge_returns_id(client, auth_headers, monkeypatch):
    async def fake_create(db, user_id, data):
        assert data.deadline == datetime(2030, 1, 1, tzinfo=timezone.utc)
        return 17

    monkeypatch.setattr(challenges_service, "create_challenge", fake_create)
    res = client.post(
        "/api/challenges/create",
        json={"title": "Derby", "category": "sports", "wagerAmount": 500, "deadline": "2030-01-01T00:00:00Z"},
        headers=auth_headers,
    )
    assert res.json()["data"] == {"challengeId": 17}


# ─── public endpoints ──────────────────────────────────────────────────
def test_leaderboard_is_public_and_clamped(client, monkeypatch):
    calls = []

    async def fake_leaderboard(db, limit):
        calls.append(limit)
        return [LeaderboardEntry(id=1, username="top", level=3, points=2500, rank=1)]

    monkeypatch.setattr(users_service, "leaderboard", fake_leaderboard)
    res = client.get("/api/leaderboard?limit=500")
    assert res.status_code == 200
    assert res.json()["data"]["leaderboard"][0]["rank"] == 1
    client.get("/api/leaderboard")
    assert calls == [100, 10]


def test_profile_not_found(client, monkeypatch):
    async def fake_get_user(db, user_id):
        return None

    monkeypatch.setattr(users_service, "get_user", fake_get_user)
    res = client.get("/api/users/5/profile")
    assert res.status_code == 404
    assert res.json() == {"ok": False, "error": "User not found"}


def test_health(client):
    body = client.get("/health").json()
    assert body["ok"] is True
    assert body["service"] == "bantah-miniapp-backend"


def test_unknown_endpoint(client):
    res = client.get("/api/nope")
    assert res.status_code == 404
    assert res.json() == {"ok": False, "error": "Endpoint not found"}


# ─── telegram utilities ────────────────────────────────────────────────
def test_validate_returns_user(client, init_data):
    res = client.post("/api/telegram/validate", json={"initData": init_data})
    assert res.status_code == 200
    assert res.json()["data"]["user"]["id"] == 42


def test_validate_rejects_forgery(client):
    forged = make_init_data(user_fields(42), bot_token="999:other-bot")
    res = client.post("/api/telegram/validate", json={"initData": forged})
    assert res.status_code == 401


def test_status_uses_bot(client, monkeypatch):
    class FakeBot:
        async def get_me(self):
            return SimpleNamespace(id=1, username="bantah_bot", first_name="Bantah")

    monkeypatch.setattr(main.app.state, "bot", FakeBot())
    res = client.get("/api/telegram/status")
    assert res.json()["data"]["botInfo"]["username"] == "bantah_bot"


def test_status_without_bot(client, monkeypatch):
    monkeypatch.setattr(main.app.state, "bot", None)
    res = client.get("/api/telegram/status")
    assert res.status_code == 400
    assert res.json()["error"] == "BOT_TOKEN not configured"


WEBHOOK_SECRET = "webhook-secret"


class RecordingDispatcher:
    def __init__(self, error: Exception | None = None):
        self.fed = []
        self.error = error

    async def feed_webhook_update(self, bot, update):
        self.fed.append(update)
        if self.error is not None:
            raise self.error


def webhook_setup(monkeypatch, dispatcher):
    monkeypatch.setattr(settings, "TELEGRAM_WEBHOOK_SECRET", WEBHOOK_SECRET)
    monkeypatch.setattr(main.app.state, "dp", dispatcher)


def test_webhook_feeds_update_with_valid_secret(client, monkeypatch):
    dispatcher = RecordingDispatcher(error=RuntimeError("handler failed"))
    webhook_setup(monkeypatch, dispatcher)

    res = client.post(
        "/api/telegram/webhook",
        json={"update_id": 1},
        headers={"X-Telegram-Bot-Api-Secret-Token": WEBHOOK_SECRET},
    )

    assert res.json() == {"ok": True}
    assert dispatcher.fed == [{"update_id": 1}]


def test_webhook_ignores_wrong_secret(client, monkeypatch):
    dispatcher = RecordingDispatcher()
    webhook_setup(monkeypatch, dispatcher)
    update = {"update_id": 1, "message": {"text": "/start"}}

    wrong = client.post(
        "/api/telegram/webhook", json=update, headers={"X-Telegram-Bot-Api-Secret-Token": "wrong"}
    )
    missing = client.post("/api/telegram/webhook", json=update)

    assert wrong.status_code == 200
    assert wrong.json() == {"ok": True}
    assert missing.json() == {"ok": True}
    assert dispatcher.fed == []


def test_webhook_ignores_updates_when_secret_unset(client, monkeypatch):
    dispatcher = RecordingDispatcher()
    webhook_setup(monkeypatch, dispatcher)
    monkeypatch.setattr(settings, "TELEGRAM_WEBHOOK_SECRET", None)

    res = client.post("/api/telegram/webhook", json={"update_id": 1})

    assert res.json() == {"ok": True}
    assert dispatcher.fed == []


def test_webhook_acknowledges_malformed_body(client, monkeypatch):
    dispatcher = RecordingDispatcher()
    webhook_setup(monkeypatch, dispatcher)

    res = client.post(
        "/api/telegram/webhook",
        content=b"{not json",
        headers={"X-Telegram-Bot-Api-Secret-Token": WEBHOOK_SECRET, "Content-Type": "application/json"},
    )

    assert res.status_code == 200
    assert res.json() == {"ok": True}
    assert dispatcher.fed == []
