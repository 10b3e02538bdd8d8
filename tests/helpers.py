import hashlib
import hmac
import json
import urllib.parse

BOT_TOKEN = "123456:test-token"


def sign(fields: dict, bot_token: str) -> str:
    """Подпись initData, посчитанная независимо от кода приложения."""
    data_check = "\n".join(f"{k}={v}" for k, v in sorted(fields.items()))
    secret = hmac.new(b"WebAppData", bot_token.encode(), hashlib.sha256).digest()
    return hmac.new(secret, data_check.encode(), hashlib.sha256).hexdigest()


def make_init_data(fields: dict, bot_token: str = BOT_TOKEN, *, hash_value: str | None = None) -> str:
    payload = dict(fields)
    payload["hash"] = hash_value if hash_value is not None else sign(fields, bot_token)
    return urllib.parse.urlencode(payload, quote_via=urllib.parse.quote)


def user_fields(user_id: int = 42, **extra) -> dict:
    user = {"id": user_id, "first_name": "Test", **extra}
    return {
        "query_id": "AAHdF6IQAAAAAN0XohDhrOrc",
        "auth_date": "1700000000",
        "user": json.dumps(user, separators=(",", ":")),
    }


class FakeResult:
    def __init__(self, rowcount: int = 1):
        self.rowcount = rowcount


class FakeSession:
    """
    Минимальная замена AsyncSession для сервисов: get() по словарю,
    execute() возвращает заданный rowcount, scalar() отдает значения из очереди.
    """

    def __init__(self, objects: dict | None = None, rowcount: int = 1, scalars: list | None = None,
                 commit_error: Exception | None = None):
        self.commit_error = commit_error
        self.objects = objects or {}
        self.rowcount = rowcount
        self.scalars = list(scalars or [])
        self.added = []
        self.executed = []
        self.committed = False
        self.rolled_back = False

    async def get(self, model, pk):
        return self.objects.get((model, pk))

    async def execute(self, stmt):
        self.executed.append(stmt)
        return FakeResult(self.rowcount)

    async def scalar(self, stmt):
        self.executed.append(stmt)
        return self.scalars.pop(0) if self.scalars else None

    def add(self, obj):
        self.added.append(obj)

    async def flush(self):
        for i, obj in enumerate(self.added, 1):
            if getattr(obj, "id", None) is None:
                obj.id = i

    async def refresh(self, obj):
        pass

    async def commit(self):
        if self.commit_error is not None:
            raise self.commit_error
        self.committed = True

    async def rollback(self):
        self.rolled_back = True

    async def close(self):
        pass
