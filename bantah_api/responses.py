import time
from typing import Any


def now_ms() -> int:
    return int(time.time() * 1000)


def ok(data: Any = None) -> dict:
    """Единый конверт успешного ответа."""
    return {"ok": True, "data": data, "timestamp": now_ms()}


def error_body(error: str) -> dict:
    return {"ok": False, "error": error}


def clamp_limit(limit: int | None, default: int, maximum: int = 100) -> int:
    if not limit or limit < 1:
        return default
    return min(limit, maximum)
