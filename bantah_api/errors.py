from fastapi import HTTPException, status


class ApiError(HTTPException):
    """Ошибка API, которая отдается клиенту как {"ok": false, "error": ...}."""

    def __init__(self, status_code: int, error: str) -> None:
        super().__init__(status_code=status_code, detail=error)

    @property
    def error(self) -> str:
        return self.detail


class NotFound(ApiError):
    def __init__(self, error: str = "Not found") -> None:
        super().__init__(status.HTTP_404_NOT_FOUND, error)


class BadRequest(ApiError):
    def __init__(self, error: str) -> None:
        super().__init__(status.HTTP_400_BAD_REQUEST, error)


class Unauthorized(ApiError):
    def __init__(self, error: str = "Unauthorized") -> None:
        super().__init__(status.HTTP_401_UNAUTHORIZED, error)
