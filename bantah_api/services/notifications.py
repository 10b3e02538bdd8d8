from sqlalchemy.ext.asyncio import AsyncSession

from bantah_api.models.notification import Notification


def notify(db: AsyncSession, user_id: int, type: str, title: str, message: str, data: dict | None = None) -> None:
    """Добавляет уведомление в текущую сессию; коммитит вызывающий код."""
    db.add(Notification(user_id=user_id, type=type, title=title, message=message, data=data))
