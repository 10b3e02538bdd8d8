# Все модели импортируются здесь, чтобы Alembic видел их в Base.metadata
from bantah_api.models.user import User
from bantah_api.models.transaction import Transaction
from bantah_api.models.event import Event, EventParticipant
from bantah_api.models.challenge import Challenge
from bantah_api.models.notification import Notification

__all__ = ["User", "Transaction", "Event", "EventParticipant", "Challenge", "Notification"]
