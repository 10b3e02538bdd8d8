import logging

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bantah_api.errors import ApiError, BadRequest, NotFound
from bantah_api.models import transaction as tx_types
from bantah_api.models.event import Event, EventParticipant
from bantah_api.schemas import EventOut
from bantah_api.services import wallet
from bantah_api.services.notifications import notify
from bantah_api.services.users import award_xp

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
MAX_LIMIT = 100
JOIN_XP = 10
CLOSED_STATUSES = ("cancelled", "completed")


def pool_deltas(prediction: bool, amount: int) -> dict[str, int]:
    """Какие пулы события меняются на amount при ставке "да"/"нет"."""
    side = "yes_pool" if prediction else "no_pool"
    return {side: amount, "event_pool": amount}


def to_event_out(evt: Event) -> EventOut:
    return EventOut(
        id=evt.id,
        title=evt.title,
        description=evt.description or "",
        category=evt.category,
        yesCount=evt.yes_pool or 0,
        noCount=evt.no_pool or 0,
        status=evt.status,
        createdAt=evt.created_at,
        deadline=evt.end_date,
    )


async def list_events(db: AsyncSession, limit: int = DEFAULT_LIMIT, offset: int = 0) -> list[EventOut]:
    result = await db.execute(
        select(Event)
        .where(Event.status != "cancelled")
        .order_by(Event.created_at.desc(), Event.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return [to_event_out(e) for e in result.scalars().all()]


async def get_event(db: AsyncSession, event_id: int) -> Event:
    evt = await db.get(Event, event_id)
    if evt is None:
        raise NotFound("Event not found")
    return evt


async def _apply_pools(db: AsyncSession, event_id: int, deltas: dict[str, int], sign: int) -> None:
    values = {name: getattr(Event, name) + sign * amount for name, amount in deltas.items()}
    await db.execute(update(Event).where(Event.id == event_id).values(**values))


async def join_event(db: AsyncSession, user_id: int, event_id: int, prediction: bool, amount: int) -> None:
    if amount <= 0:
        raise BadRequest("Missing required fields")

    evt = await get_event(db, event_id)
    if evt.status in CLOSED_STATUSES:
        raise BadRequest("Event not active")
    if evt.entry_fee and amount < evt.entry_fee:
        raise BadRequest("Amount below entry fee")

    existing = await db.scalar(
        select(EventParticipant.id).where(
            EventParticipant.event_id == event_id, EventParticipant.user_id == user_id
        )
    )
    if existing is not None:
        raise ApiError(409, "Already joined")

    if evt.max_participants and evt.max_participants > 0:
        count = await db.scalar(
            select(func.count()).select_from(EventParticipant).where(EventParticipant.event_id == event_id)
        )
        if count >= evt.max_participants:
            raise BadRequest("Event is full")

    await wallet.debit(db, user_id, amount)

    db.add(EventParticipant(event_id=event_id, user_id=user_id, prediction=prediction, amount=amount, status="active"))
    await _apply_pools(db, event_id, pool_deltas(prediction, amount), +1)
    wallet.record_transaction(db, user_id, tx_types.BET, amount, f"Bet on event {event_id}", related_id=event_id)
    await award_xp(db, user_id, JOIN_XP)

    if evt.creator_id and evt.creator_id != user_id:
        notify(
            db, evt.creator_id, "event_participation", "New participant",
            f"User {user_id} joined event {event_id}",
            {"participant": user_id, "eventId": event_id},
        )

    try:
        await db.commit()
    except IntegrityError:
        # Параллельный join того же пользователя упал на uq_event_participant
        await db.rollback()
        raise ApiError(409, "Already joined")
    logger.info(f"User {user_id} predicted {prediction} on event {event_id}")


async def leave_event(db: AsyncSession, user_id: int, event_id: int) -> None:
    participant = await db.scalar(
        select(EventParticipant).where(
            EventParticipant.event_id == event_id, EventParticipant.user_id == user_id
        )
    )
    if participant is None:
        raise NotFound("Participant not found")

    evt = await get_event(db, event_id)
    if evt.status in CLOSED_STATUSES:
        raise BadRequest("Event not active")

    amount = participant.amount
    await db.execute(
        delete(EventParticipant).where(
            EventParticipant.event_id == event_id, EventParticipant.user_id == user_id
        )
    )
    await _apply_pools(db, event_id, pool_deltas(participant.prediction, amount), -1)
    await wallet.credit(db, user_id, amount)
    wallet.record_transaction(
        db, user_id, tx_types.BET_REFUND, amount, f"Refund for leaving event {event_id}", related_id=event_id
    )

    await db.commit()
    logger.info(f"User {user_id} left event {event_id}")
