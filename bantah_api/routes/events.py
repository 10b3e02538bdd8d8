from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bantah_api.database import get_db
from bantah_api.responses import clamp_limit, ok
from bantah_api.schemas import JoinEventRequest, TelegramUser
from bantah_api.security import get_current_user
from bantah_api.services import events

router = APIRouter(tags=["events"])

@router.get("/events")
async def list_events(
    limit: int = events.DEFAULT_LIMIT,
    offset: int = 0,
    user: TelegramUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    items = await events.list_events(db, clamp_limit(limit, events.DEFAULT_LIMIT, events.MAX_LIMIT), max(offset, 0))
    return ok({"events": [e.model_dump(mode="json") for e in items]})

@router.get("/events/{event_id}")
async def get_event(
    event_id: int,
    user: TelegramUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    evt = await events.get_event(db, event_id)
    return ok(events.to_event_out(evt).model_dump(mode="json"))

@router.post("/events/{event_id}/join")
async def join_event(
    event_id: int,
    payload: JoinEventRequest,
    user: TelegramUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await events.join_event(db, user.id, event_id, payload.prediction, payload.amount)
    return ok({"success": True})

@router.post("/events/{event_id}/leave")
async def leave_event(
    event_id: int,
    user: TelegramUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await events.leave_event(db, user.id, event_id)
    return ok({"success": True})
