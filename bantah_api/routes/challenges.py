from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bantah_api.database import get_db
from bantah_api.responses import ok
from bantah_api.schemas import CreateChallengeRequest, SettleChallengeRequest, TelegramUser
from bantah_api.security import get_current_user
from bantah_api.services import challenges

router = APIRouter(tags=["challenges"])

@router.get("/challenges")
async def my_challenges(user: TelegramUser = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    grouped = await challenges.list_user_challenges(db, user.id)
    return ok({key: [c.model_dump(mode="json") for c in items] for key, items in grouped.items()})

@router.get("/challenges/open")
async def open_challenges(user: TelegramUser = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    items = await challenges.list_open_challenges(db, user.id)
    return ok({"challenges": [c.model_dump(mode="json") for c in items]})

@router.post("/challenges/create")
async def create_challenge(
    payload: CreateChallengeRequest,
    user: TelegramUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    challenge_id = await challenges.create_challenge(db, user.id, payload)
    return ok({"challengeId": challenge_id})

@router.post("/challenges/{challenge_id}/accept")
async def accept_challenge(
    challenge_id: int,
    user: TelegramUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await challenges.accept_challenge(db, user.id, challenge_id)
    return ok({"success": True})

@router.post("/challenges/{challenge_id}/settle")
async def settle_challenge(
    challenge_id: int,
    payload: SettleChallengeRequest,
    user: TelegramUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await challenges.settle_challenge(db, user.id, challenge_id, payload.result)
    return ok({"success": True})
