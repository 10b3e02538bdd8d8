from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bantah_api.database import get_db
from bantah_api.responses import clamp_limit, ok
from bantah_api.schemas import TelegramUser, WithdrawRequest
from bantah_api.security import get_current_user
from bantah_api.services import wallet

router = APIRouter(tags=["wallet"])

@router.get("/wallet")
async def get_wallet(user: TelegramUser = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    summary, recent = await wallet.get_wallet(db, user.id)
    return ok({
        "wallet": summary.model_dump(),
        "recentTransactions": [tx.model_dump(mode="json") for tx in recent],
    })

@router.get("/transactions")
async def get_transactions(
    limit: int = 20,
    offset: int = 0,
    user: TelegramUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    txs = await wallet.list_transactions(db, user.id, clamp_limit(limit, 20), max(offset, 0))
    return ok({"transactions": [tx.model_dump(mode="json") for tx in txs]})

@router.post("/withdraw")
async def withdraw(
    payload: WithdrawRequest,
    user: TelegramUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    reference = await wallet.withdraw(db, user.id, payload.amount)
    return ok({
        "success": True,
        "reference": reference,
        "message": "Withdrawal request submitted. You will receive your funds within 24 hours.",
    })
