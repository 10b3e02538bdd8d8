import logging
import time

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from bantah_api.config import settings
from bantah_api.errors import BadRequest, NotFound
from bantah_api.models import transaction as tx_types
from bantah_api.models.transaction import Transaction
from bantah_api.models.user import User
from bantah_api.schemas import TransactionOut, WalletOut

logger = logging.getLogger(__name__)

RECENT_TRANSACTIONS = 10


def record_transaction(
    db: AsyncSession,
    user_id: int,
    type: str,
    amount: int,
    description: str,
    related_id: str | int | None = None,
    status: str = "completed",
) -> Transaction:
    tx = Transaction(
        user_id=user_id,
        type=type,
        amount=amount,
        description=description,
        related_id=str(related_id) if related_id is not None else None,
        status=status,
    )
    db.add(tx)
    return tx


async def credit(db: AsyncSession, user_id: int, amount: int) -> None:
    await db.execute(update(User).where(User.id == user_id).values(balance=User.balance + amount))


async def debit(db: AsyncSession, user_id: int, amount: int) -> None:
    """
    Списывает amount с баланса. Условие balance >= amount проверяется
    в самом UPDATE, поэтому два параллельных списания не уведут баланс в минус.
    """
    result = await db.execute(
        update(User)
        .where(User.id == user_id, User.balance >= amount)
        .values(balance=User.balance - amount)
    )
    if result.rowcount == 0:
        # 0 строк: либо денег мало, либо пользователь не проходил /api/auth
        if await db.get(User, user_id) is None:
            raise NotFound("User not found")
        raise BadRequest("Insufficient balance")


async def get_wallet(db: AsyncSession, user_id: int) -> tuple[WalletOut, list[TransactionOut]]:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")

    totals = await db.execute(
        select(
            func.coalesce(
                func.sum(case((Transaction.type.in_(tx_types.SPENT_TYPES), Transaction.amount), else_=0)), 0
            ),
            func.coalesce(
                func.sum(case((Transaction.type.in_(tx_types.EARNED_TYPES), Transaction.amount), else_=0)), 0
            ),
        ).where(Transaction.user_id == user_id)
    )
    spent, earned = totals.one()

    wallet = WalletOut(
        balance=user.balance or 0,
        coins=user.coins or 0,
        currency=settings.CURRENCY,
        totalSpent=int(spent),
        totalEarned=int(earned),
        lastUpdated=int(time.time() * 1000),
    )
    return wallet, await list_transactions(db, user_id, limit=RECENT_TRANSACTIONS)


async def list_transactions(db: AsyncSession, user_id: int, limit: int, offset: int = 0) -> list[TransactionOut]:
    result = await db.execute(
        select(Transaction)
        .where(Transaction.user_id == user_id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return [
        TransactionOut(
            id=tx.id,
            type=tx.type,
            amount=tx.amount,
            description=tx.description or "",
            status=tx.status,
            createdAt=tx.created_at,
        )
        for tx in result.scalars().all()
    ]


async def withdraw(db: AsyncSession, user_id: int, amount: int) -> str:
    """Списывает сумму и создает заявку на вывод в статусе pending. Возвращает референс."""
    if amount <= 0:
        raise BadRequest("Invalid amount or missing user")

    if await db.get(User, user_id) is None:
        raise NotFound("User not found")

    await debit(db, user_id, amount)

    reference = f"withdraw_{user_id}_{int(time.time() * 1000)}"
    record_transaction(
        db, user_id, tx_types.WITHDRAWAL, amount, "Withdrawal request",
        related_id=reference, status="pending",
    )
    await db.commit()

    logger.info(f"Withdrawal initiated for user {user_id}: {amount} {settings.CURRENCY}")
    return reference
