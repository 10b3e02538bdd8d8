import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from bantah_api.errors import ApiError, BadRequest, NotFound
from bantah_api.models import challenge as challenge_status
from bantah_api.models import transaction as tx_types
from bantah_api.models.challenge import Challenge
from bantah_api.schemas import ChallengeOut, CreateChallengeRequest
from bantah_api.services import wallet
from bantah_api.services.notifications import notify
from bantah_api.services.users import award_xp

logger = logging.getLogger(__name__)

DEFAULT_DEADLINE = timedelta(days=7)
CREATE_XP = 20
WIN_XP = 50


@dataclass(frozen=True)
class Payout:
    user_id: int
    amount: int
    type: str
    description: str


def compute_payouts(challenge_id: int, challenger_id: int, challenged_id: int, stake: int, result: str) -> list[Payout]:
    """
    Выплаты при закрытии челленджа.
    Ничья: каждой стороне возвращается ее ставка. Победа: победитель забирает обе ставки.
    """
    if result == "draw":
        return [
            Payout(uid, stake, tx_types.CHALLENGE_REFUND, f"Refund for challenge {challenge_id}")
            for uid in (challenger_id, challenged_id)
        ]
    if result == "challenger":
        winner = challenger_id
    elif result == "challenged":
        winner = challenged_id
    else:
        raise BadRequest("Invalid result")
    return [Payout(winner, stake * 2, tx_types.CHALLENGE_WIN, f"Challenge {challenge_id} win")]


def to_challenge_out(c: Challenge) -> ChallengeOut:
    return ChallengeOut(
        id=c.id,
        title=c.title,
        description=c.description or "",
        category=c.category,
        wagerAmount=c.amount,
        status=c.status,
        createdAt=c.created_at,
        deadline=c.due_date,
        winner=c.result,
    )


async def list_user_challenges(db: AsyncSession, user_id: int) -> dict[str, list[ChallengeOut]]:
    created = await db.execute(
        select(Challenge).where(Challenge.challenger_id == user_id).order_by(Challenge.created_at.desc())
    )
    accepted = await db.execute(
        select(Challenge).where(Challenge.challenged_id == user_id).order_by(Challenge.created_at.desc())
    )
    return {
        "created": [to_challenge_out(c) for c in created.scalars().all()],
        "accepted": [to_challenge_out(c) for c in accepted.scalars().all()],
    }


async def list_open_challenges(db: AsyncSession, user_id: int, limit: int = 50) -> list[ChallengeOut]:
    result = await db.execute(
        select(Challenge)
        .where(Challenge.status == challenge_status.PENDING, Challenge.challenger_id != user_id)
        .order_by(Challenge.created_at.desc())
        .limit(limit)
    )
    return [to_challenge_out(c) for c in result.scalars().all()]


async def get_challenge(db: AsyncSession, challenge_id: int) -> Challenge:
    challenge = await db.get(Challenge, challenge_id)
    if challenge is None:
        raise NotFound("Challenge not found")
    return challenge


async def create_challenge(db: AsyncSession, user_id: int, data: CreateChallengeRequest) -> int:
    if not data.title or not data.category or data.wagerAmount <= 0:
        raise BadRequest("Missing required fields")

    due_date = data.deadline or datetime.now(timezone.utc) + DEFAULT_DEADLINE

    # Ставка автора сразу уходит в эскроу
    await wallet.debit(db, user_id, data.wagerAmount)

    challenge = Challenge(
        challenger_id=user_id,
        title=data.title,
        description=data.description,
        category=data.category,
        amount=data.wagerAmount,
        status=challenge_status.PENDING,
        due_date=due_date,
    )
    db.add(challenge)
    await db.flush()

    wallet.record_transaction(
        db, user_id, tx_types.CHALLENGE_STAKE, data.wagerAmount,
        f"Stake for challenge {challenge.id}", related_id=challenge.id,
    )
    await award_xp(db, user_id, CREATE_XP)
    await db.commit()

    logger.info(f"Created challenge {challenge.id} by user {user_id}")
    return challenge.id


async def accept_challenge(db: AsyncSession, user_id: int, challenge_id: int) -> None:
    challenge = await get_challenge(db, challenge_id)
    if challenge.challenger_id == user_id:
        raise BadRequest("Cannot accept your own challenge")
    if challenge.status != challenge_status.PENDING:
        raise BadRequest("Challenge is not open")

    await wallet.debit(db, user_id, challenge.amount)

    # Условие на статус в UPDATE: второй принявший получит 0 строк
    result = await db.execute(
        update(Challenge)
        .where(Challenge.id == challenge_id, Challenge.status == challenge_status.PENDING)
        .values(challenged_id=user_id, status=challenge_status.ACTIVE)
    )
    if result.rowcount == 0:
        await db.rollback()
        raise BadRequest("Challenge is not open")

    wallet.record_transaction(
        db, user_id, tx_types.CHALLENGE_STAKE, challenge.amount,
        f"Stake for challenge {challenge_id}", related_id=challenge_id,
    )
    notify(
        db, challenge.challenger_id, "challenge_accepted", "Challenge accepted",
        f"Your challenge {challenge_id} was accepted", {"challengeId": challenge_id},
    )
    await db.commit()
    logger.info(f"User {user_id} accepted challenge {challenge_id}")


async def settle_challenge(db: AsyncSession, user_id: int, challenge_id: int, result: str) -> list[Payout]:
    challenge = await get_challenge(db, challenge_id)
    if user_id not in (challenge.challenger_id, challenge.challenged_id):
        raise ApiError(403, "Only challenge participants can settle it")
    if challenge.status == challenge_status.COMPLETED:
        raise BadRequest("Challenge already settled")
    if challenge.status != challenge_status.ACTIVE:
        raise BadRequest("Challenge not active")

    payouts = compute_payouts(
        challenge.id, challenge.challenger_id, challenge.challenged_id, challenge.amount, result
    )

    updated = await db.execute(
        update(Challenge)
        .where(Challenge.id == challenge_id, Challenge.status == challenge_status.ACTIVE)
        .values(status=challenge_status.COMPLETED, result=result, completed_at=datetime.now(timezone.utc))
    )
    if updated.rowcount == 0:
        await db.rollback()
        raise BadRequest("Challenge already settled")

    for payout in payouts:
        await wallet.credit(db, payout.user_id, payout.amount)
        wallet.record_transaction(
            db, payout.user_id, payout.type, payout.amount, payout.description, related_id=challenge_id
        )
        if payout.type == tx_types.CHALLENGE_WIN:
            await award_xp(db, payout.user_id, WIN_XP)
            notify(
                db, payout.user_id, "challenge_win", "Challenge won",
                f"You won challenge {challenge_id}", {"challengeId": challenge_id},
            )
        else:
            notify(
                db, payout.user_id, "challenge_refund", "Challenge refunded",
                f"Your challenge {challenge_id} was refunded (draw)", {"challengeId": challenge_id},
            )

    await db.commit()
    logger.info(f"Challenge {challenge_id} settled: {result}")
    return payouts
