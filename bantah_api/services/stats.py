from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from bantah_api.errors import NotFound
from bantah_api.models import transaction as tx_types
from bantah_api.models.challenge import Challenge
from bantah_api.models.event import EventParticipant
from bantah_api.models.transaction import Transaction
from bantah_api.models.user import User
from bantah_api.schemas import StatsOut
from bantah_api.services.users import xp_to_next_level

# (название, иконка, описание, условие по статистике)
ACHIEVEMENTS = [
    ("First Bet", "🎯", "Place your first bet", lambda s, wins: s.participationCount >= 1),
    ("Big Winner", "🏆", "Win ₦10,000 in bets", lambda s, wins: s.totalWinnings >= 10_000),
    ("Challenge Master", "⚔️", "Win 10 challenges", lambda s, wins: wins >= 10),
    ("Consistent Trader", "📈", "Participate in 20 events", lambda s, wins: s.totalEvents >= 20),
    ("Challenger", "🤝", "Create 5 challenges", lambda s, wins: s.challengesCreated >= 5),
    ("Prediction Expert", "🔮", "Achieve 80% win rate", lambda s, wins: wins >= 5 and s.winRate >= 0.8),
    ("Millionaire", "💰", "Earn ₦1,000,000", lambda s, wins: s.totalWinnings >= 1_000_000),
    ("Level 50", "⭐", "Reach level 50", lambda s, wins: s.currentLevel >= 50),
]


def win_rate(wins: int, decided: int) -> float:
    if decided <= 0:
        return 0.0
    return round(wins / decided, 2)


def achievements_for(stats: StatsOut, wins: int) -> list[dict]:
    return [
        {"name": name, "icon": icon, "unlocked": bool(rule(stats, wins)), "description": description}
        for name, icon, description, rule in ACHIEVEMENTS
    ]


async def count_wins(db: AsyncSession, user_id: int) -> tuple[int, int]:
    """(победы, челленджи с результатом, где пользователь был стороной)."""
    decided = await db.scalar(
        select(func.count())
        .select_from(Challenge)
        .where(
            or_(Challenge.challenger_id == user_id, Challenge.challenged_id == user_id),
            Challenge.result.in_(("challenger", "challenged")),
        )
    )
    wins = await db.scalar(
        select(func.count())
        .select_from(Challenge)
        .where(
            or_(
                (Challenge.challenger_id == user_id) & (Challenge.result == "challenger"),
                (Challenge.challenged_id == user_id) & (Challenge.result == "challenged"),
            )
        )
    )
    return wins or 0, decided or 0


async def user_stats(db: AsyncSession, user_id: int) -> tuple[StatsOut, int]:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")

    participation = await db.scalar(
        select(func.count()).select_from(EventParticipant).where(EventParticipant.user_id == user_id)
    )
    total_events = await db.scalar(
        select(func.count(func.distinct(EventParticipant.event_id))).where(EventParticipant.user_id == user_id)
    )
    created = await db.scalar(
        select(func.count()).select_from(Challenge).where(Challenge.challenger_id == user_id)
    )
    accepted = await db.scalar(
        select(func.count()).select_from(Challenge).where(Challenge.challenged_id == user_id)
    )
    winnings = await db.scalar(
        select(func.coalesce(func.sum(Transaction.amount), 0)).where(
            Transaction.user_id == user_id, Transaction.type.in_(tx_types.WINNING_TYPES)
        )
    )
    wins, decided = await count_wins(db, user_id)

    xp = user.xp or 0
    stats = StatsOut(
        participationCount=participation or 0,
        challengesCreated=created or 0,
        challengesAccepted=accepted or 0,
        totalEvents=total_events or 0,
        winRate=win_rate(wins, decided),
        totalWinnings=int(winnings or 0),
        currentLevel=user.level or 1,
        xpToNextLevel=xp_to_next_level(xp),
        totalXp=xp,
        points=user.points or 0,
    )
    return stats, wins
