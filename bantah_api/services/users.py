import logging

from sqlalchemy import case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from bantah_api.models.user import User
from bantah_api.schemas import LeaderboardEntry, PublicProfile, TelegramUser, UserOut

logger = logging.getLogger(__name__)

XP_PER_LEVEL = 1000
STARTING_POINTS = 1000

SEARCH_MIN_LENGTH = 2
SEARCH_LIMIT = 20
SUGGESTIONS_LIMIT = 5


def level_for_xp(xp: int) -> int:
    return xp // XP_PER_LEVEL + 1


def xp_to_next_level(xp: int) -> int:
    return XP_PER_LEVEL - xp % XP_PER_LEVEL


async def get_user(db: AsyncSession, user_id: int) -> User | None:
    return await db.get(User, user_id)


async def upsert_telegram_user(db: AsyncSession, tg_user: TelegramUser) -> User:
    """
    Находит пользователя по Telegram ID или создает нового.
    При повторном входе обновляет профиль из свежего initData.
    """
    user = await db.get(User, tg_user.id)
    if user is None:
        user = User(
            id=tg_user.id,
            username=tg_user.username or f"user{tg_user.id}",
            first_name=tg_user.first_name or "Telegram",
            last_name=tg_user.last_name or "User",
            photo_url=tg_user.photo_url,
            balance=0,
            coins=0,
            level=1,
            xp=0,
            points=STARTING_POINTS,
        )
        db.add(user)
        logger.info(f"Created user {tg_user.id}")
    else:
        if tg_user.username:
            user.username = tg_user.username
        if tg_user.first_name:
            user.first_name = tg_user.first_name
        if tg_user.last_name:
            user.last_name = tg_user.last_name
        if tg_user.photo_url:
            user.photo_url = tg_user.photo_url

    await db.commit()
    await db.refresh(user)
    return user


async def award_xp(db: AsyncSession, user_id: int, amount: int) -> None:
    # Уровень пересчитывается в том же UPDATE, без чтения строки
    new_xp = User.xp + amount
    await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(xp=new_xp, level=new_xp // XP_PER_LEVEL + 1)
    )


def to_user_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        telegramId=user.id,
        username=user.username or f"user{user.id}",
        firstName=user.first_name or "User",
        lastName=user.last_name or "",
        balance=user.balance or 0,
        coins=user.coins or 0,
        level=user.level or 1,
        xp=user.xp or 0,
        points=user.points or 0,
        profileImageUrl=user.photo_url,
    )


def to_profile(user: User) -> PublicProfile:
    return PublicProfile(
        id=user.id,
        username=user.username,
        firstName=user.first_name,
        lastName=user.last_name,
        profileImageUrl=user.photo_url,
        level=user.level or 1,
        xp=user.xp or 0,
        points=user.points or 0,
        displayName=user.display_name,
    )


async def search_users(db: AsyncSession, query: str, exclude_id: int) -> list[PublicProfile]:
    """
    Поиск по username / имени / фамилии без учета регистра.
    Сначала точное совпадение username, потом префикс, потом остальное.
    """
    query = query.strip()
    if len(query) < SEARCH_MIN_LENGTH:
        return []

    needle = query.lower()
    pattern = f"%{needle}%"
    username = func.lower(User.username)
    rank = case(
        (username == needle, 1),
        (username.like(f"{needle}%"), 2),
        else_=3,
    )
    stmt = (
        select(User)
        .where(
            or_(
                username.like(pattern),
                func.lower(User.first_name).like(pattern),
                func.lower(User.last_name).like(pattern),
            ),
            User.id != exclude_id,
        )
        .order_by(rank, User.points.desc())
        .limit(SEARCH_LIMIT)
    )
    result = await db.execute(stmt)
    return [to_profile(u) for u in result.scalars().all()]


async def suggestions(db: AsyncSession, exclude_id: int) -> dict:
    top = await db.execute(
        select(User).where(User.id != exclude_id).order_by(User.points.desc()).limit(SUGGESTIONS_LIMIT)
    )
    recent = await db.execute(
        select(User)
        .where(User.id != exclude_id)
        .order_by(func.coalesce(User.updated_at, User.created_at).desc())
        .limit(SUGGESTIONS_LIMIT)
    )
    return {
        "topPlayers": [
            {**to_profile(u).model_dump(), "category": "Top Players"} for u in top.scalars().all()
        ],
        "recentActive": [
            {**to_profile(u).model_dump(), "category": "Recently Active"} for u in recent.scalars().all()
        ],
    }


async def leaderboard(db: AsyncSession, limit: int) -> list[LeaderboardEntry]:
    result = await db.execute(select(User).order_by(User.xp.desc(), User.id).limit(limit))
    return [
        LeaderboardEntry(
            id=u.id,
            username=u.username or f"User {rank}",
            level=u.level or 1,
            points=u.xp or 0,
            rank=rank,
        )
        for rank, u in enumerate(result.scalars().all(), 1)
    ]
