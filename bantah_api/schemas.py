from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr

# Модель пользователя внутри initData (Telegram присылает JSON внутри строки).
# id строго целое: "42" или true считаются подделкой, а не данными.
class TelegramUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: StrictInt
    username: StrictStr | None = None
    first_name: StrictStr | None = None
    last_name: StrictStr | None = None
    photo_url: StrictStr | None = None
    language_code: StrictStr | None = None
    is_premium: StrictBool | None = False
    allows_write_to_pm: StrictBool | None = False

# Модель данных авторизации, которые мы ждем от фронтенда
class TelegramAuthData(BaseModel):
    initData: str = Field("", description="Raw query string from Telegram WebApp")


# --- Запросы ---

class WithdrawRequest(BaseModel):
    amount: int = 0

class JoinEventRequest(BaseModel):
    prediction: bool
    amount: int = 0

class CreateChallengeRequest(BaseModel):
    title: str = ""
    description: str = ""
    category: str = ""
    wagerAmount: int = 0
    deadline: datetime | None = None

class SettleChallengeRequest(BaseModel):
    result: str = ""  # challenger | challenged | draw


# --- Ответы (camelCase, как ждет мини-апп) ---

class UserOut(BaseModel):
    id: int
    telegramId: int
    username: str
    firstName: str
    lastName: str
    balance: int
    coins: int
    level: int
    xp: int
    points: int
    profileImageUrl: str | None = None

class WalletOut(BaseModel):
    balance: int
    coins: int
    currency: str
    totalSpent: int
    totalEarned: int
    lastUpdated: int

class TransactionOut(BaseModel):
    id: int
    type: str
    amount: int
    description: str
    status: str
    createdAt: datetime

class EventOut(BaseModel):
    id: int
    title: str
    description: str
    category: str
    yesCount: int
    noCount: int
    status: str
    createdAt: datetime
    deadline: datetime | None

class ChallengeOut(BaseModel):
    id: int
    title: str
    description: str
    category: str
    wagerAmount: int
    status: str
    createdAt: datetime
    deadline: datetime
    winner: str | None = None

class StatsOut(BaseModel):
    participationCount: int = 0
    challengesCreated: int = 0
    challengesAccepted: int = 0
    totalEvents: int = 0
    winRate: float = 0.0
    totalWinnings: int = 0
    currentLevel: int = 1
    xpToNextLevel: int = 1000
    totalXp: int = 0
    points: int = 0

class LeaderboardEntry(BaseModel):
    id: int
    username: str
    level: int
    points: int
    rank: int

class PublicProfile(BaseModel):
    id: int
    username: str | None
    firstName: str | None
    lastName: str | None
    profileImageUrl: str | None
    level: int
    xp: int
    points: int
    displayName: str
