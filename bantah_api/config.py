from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Без токена любая авторизация через initData отклоняется
    BOT_TOKEN: str | None = None
    API_PORT: int = 8000

    DATABASE_URL: str | None = None
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "bantah"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432

    CORS_ORIGINS: str = "*"
    LOG_LEVEL: str = "INFO"

    # Бот: long polling внутри API-процесса и ссылка на мини-апп для /start
    BOT_POLLING: bool = False
    WEBAPP_URL: str | None = None
    # secret_token, переданный в setWebhook; без него вебхук игнорирует апдейты
    TELEGRAM_WEBHOOK_SECRET: str | None = None

    CURRENCY: str = "NGN"
    # 0 = auth_date не проверяется (окно повторного использования не задано)
    INIT_DATA_MAX_AGE: int = 0

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

settings = Settings()
