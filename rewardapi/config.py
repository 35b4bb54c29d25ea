from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from urllib.parse import quote_plus


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file="rewardapi/.env",
        env_file_encoding="utf-8",
        extra="allow",
    )
    # Application
    APP_NAME: str = "Classroom Reward API"
    PROJECT_NAME: str = "Classroom Reward Economy"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USERNAME: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DATABASE: str = "postgres"
    POSTGRES_SCHEMA: str = "public"

    # Full URL override (sqlite 등 테스트/로컬 환경용)
    DATABASE_URL: Optional[str] = None
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    @property
    def database_url(self) -> str:
        """Construct database URL from individual components"""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        # URL encode the password to handle special characters
        encoded_password = quote_plus(self.POSTGRES_PASSWORD)
        return f"postgresql+psycopg2://{self.POSTGRES_USERNAME}:{encoded_password}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DATABASE}"

    # Local mirror (Redis)
    MIRROR_ENABLED: bool = True
    MIRROR_KEY_PREFIX: str = "rewardapi:mirror"
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: Optional[str] = None

    # Timezone (daily attempt 기준 날짜)
    TIMEZONE: str = "UTC"

    # Teacher credits
    STARTING_TEACHER_CREDITS: int = 100  # 첫 잔액 생성 시 지급 크레딧
    CREATE_STUDENT_CREDITS: int = 5
    ASSIGN_HOMEWORK_CREDITS: int = 5
    DELETE_POKEMON_CREDITS: int = 2
    AWARD_COINS_CREDITS_PER_COIN: int = 1
    AWARD_POKEMON_CREDITS: int = 1
    HOMEWORK_APPROVAL_COINS_PER_CREDIT: int = 10  # ceil(coin_reward / 10), 최소 1

    # Mystery ball
    MYSTERY_BALL_POKEMON_CHANCE: float = 0.5
    MYSTERY_BALL_COIN_MIN: int = 1
    MYSTERY_BALL_COIN_MAX: int = 20
    MYSTERY_BALL_HISTORY_LIMIT: int = 10


settings = Settings()
