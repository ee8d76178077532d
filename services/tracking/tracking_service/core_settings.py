from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "tracking"
    POSTGRES_USER: str = "tracking"
    POSTGRES_PASSWORD: str = "tracking"
    # Full SQLAlchemy URL; overrides the POSTGRES_* fields when set
    DATABASE_URL: Optional[str] = None
    JWT_SECRET: str = "change-me"
    JWT_ALG: str = "HS256"
    JWT_EXPIRES_MINUTES: int = 60
    # Shared secret for the one-time initial admin grant; empty disables bootstrap
    ADMIN_TOKEN: str = ""
    # Lets /auth/token mint tokens for any username; local development only
    ENABLE_DEV_TOKENS: bool = False
    TRACKING_PREFIX: str = "TRK"
    LOG_LEVEL: str = "INFO"
    RUN_MIGRATIONS: bool = False
    SERVICE_VERSION: str = "1.0.0"

    class Config:
        env_file = ".env"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

@lru_cache
def get_settings() -> Settings:
    return Settings()
