from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # DB Fields (parsed from .env)
    database_dsn: Optional[str] = None
    postgres_db: str = "lunarlink"
    postgres_user: str = "lunarlink"
    postgres_password: str = "lunarlink"
    database_host: str = "localhost"
    database_port: int = 5432

    # Session token configs
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    session_timeout_minutes: int = 60

    # Base64 encoded root password
    admin_key: str = "Y2hhbmdlLW1l"

    # Issuance flow
    max_retries: int = 3
    accepted_display_seconds: float = 1.5
    notice_display_seconds: float = 3.0

    # Low stock alert thresholds
    low_code_threshold: int = 5
    critical_threshold: int = 2

    # Redis Configs (optional, issuance state falls back to process memory)
    redis_url: Optional[str] = None
    issuance_state_ttl_seconds: int = 3600

    run_migrations_on_startup: bool = False

    # Full DSN wins, otherwise build the Postgres URL from its components
    @property
    def database_url(self) -> str:
        if self.database_dsn:
            return self.database_dsn
        return (
            f"postgresql+psycopg2://{self.postgres_user}:{self.postgres_password}"
            f"@{self.database_host}:{self.database_port}/{self.postgres_db}"
        )

    class Config:
        env_file = ".env"
        case_sensitive = False  # This makes environment variables case-insensitive
        extra = "ignore"  # Ignore extra fields


settings = Settings()
