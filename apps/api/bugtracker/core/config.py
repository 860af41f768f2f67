"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    # Database
    DATABASE_URL: str = "sqlite:///./bugtracker.db"
    DB_AUTO_MIGRATE: bool = False

    # Access tokens (supports key rotation)
    JWT_SECRET: str = "change-this-in-production"
    JWT_SECRET_PREVIOUS: str = ""  # Set during rotation, clear after
    JWT_EXPIRES_DAYS: int = 30

    # Password hashing cost
    BCRYPT_ROUNDS: int = 12

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Logging
    LOG_LEVEL: str = "INFO"

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Rate Limiting (requests per minute; Redis shared across workers)
    REDIS_URL: str = "redis://localhost:6379/0"
    RATE_LIMIT_AUTH: int = 10  # Login / register attempts
    RATE_LIMIT_API: int = 120  # General API

    # Activity feed
    ACTIVITY_FEED_LIMIT: int = 50

    # Real-time push
    REALTIME_SEND_TIMEOUT_SECONDS: float = 5.0

    # Comments are open to any authenticated user unless this is enabled
    COMMENTS_REQUIRE_MEMBERSHIP: bool = False

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def jwt_secrets(self) -> list[str]:
        """Returns list of valid secrets (current first, then previous if set)."""
        secrets = [self.JWT_SECRET]
        if self.JWT_SECRET_PREVIOUS:
            secrets.append(self.JWT_SECRET_PREVIOUS)
        return secrets


settings = Settings()
