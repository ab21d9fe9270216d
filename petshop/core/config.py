# petshop/core/config.py

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import urllib.parse

class Settings(BaseSettings):
    # Read env from .env; ignore unknown keys so extra lines don't crash startup
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Database ---
    # A full URL wins over the Postgres parts (e.g. sqlite+aiosqlite:///./data/petshop.db)
    DATABASE_URL: str | None = None
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "petshop"
    POSTGRES_USER: str = "petshop"
    POSTGRES_PASSWORD: str = ""

    # --- Security ---
    JWT_SECRET: str = "petshop-dev-secret"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 30
    ADMIN_API_KEY: str | None = None

    # --- Monitoring & Logging ---
    APP_ENV: str = "production"
    LOG_LEVEL: str = "INFO"
    LOG_REQUESTS: bool = False
    LOG_RESPONSES: bool = False
    MAX_LOG_LENGTH: int = 200
    SLOW_REQUEST_THRESHOLD: float = 2.0
    ERROR_AGGREGATION_THRESHOLD: int = 10

    # --- Business hours / booking ---
    BUSINESS_TIMEZONE: str = "Asia/Kuala_Lumpur"
    OPENING_HOUR: int = 10
    CLOSING_HOUR: int = 22
    DEFAULT_MAX_BOOKINGS_PER_SLOT: int = 5
    BOOKING_RESERVE_ATTEMPTS: int = 3

    # --- Catalog ---
    CATALOG_CACHE_TTL: float = 60.0
    SEED_CATALOG_ON_STARTUP: bool = True

    ALLOWED_CORS_ORIGINS: str = "*"  # comma-separated list, e.g. "http://localhost:5173,https://shop.example"

    @model_validator(mode="after")
    def _check_business_hours(self) -> "Settings":
        if not (0 <= self.OPENING_HOUR < self.CLOSING_HOUR <= 24):
            raise ValueError("OPENING_HOUR must be before CLOSING_HOUR, both within 0-24")
        if self.DEFAULT_MAX_BOOKINGS_PER_SLOT < 1:
            raise ValueError("DEFAULT_MAX_BOOKINGS_PER_SLOT must be at least 1")
        return self

    # Async URI (app engine and Alembic)
    @property
    def async_db_uri(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        pwd = urllib.parse.quote_plus(self.POSTGRES_PASSWORD)
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{pwd}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_CORS_ORIGINS.split(",") if o.strip()]

    @property
    def debug_logging(self) -> bool:
        """Console logs and request/response logging outside production."""
        return self.APP_ENV.lower() in ("development", "dev", "local", "testing")

# Singleton
settings = Settings()
