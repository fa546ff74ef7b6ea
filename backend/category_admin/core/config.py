from pydantic_settings import BaseSettings
from typing import List, Union, Optional, Literal
from pydantic import field_validator


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Category Admin"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: Union[List[str], str] = ["http://localhost:3000"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            # Split by comma or keep as single item
            return [origin.strip() for origin in v.split(",")]
        return v

    # Storage: "memory" keeps everything in process, "database" uses SQLAlchemy
    STORAGE_BACKEND: Literal["memory", "database"] = "memory"

    # Database
    SQLALCHEMY_DATABASE_URI: Optional[str] = None
    POSTGRES_USER: str = "category_admin"
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "category_admin"

    @property
    def DATABASE_URL(self) -> str:
        """Explicit URI first, then PostgreSQL from components, else local SQLite."""
        if self.SQLALCHEMY_DATABASE_URI:
            return self.SQLALCHEMY_DATABASE_URI
        if self.POSTGRES_PASSWORD:
            return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        return "sqlite:///./category_admin.db"

    # Cache
    CACHE_BACKEND: Literal["none", "memory", "redis"] = "memory"
    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_TTL_SHORT: int = 300  # 5 minutes, search results
    CACHE_TTL_MEDIUM: int = 1800  # 30 minutes
    CACHE_TTL_LONG: int = 3600  # 1 hour, lists and single records
    CACHE_TTL_EXTRA_LONG: int = 86400  # 24 hours
    CACHE_DEFAULT_TTL: int = 3600

    # Change stream
    STREAM_KEEPALIVE_SECONDS: float = 15.0

    # Rate limiting (slowapi syntax)
    RATE_LIMIT_DEFAULT: str = "100/minute"

    # Background reconciliation of stored content counts, 0 disables
    CONTENT_COUNT_RECONCILE_MINUTES: int = 10

    # Security headers
    ENABLE_HSTS: bool = False
    HSTS_MAX_AGE: int = 31536000  # 1 year in seconds

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env


settings = Settings()
