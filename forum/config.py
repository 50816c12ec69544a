"""Application configuration using Pydantic settings."""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings

DEFAULT_JWT_SECRET = "your-secret-key"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    mongo_url: str = "mongodb://localhost:27017"
    mongo_db: str = "forum"

    # Authentication
    jwt_secret: str = DEFAULT_JWT_SECRET
    token_ttl_hours: int = 168  # 7 days

    # Logging
    log_level: str = "INFO"

    # HTTP
    cors_origins: str = "*"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse comma-separated CORS origins into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def cors_allow_credentials(self) -> bool:
        """Credentialed CORS only for an explicit origin list, never for "*"."""
        return "*" not in self.cors_origins_list

    @property
    def uses_default_jwt_secret(self) -> bool:
        """True when JWT_SECRET was never set, so tokens are forgeable."""
        return self.jwt_secret == DEFAULT_JWT_SECRET

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
