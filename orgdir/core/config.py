"""Configuration settings using Pydantic Settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Database
    database_url: str
    slow_query_ms: float = 0

    # JWT Configuration
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 30

    environment: Literal["development", "production"] = "development"
    api_docs_enabled: bool | None = None
    metrics_token: str | None = None

    # Organization rules
    org_name_min_length: int = 4
    org_key_min_length: int = 4
    default_page_limit: int = 25
    max_page_limit: int = 100

    @model_validator(mode="after")
    def _validate_production_settings(self) -> Settings:
        if self.environment != "production":
            return self

        insecure_jwt_secrets = {
            "dev-secret-change-in-production",
            "change-me",
            "changeme",
        }
        if self.jwt_secret in insecure_jwt_secrets or len(self.jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be a strong secret in production")

        if self.database_url.startswith("sqlite"):
            raise ValueError("DATABASE_URL must point at PostgreSQL in production")

        return self

    @model_validator(mode="after")
    def _validate_org_rules(self) -> Settings:
        if self.org_name_min_length < 1 or self.org_key_min_length < 1:
            raise ValueError("Organization name and key minimum lengths must be positive")
        if self.default_page_limit > self.max_page_limit:
            raise ValueError("DEFAULT_PAGE_LIMIT cannot exceed MAX_PAGE_LIMIT")
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
