from functools import lru_cache
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Strongly-typed settings model loaded from env / .env.

    Notes:
        - DSNs and JWT material must be provided via environment variables.
        - No insecure defaults are shipped; application will fail-fast if missing.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        protected_namespaces=()
    )

    ENV: str = Field(..., description="Deployment environment, e.g. dev/staging/prod")
    SERVICE_NAME: str = Field(default="assessment-engine", description="Service name")
    LOG_LEVEL: str = Field(default="INFO", description="Root log level")

    DATABASE_DSN: str = Field(..., description="SQLAlchemy async DSN, e.g. postgresql+asyncpg://...")
    DB_ECHO: bool = Field(default=False, description="Echo SQL statements")
    DB_TX_RETRIES: int = Field(default=3, ge=1, description="Attempts for transient transaction failures")

    JWT_PUBLIC_KEY: str = Field(..., description="JWT public key (must be provided)")
    OIDC_ISSUER: str = Field(..., description="OIDC issuer URL")
    OIDC_AUDIENCE: str = Field(..., description="OIDC audience")

    KAFKA_BOOTSTRAP: str | None = Field(default=None, description="Kafka bootstrap servers; events are only logged when unset")
    EVENTS_TOPIC: str = Field(default="assessment-events", description="Topic for assessment domain events")

    LATE_SUBMISSION_POLICY: Literal["accept", "reject"] = Field(
        default="accept",
        description="Whether timed submissions after the deadline are graded or rejected",
    )
    LATE_SUBMISSION_GRACE_SECONDS: int = Field(default=0, ge=0, description="Slack added to the deadline under 'reject'")


@lru_cache()
def get_settings() -> Settings:
    """Return a cached singleton `Settings` instance."""
    return Settings()
