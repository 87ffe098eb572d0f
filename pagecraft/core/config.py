"""Configuration management for PageCraft Engine."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    # Environment variables should be set directly
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # OpenAI configuration (required)
    OPENAI_API_KEY: str = Field(..., description="OpenAI API key")

    # Environment
    PAGECRAFT_ENV: str = Field(default="dev", description="Environment: dev, staging, prod")
    LOG_LEVEL: str | None = Field(
        default=None, description="Log level override (DEBUG in dev, INFO otherwise)"
    )

    # Decision engine configuration
    DECISION_MODEL: str = Field(default="gpt-4o-mini", description="Model for design decisions")
    DECISION_TEMPERATURE: float = Field(
        default=0.2, description="Temperature for the first decision attempt"
    )
    DECISION_RETRY_TEMPERATURE: float = Field(
        default=0.1, description="Temperature for the corrective decision attempt"
    )
    DECISION_HISTORY_MESSAGES: int = Field(
        default=6, description="Recent messages included in the decision context"
    )
    DECISION_PROMPT_VERSION: str = Field(
        default="decision_v1", description="Decision prompt version for tracking"
    )

    # Component generation configuration
    COMPONENT_MODEL: str = Field(
        default="gpt-4o-mini", description="Model for component HTML generation"
    )
    COMPONENT_TEMPERATURE: float = Field(
        default=0.7, description="Temperature for component generation"
    )

    # Intent heuristics
    INTENT_VOCABULARY_FILE: str | None = Field(
        default=None, description="Optional JSON file overriding the intent phrase lists"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
