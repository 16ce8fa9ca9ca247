"""Service configuration loaded from CONF_AGENT_* environment variables."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """Runtime settings for the conference voice agent."""

    model_config = SettingsConfigDict(
        env_prefix="CONF_AGENT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    service_name: str = Field(default="conference-voice-agent")
    log_level: LogLevel = Field(default="INFO")
    log_format: Literal["json", "console"] = Field(default="json")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, gt=0)

    # Conversation context
    context_timeout_seconds: float = Field(default=10 * 60, gt=0, description="Inactivity before a context expires")
    cleanup_interval_seconds: float = Field(default=5 * 60, gt=0, description="Interval of the expiry sweep")
    history_limit: int = Field(default=10, gt=0)
    max_mentioned_speakers: int = Field(default=20, gt=0)
    max_mentioned_sessions: int = Field(default=15, gt=0)
    max_recent_search_terms: int = Field(default=10, gt=0)
    default_session_id: str = Field(default="default")
    demo_session_id: str = Field(default="demo-session")

    # Conference data
    sessions_file: Optional[str] = Field(default=None, description="JSON file of sessions to serve")
    upcoming_limit: int = Field(default=5, gt=0)


@lru_cache
def get_settings() -> Settings:
    return Settings()
