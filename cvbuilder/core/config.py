from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App environment
    env: str = Field("development")
    log_level: str = Field("INFO")
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:5173"])

    # OpenAI assistant
    openai_model: str = Field("gpt-4o")
    openai_timeout_s: float = Field(60.0)
    poll_interval_s: float = Field(1.0)
    run_timeout_s: float = Field(120.0)
    max_polls: int = Field(180)
    max_message_chars: int = Field(12000)

    # Session storage
    session_backend: Literal["memory", "redis"] = Field("memory")
    redis_url: str = Field("redis://localhost:6379/0")
    session_ttl_seconds: int = Field(0)  # 0 disables expiry

    # PDF delivery: "url" writes into uploads_dir, "inline" streams bytes back
    pdf_delivery: Literal["url", "inline"] = Field("url")
    uploads_dir: str = Field("uploads")

    # Rate limiting
    rate_limit_enabled: bool = Field(True)
    rate_limit: int = Field(30)
    rate_window_seconds: int = Field(60)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
