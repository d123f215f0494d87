from typing import ClassVar

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service configuration, read from SIGNVIDEO_* environment variables or .env."""

    # Request validation
    max_text_length: int = Field(default=500, ge=1)

    # Processing
    processor: str = "stock_video"
    processing_delay: float = Field(default=3.0, ge=0)  # stock_video only
    dispatch_delay: float = Field(default=0.1, ge=0)
    max_concurrency: int = Field(default=4, ge=1)

    # Client polling
    poll_interval: float = Field(default=2.0, gt=0)

    # Job events (None disables MQTT)
    mqtt_url: str | None = None
    mqtt_topic_prefix: str = "signvideo/jobs"

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_prefix="SIGNVIDEO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
