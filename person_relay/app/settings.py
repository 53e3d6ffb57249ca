from pathlib import Path
from typing import List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Relay configuration sourced from RELAY_* environment variables or a local .env file."""

    model_config = SettingsConfigDict(
        env_prefix="RELAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_parse_none_str="null",
    )

    # Inference server
    detection_url: str = "http://localhost:8082/predict"
    detection_mode: Literal["path", "upload"] = "path"
    detection_service: str = "detection_600"
    confidence_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    use_gpu: bool = False
    server_data_prefix: str = "/data/"

    # Chat webhook
    webhook_url: Optional[str] = None

    # Weather provider
    weather_api_key: Optional[str] = None
    weather_city: str = "Hiroshima"
    weather_url: str = "https://api.openweathermap.org/data/2.5/weather"

    # Storage and queue
    images_dir: Path = Field(default_factory=lambda: Path.cwd() / "imagesfile")
    queue_capacity: int = Field(default=5, ge=1)
    detection_window: int = Field(default=10, ge=1)
    subject_labels: List[str] = Field(default_factory=lambda: ["person", "face"])
    keep_failed_uploads: bool = False

    # Outbound calls; None disables the timeout entirely
    request_timeout_seconds: Optional[float] = Field(default=30.0, gt=0.0)

    log_format: Literal["text", "json"] = "text"
    host: str = "0.0.0.0"
    port: int = 8081

    @field_validator("images_dir", mode="before")
    @classmethod
    def _expand_dir(cls, value: object) -> Path:
        return Path(str(value)).expanduser()

    @field_validator("subject_labels")
    @classmethod
    def _normalize_labels(cls, value: List[str]) -> List[str]:
        labels = [label.strip().lower() for label in value if label and label.strip()]
        if not labels:
            raise ValueError("At least one subject label is required")
        return labels


def get_settings() -> AppSettings:
    return AppSettings()
