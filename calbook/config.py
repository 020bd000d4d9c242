from functools import lru_cache
from pathlib import Path
from typing import Annotated, List

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = Field(default="Calendar Booking Service")
    cors_origins: Annotated[List[AnyHttpUrl], NoDecode] = Field(
        default_factory=lambda: [
            "http://localhost:5500",
            "http://127.0.0.1:5500",
        ]
    )
    backend_base_url: AnyHttpUrl | None = Field(
        default=None
    )
    backend_timeout: float = Field(
        default=10.0
    )
    backend_token: str | None = Field(
        default=None
    )
    use_mock_data: bool = Field(
        default=True
    )
    data_file: Path = Field(
        default_factory=lambda: Path.home() / ".calbook" / "appointments.json"
    )
    log_level: str = Field(
        default="INFO"
    )

    model_config = SettingsConfigDict(env_prefix="CALBOOK_", case_sensitive=False)

    @field_validator("cors_origins", mode="before")
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()
