from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator


def load_env() -> None:
    load_dotenv()


class Settings(BaseModel):
    api_base_url: str = Field("http://localhost:8000/api/v1", alias="LEXNAV_API_BASE_URL")
    fetch_timeout: float = Field(8.0, alias="LEXNAV_FETCH_TIMEOUT")
    retry_failed_fetches: bool = Field(False, alias="LEXNAV_RETRY_FAILED_FETCHES")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    model_config = {"populate_by_name": True}

    @field_validator("fetch_timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("LEXNAV_FETCH_TIMEOUT must be greater than zero")
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        load_env()
        _settings = Settings(**os.environ)
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None
