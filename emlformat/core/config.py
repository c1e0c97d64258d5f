from __future__ import annotations

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Frozen so a Settings value can be shared between threads and passed per call.
    model_config = SettingsConfigDict(env_prefix="EMLFORMAT_", frozen=True, extra="ignore")

    VERSION: str = "0.1.0"

    # Used whenever a part or encoded-word does not declare charset=...
    DEFAULT_CHARSET: str = "iso-8859-1"
    # Old mailers do not always put a blank line before a boundary.
    LENIENT_BOUNDARY_DETECTION: bool = True
    HEADERS_ONLY: bool = False
    VERBOSE_DIAGNOSTICS: bool = False

    FILE_EXTENSIONS: dict[str, str] = {
        "text/plain": ".txt",
        "text/html": ".html",
        "image/png": ".png",
        "image/jpg": ".jpg",
        "image/jpeg": ".jpg",
    }

    @field_validator("DEFAULT_CHARSET")
    @classmethod
    def _validate_default_charset(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("DEFAULT_CHARSET must not be empty")
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
