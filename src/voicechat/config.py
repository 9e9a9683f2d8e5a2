"""Application configuration using environment variables."""

import json
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Resolve the project root once so that `.env` is discovered regardless of CWD
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Load configuration from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Piper voice model (.onnx) and its JSON config. Both are required to
    # synthesize, but their absence only fails the request, not startup.
    piper_model_path: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("PIPER_MODEL_PATH", "piper_model_path"),
    )
    piper_config_path: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("PIPER_CONFIG_PATH", "piper_config_path"),
    )
    piper_bin: str = Field(
        default="piper",
        validation_alias=AliasChoices("PIPER_BIN", "piper_bin"),
    )
    tts_output_dir: Optional[Path] = Field(
        default=None,
        validation_alias=AliasChoices("TTS_OUTPUT_DIR", "tts_output_dir"),
        description="Directory for intermediate WAV files (system temp dir if unset).",
    )

    server_host: str = Field(
        default="0.0.0.0",
        validation_alias=AliasChoices("SERVER_HOST", "server_host"),
    )
    server_port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        validation_alias=AliasChoices("SERVER_PORT", "server_port"),
    )
    # Comma-separated (`a,b`) or JSON list (`["a","b"]`).
    cors_allow_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["*"],
        validation_alias=AliasChoices("CORS_ALLOW_ORIGINS", "cors_allow_origins"),
    )

    @field_validator(
        "piper_model_path", "piper_config_path", "tts_output_dir", mode="before"
    )
    @classmethod
    def _blank_as_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        raw = value.strip()
        if raw.startswith("["):
            return json.loads(raw)
        origins = [part.strip() for part in raw.split(",") if part.strip()]
        return origins or ["*"]

    @field_validator("piper_bin", mode="before")
    @classmethod
    def _default_binary(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return "piper"
        return value

    @property
    def synthesizer_configured(self) -> bool:
        return bool(self.piper_model_path and self.piper_config_path)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()  # pyright: ignore[reportCallIssue]


__all__ = ["Settings", "get_settings"]
