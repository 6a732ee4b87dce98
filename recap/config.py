from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    DEBUG: bool = Field(default=True)
    LOCALE: Literal["en", "zh"] = Field(default="en")

    ASR_PROVIDER: Optional[Literal["deepgram", "speechmatics", "assemblyai"]] = Field(
        default=None
    )
    ASR_TIMEOUT_SECONDS: Optional[float] = Field(default=120.0)

    DEEPGRAM_API_KEY: Optional[str] = Field(default=None)
    DEEPGRAM_BASE_URL: Optional[str] = Field(default="https://api.deepgram.com/v1")
    DEEPGRAM_MODEL: Optional[str] = Field(default="nova-2")
    DEEPGRAM_LANGUAGE: Optional[str] = Field(default="en-US")

    SPEECHMATICS_API_KEY: Optional[str] = Field(default=None)
    SPEECHMATICS_BASE_URL: Optional[str] = Field(
        default="https://asr.api.speechmatics.com/v2"
    )
    SPEECHMATICS_LANGUAGE: Optional[str] = Field(default="en")
    SPEECHMATICS_OPERATING_POINT: Optional[str] = Field(default="enhanced")
    SPEECHMATICS_POLL_INTERVAL: Optional[int] = Field(default=3)
    SPEECHMATICS_MAX_WAIT_SECONDS: Optional[int] = Field(default=600)

    ASSEMBLYAI_API_KEY: Optional[str] = Field(default=None)
    ASSEMBLYAI_BASE_URL: Optional[str] = Field(default="https://api.assemblyai.com/v2")
    ASSEMBLYAI_LANGUAGE: Optional[str] = Field(default="en_us")
    ASSEMBLYAI_POLL_INTERVAL: Optional[int] = Field(default=3)
    ASSEMBLYAI_MAX_WAIT_SECONDS: Optional[int] = Field(default=600)

    LLM_PROVIDER: Optional[Literal["anthropic", "openrouter"]] = Field(default=None)
    LLM_TIMEOUT_SECONDS: Optional[float] = Field(default=60.0)

    ANTHROPIC_API_KEY: Optional[str] = Field(default=None)
    ANTHROPIC_BASE_URL: Optional[str] = Field(default="https://api.anthropic.com/v1")
    ANTHROPIC_MODEL: Optional[str] = Field(default="claude-3-5-haiku-latest")
    ANTHROPIC_VERSION: Optional[str] = Field(default="2023-06-01")

    OPENROUTER_API_KEY: Optional[str] = Field(default=None)
    OPENROUTER_BASE_URL: Optional[str] = Field(default="https://openrouter.ai/api/v1")
    OPENROUTER_MODEL: Optional[str] = Field(default=None)
    OPENROUTER_HTTP_REFERER: Optional[str] = Field(default=None)
    OPENROUTER_APP_TITLE: Optional[str] = Field(default=None)

    SUMMARY_MAX_TOKENS: int = Field(default=1000)
    TITLE_MAX_TOKENS: int = Field(default=200)
    DEFAULT_AUDIO_MIME_TYPE: str = Field(default="audio/x-m4a")


settings = Settings()
