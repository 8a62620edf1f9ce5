"""Application Settings and Configuration

Pydantic-based settings management using environment variables.
Settings are loaded from environment variables with support for .env files,
type validation, and sensible defaults. All settings are frozen and immutable
after initialization.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.messages import ErrorMessages
from ..domain.shared.types import CommandPrefixStr, NonEmptyStr, PositiveFloat, VolumeFloat


class DiscordSettings(BaseModel):
    """Discord bot configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    token: SecretStr = Field(
        default=SecretStr(""), validation_alias=AliasChoices("token", "bot_token", "discord_token")
    )
    command_prefix: CommandPrefixStr = Field(
        default=">",
        validation_alias=AliasChoices("command_prefix", "prefix"),
    )
    connect_timeout_s: PositiveFloat = Field(
        default=10.0,
        le=120.0,
        validation_alias=AliasChoices("connect_timeout_s", "connect_timeout"),
    )
    self_deaf: bool = True
    self_mute: bool = False


class ResolverSettings(BaseModel):
    """yt-dlp executable configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    executable: NonEmptyStr = Field(
        default="yt-dlp", validation_alias=AliasChoices("executable", "ytdlp_path")
    )
    default_search: NonEmptyStr = "ytsearch"
    fetch_timeout_s: PositiveFloat = Field(
        default=60.0,
        le=600.0,
        validation_alias=AliasChoices("fetch_timeout_s", "fetch_timeout"),
    )
    stream_format: NonEmptyStr = "bestaudio"
    long_track_seconds: int = Field(default=3000, ge=1)


class PlaybackSettings(BaseModel):
    """Audio playback configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    default_volume: VolumeFloat = 0.5
    stream_start_timeout_s: PositiveFloat = Field(
        default=30.0,
        le=300.0,
        validation_alias=AliasChoices("stream_start_timeout_s", "stream_start_timeout"),
    )
    ffmpeg_before_options: str = ""
    ffmpeg_options: str = "-vn"
    auto_pause_when_alone: bool = True


class PersistenceSettings(BaseModel):
    """Session state file configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    enabled: bool = True
    state_file: NonEmptyStr = Field(
        default="data/session-state.json",
        validation_alias=AliasChoices("state_file", "path"),
    )


class ResponseCommandSettings(BaseModel):
    """A canned-reply command (``>gurka`` answers with one of ``responses``)."""

    model_config = SettingsConfigDict(frozen=True)

    name: str
    description: str = ""
    responses: list[str] = Field(default_factory=list)
    aliases: list[str] = Field(default_factory=list)
    sequential: bool = False

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Command names are matched case-insensitively."""
        v = v.strip().lower()
        if not v:
            raise ValueError(ErrorMessages.EMPTY_RESPONSE_COMMAND_NAME)
        return v


def _default_responses() -> list[ResponseCommandSettings]:
    return [
        ResponseCommandSettings(
            name="gurka",
            description="A pickle bot needs pickles.",
            responses=["🥒", "🥒🥒", "No pickles left, sorry."],
        ),
        ResponseCommandSettings(
            name="magic",
            description="Magic ( ͡° ͜ʖ ͡°)",
            responses=["¯\\_(ツ)_/¯"],
        ),
        ResponseCommandSettings(
            name="roulette",
            description="Russian roulette, one chamber at a time.",
            responses=["*click*", "*click*", "*click*", "*click*", "*click*", "💥 BANG"],
            sequential=True,
        ),
    ]


class Settings(BaseSettings):
    """Application settings container.

    Automatically loads configuration from environment variables.

    Environment variable naming:
    - ENVIRONMENT, DEBUG, LOG_LEVEL (top-level)
    - DISCORD__TOKEN, DISCORD__COMMAND_PREFIX, etc. (nested with ``__``)
    - RESOLVER__EXECUTABLE, RESOLVER__FETCH_TIMEOUT_S
    - PLAYBACK__DEFAULT_VOLUME, PLAYBACK__STREAM_START_TIMEOUT_S
    - PERSISTENCE__STATE_FILE
    - RESPONSES (JSON array of canned-reply commands)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    resolver: ResolverSettings = Field(default_factory=ResolverSettings)
    playback: PlaybackSettings = Field(default_factory=PlaybackSettings)
    persistence: PersistenceSettings = Field(default_factory=PersistenceSettings)
    responses: list[ResponseCommandSettings] = Field(default_factory=_default_responses)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=valid_levels))
        return v_upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are automatically loaded from:
    1. .env file (if present)
    2. Environment variables
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
