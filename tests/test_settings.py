"""
Unit Tests for Application Settings Configuration

Tests for:
- Default values for every settings group
- Alias names accepted by the nested groups
- Loading from environment variables, including nested ``__`` keys
- Type coercion of environment strings
- Custom validators (log level, response command names)
- Settings caching and clearing
"""

import json

import pytest
from pydantic import SecretStr, ValidationError

from gurka_bot.config.settings import (
    DiscordSettings,
    PersistenceSettings,
    PlaybackSettings,
    ResolverSettings,
    ResponseCommandSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

ENV_KEYS = (
    "ENVIRONMENT",
    "DEBUG",
    "LOG_LEVEL",
    "DISCORD__TOKEN",
    "DISCORD__COMMAND_PREFIX",
    "RESOLVER__EXECUTABLE",
    "PLAYBACK__DEFAULT_VOLUME",
    "PERSISTENCE__STATE_FILE",
    "RESPONSES",
)


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


# =============================================================================
# DiscordSettings Tests
# =============================================================================


class TestDiscordSettings:
    """Unit tests for DiscordSettings configuration."""

    def test_defaults(self):
        discord = DiscordSettings()

        assert discord.token.get_secret_value() == ""
        assert discord.command_prefix == ">"
        assert discord.connect_timeout_s == 10.0
        assert discord.self_deaf is True
        assert discord.self_mute is False

    def test_token_is_secret(self):
        discord = DiscordSettings(token="abc.def.ghi")

        assert isinstance(discord.token, SecretStr)
        assert "abc.def.ghi" not in repr(discord)

    @pytest.mark.parametrize("alias", ["token", "bot_token", "discord_token"])
    def test_token_aliases(self, alias):
        assert DiscordSettings(**{alias: "t0k"}).token.get_secret_value() == "t0k"

    def test_prefix_alias(self):
        assert DiscordSettings(prefix="!").command_prefix == "!"

    @pytest.mark.parametrize("prefix", ["", "toolong"])
    def test_prefix_length_enforced(self, prefix):
        with pytest.raises(ValidationError):
            DiscordSettings(command_prefix=prefix)

    @pytest.mark.parametrize("timeout", [0, -1, 121])
    def test_connect_timeout_bounds(self, timeout):
        with pytest.raises(ValidationError):
            DiscordSettings(connect_timeout_s=timeout)

    def test_frozen(self):
        discord = DiscordSettings()

        with pytest.raises(ValidationError):
            discord.command_prefix = "!"


# =============================================================================
# ResolverSettings / PlaybackSettings / PersistenceSettings Tests
# =============================================================================


class TestResolverSettings:
    def test_defaults(self):
        resolver = ResolverSettings()

        assert resolver.executable == "yt-dlp"
        assert resolver.default_search == "ytsearch"
        assert resolver.fetch_timeout_s == 60.0
        assert resolver.stream_format == "bestaudio"
        assert resolver.long_track_seconds == 3000

    def test_executable_alias(self):
        assert ResolverSettings(ytdlp_path="/usr/local/bin/yt-dlp").executable == "/usr/local/bin/yt-dlp"

    def test_empty_executable_rejected(self):
        with pytest.raises(ValidationError):
            ResolverSettings(executable="")

    def test_long_track_threshold_positive(self):
        with pytest.raises(ValidationError):
            ResolverSettings(long_track_seconds=0)


class TestPlaybackSettings:
    def test_defaults(self):
        playback = PlaybackSettings()

        assert playback.default_volume == 0.5
        assert playback.stream_start_timeout_s == 30.0
        assert playback.ffmpeg_options == "-vn"
        assert playback.auto_pause_when_alone is True

    @pytest.mark.parametrize("volume", [-0.1, 2.5])
    def test_volume_range(self, volume):
        with pytest.raises(ValidationError):
            PlaybackSettings(default_volume=volume)

    def test_stream_start_timeout_alias(self):
        assert PlaybackSettings(stream_start_timeout=5).stream_start_timeout_s == 5.0


class TestPersistenceSettings:
    def test_defaults(self):
        persistence = PersistenceSettings()

        assert persistence.enabled is True
        assert persistence.state_file == "data/session-state.json"

    def test_path_alias(self):
        assert PersistenceSettings(path="/var/lib/gurka/state.json").state_file == "/var/lib/gurka/state.json"


# =============================================================================
# ResponseCommandSettings Tests
# =============================================================================


class TestResponseCommandSettings:
    def test_name_lowercased_and_stripped(self):
        command = ResponseCommandSettings(name="  Gurka ", responses=["🥒"])

        assert command.name == "gurka"

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError, match="cannot be empty"):
            ResponseCommandSettings(name="   ")

    def test_defaults(self):
        command = ResponseCommandSettings(name="x")

        assert command.responses == []
        assert command.aliases == []
        assert command.sequential is False


# =============================================================================
# Settings Tests
# =============================================================================


class TestSettings:
    """Unit tests for the top-level settings container."""

    def test_create_with_all_defaults(self, clean_env):
        settings = Settings(_env_file=None)

        assert settings.environment == "development"
        assert settings.debug is False
        assert settings.log_level == "INFO"
        assert isinstance(settings.discord, DiscordSettings)
        assert isinstance(settings.persistence, PersistenceSettings)
        assert {command.name for command in settings.responses} == {"gurka", "magic", "roulette"}

    def test_roulette_is_sequential(self, clean_env):
        settings = Settings(_env_file=None)

        roulette = next(command for command in settings.responses if command.name == "roulette")
        assert roulette.sequential is True
        assert roulette.responses[-1] == "💥 BANG"

    def test_load_from_environment_variables(self, clean_env):
        clean_env.setenv("ENVIRONMENT", "production")
        clean_env.setenv("DEBUG", "true")
        clean_env.setenv("LOG_LEVEL", "WARNING")

        settings = Settings(_env_file=None)

        assert settings.environment == "production"
        assert settings.debug is True
        assert settings.log_level == "WARNING"

    def test_load_nested_settings_from_env(self, clean_env):
        clean_env.setenv("DISCORD__TOKEN", "secret-token")
        clean_env.setenv("DISCORD__COMMAND_PREFIX", "?")
        clean_env.setenv("RESOLVER__EXECUTABLE", "/opt/yt-dlp")
        clean_env.setenv("PERSISTENCE__STATE_FILE", "/tmp/state.json")

        settings = Settings(_env_file=None)

        assert settings.discord.token.get_secret_value() == "secret-token"
        assert settings.discord.command_prefix == "?"
        assert settings.resolver.executable == "/opt/yt-dlp"
        assert settings.persistence.state_file == "/tmp/state.json"

    def test_type_coercion_from_strings(self, clean_env):
        clean_env.setenv("DEBUG", "1")
        clean_env.setenv("PLAYBACK__DEFAULT_VOLUME", "0.75")

        settings = Settings(_env_file=None)

        assert settings.debug is True
        assert settings.playback.default_volume == 0.75

    def test_responses_from_json_env(self, clean_env):
        clean_env.setenv(
            "RESPONSES",
            json.dumps([{"name": "Ping", "responses": ["pong"], "aliases": ["p"]}]),
        )

        settings = Settings(_env_file=None)

        assert len(settings.responses) == 1
        assert settings.responses[0].name == "ping"
        assert settings.responses[0].aliases == ["p"]

    def test_environment_validation(self, clean_env):
        clean_env.setenv("ENVIRONMENT", "staging")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_log_level_validation_case_insensitive(self, clean_env):
        clean_env.setenv("LOG_LEVEL", "debug")

        assert Settings(_env_file=None).log_level == "DEBUG"

    def test_log_level_validation_invalid(self, clean_env):
        clean_env.setenv("LOG_LEVEL", "LOUD")

        with pytest.raises(ValidationError, match="Invalid log level"):
            Settings(_env_file=None)

    def test_nested_validation_propagates(self, clean_env):
        clean_env.setenv("PLAYBACK__DEFAULT_VOLUME", "9")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)


# =============================================================================
# Caching Tests
# =============================================================================


class TestSettingsCache:
    def test_get_settings_is_cached(self, clean_env):
        clear_settings_cache()
        try:
            assert get_settings() is get_settings()
        finally:
            clear_settings_cache()

    def test_clear_settings_cache_reloads(self, clean_env):
        clear_settings_cache()
        try:
            clean_env.setenv("LOG_LEVEL", "ERROR")
            first = get_settings()
            clear_settings_cache()
            clean_env.setenv("LOG_LEVEL", "DEBUG")
            second = get_settings()

            assert first is not second
            assert first.log_level == "ERROR"
            assert second.log_level == "DEBUG"
        finally:
            clear_settings_cache()
