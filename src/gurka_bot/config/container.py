"""Dependency Injection Container

Builds the application's object graph lazily: the resolver, the state store,
the session registry and persistence, the Discord voice gateway and the
command table. Components are created on first access and cached.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..application.commands.table import CommandTable
    from ..application.interfaces.audio_resolver import AudioResolver
    from ..application.interfaces.state_store import StateStore
    from ..application.interfaces.voice_transport import TextDestination, VoiceGateway, VoiceTransport
    from ..application.services.persistence import SessionPersistence
    from ..application.services.session import MusicSession
    from ..application.services.session_registry import SessionRegistry
    from ..domain.music.value_objects import ChannelKey
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Components are lazily initialized when first accessed. The voice gateway
    needs the bot, so ``set_bot`` must be called before it is used.
    """

    settings: Settings
    _bot: Bot | None = None

    # Infrastructure adapters
    _audio_resolver: AudioResolver | None = None
    _state_store: StateStore | None = None
    _voice_gateway: VoiceGateway | None = None

    # Application services
    _session_registry: SessionRegistry | None = None
    _session_persistence: SessionPersistence | None = None
    _command_table: CommandTable | None = None

    def set_bot(self, bot: Bot) -> None:
        """Set the Discord bot instance."""
        self._bot = bot

    @property
    def bot(self) -> Bot:
        """Get the Discord bot instance."""
        if self._bot is None:
            raise RuntimeError(ErrorMessages.BOT_NOT_INITIALIZED)
        return self._bot

    # === Infrastructure Adapters ===

    @property
    def audio_resolver(self) -> AudioResolver:
        """Get the yt-dlp resolver."""
        if self._audio_resolver is None:
            from ..infrastructure.audio.ytdlp_resolver import YtDlpProcessResolver

            self._audio_resolver = YtDlpProcessResolver(self.settings.resolver)
        return self._audio_resolver

    @property
    def state_store(self) -> StateStore:
        """Get the session state file store."""
        if self._state_store is None:
            from ..infrastructure.persistence.state_store import JsonStateStore

            self._state_store = JsonStateStore(self.settings.persistence.state_file)
        return self._state_store

    @property
    def voice_gateway(self) -> VoiceGateway:
        """Get the Discord voice gateway."""
        if self._voice_gateway is None:
            from ..infrastructure.discord.adapters.voice_adapter import DiscordVoiceGateway

            self._voice_gateway = DiscordVoiceGateway(
                self.bot,
                settings=self.settings.discord,
                playback=self.settings.playback,
            )
        return self._voice_gateway

    # === Application Services ===

    def create_session(
        self, key: ChannelKey, transport: VoiceTransport, reply: TextDestination
    ) -> MusicSession:
        """Session factory handed to the registry."""
        from ..application.services.session import MusicSession

        session = MusicSession(
            key=key,
            transport=transport,
            reply=reply,
            resolver=self.audio_resolver,
            stream_start_timeout=self.settings.playback.stream_start_timeout_s,
        )
        if self.settings.persistence.enabled:
            session.on_track_finished(self.session_persistence.on_track_finished)
        return session

    @property
    def session_registry(self) -> SessionRegistry:
        """Get the session registry."""
        if self._session_registry is None:
            from ..application.services.session_registry import SessionRegistry

            self._session_registry = SessionRegistry(session_factory=self.create_session)
        return self._session_registry

    @property
    def session_persistence(self) -> SessionPersistence:
        """Get the snapshot/restore service."""
        if self._session_persistence is None:
            from ..application.services.persistence import SessionPersistence

            self._session_persistence = SessionPersistence(
                registry=self.session_registry,
                store=self.state_store,
            )
        return self._session_persistence

    @property
    def command_table(self) -> CommandTable:
        """Get the command table with every built-in and configured command."""
        if self._command_table is None:
            self._command_table = self._build_command_table()
        return self._command_table

    def _build_command_table(self) -> CommandTable:
        from ..application.commands import (
            ClearCommand,
            CommandTable,
            HelpCommand,
            JoinCommand,
            LeaveCommand,
            LoopCommand,
            NowPlayingCommand,
            PauseCommand,
            PlayCommand,
            QueueCommand,
            RemoveCommand,
            ResponseCommand,
            ResumeCommand,
            SequentialResponseCommand,
            ShuffleCommand,
            SkipCommand,
        )

        table = CommandTable(self.settings.discord.command_prefix)
        deps = {
            "registry": self.session_registry,
            "gateway": self.voice_gateway,
            "settings": self.settings.discord,
        }
        for command_cls in (
            JoinCommand,
            LeaveCommand,
            PlayCommand,
            PauseCommand,
            ResumeCommand,
            SkipCommand,
            ClearCommand,
            QueueCommand,
            NowPlayingCommand,
            RemoveCommand,
            ShuffleCommand,
            LoopCommand,
        ):
            table.register(command_cls(**deps))

        for response in self.settings.responses:
            response_cls = SequentialResponseCommand if response.sequential else ResponseCommand
            table.register(
                response_cls(
                    response.name,
                    response.description,
                    response.responses,
                    response.aliases,
                )
            )

        table.register(HelpCommand(table))
        return table

    # === Lifecycle ===

    async def shutdown(self) -> None:
        """Close every session, then drop it from the registry."""
        if self._session_registry is None:
            return

        for session in self._session_registry.sessions():
            try:
                await session.close()
            except Exception as exc:
                logger.warning(LogTemplates.BOT_CONTAINER_SHUTDOWN_ERROR, exc)
            self._session_registry.remove(session.key)


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
