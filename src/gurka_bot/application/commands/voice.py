"""
Voice Commands

Commands that join, feed and steer the music session of a guild.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import TYPE_CHECKING

from ...domain.music.snapshot import JoinConfig
from ...domain.music.value_objects import ChannelKey, PlayerMode, QueueRange, QueueSelection
from ...domain.shared.exceptions import ChannelConflictError, ValidationError, VoiceConnectionError
from ...domain.shared.messages import DiscordUIMessages, LogTemplates
from .base import Command, CommandResult, MessageContext
from .guards import (
    check_no_conflicting_session,
    check_sender_in_voice,
    find_listener_session,
    find_session,
)

if TYPE_CHECKING:
    from ...config.settings import DiscordSettings
    from ..interfaces.voice_transport import VoiceGateway
    from ..services.session import MusicSession
    from ..services.session_registry import SessionRegistry

logger = logging.getLogger(__name__)


def parse_queue_selection(args: str, prefix: str = ">") -> QueueSelection:
    """Parse ``3`` or ``5-10`` into a queue position or an inclusive range.

    Only the syntax is checked here; whether the positions exist is up to the
    session. Raises ValidationError with a user-facing message.
    """
    words = args.split()
    if not words:
        raise ValidationError(
            DiscordUIMessages.REMOVE_ARGUMENT_REQUIRED.format(prefix=prefix), field="selection"
        )

    text = words[0]
    if "-" in text:
        parts = text.split("-")
        if len(parts) != 2:
            raise ValidationError(DiscordUIMessages.REMOVE_RANGE_TWO_NUMBERS, field="selection")
        if not all(part.isdigit() for part in parts):
            raise ValidationError(DiscordUIMessages.REMOVE_RANGE_NOT_NUMBERS, field="selection")
        return QueueRange(begin=int(parts[0]), end=int(parts[1]))

    if not text.isdigit():
        raise ValidationError(DiscordUIMessages.REMOVE_NOT_A_NUMBER, field="selection")
    return int(text)


class VoiceCommand(Command):
    """Base for commands that work against the guild's session."""

    def __init__(
        self,
        *,
        registry: SessionRegistry,
        gateway: VoiceGateway,
        settings: DiscordSettings,
    ) -> None:
        self._registry = registry
        self._gateway = gateway
        self._settings = settings

    @property
    def prefix(self) -> str:
        return self._settings.command_prefix

    async def _join(self, ctx: MessageContext) -> tuple[MusicSession | None, str | None]:
        """Get the session for the sender's voice channel, joining it if needed."""
        assert ctx.sender_voice_channel_id is not None
        key = ChannelKey(guild_id=ctx.guild_id, channel_id=ctx.sender_voice_channel_id)

        existing = self._registry.get(key)
        if existing is not None:
            return existing, None

        join_config = JoinConfig(
            guild_id=ctx.guild_id,
            channel_id=ctx.sender_voice_channel_id,
            self_mute=self._settings.self_mute,
            self_deaf=self._settings.self_deaf,
        )
        try:
            reply = await self._gateway.text_destination(ctx.channel_id)
            session = await self._registry.get_or_create(
                key, reply, partial(self._gateway.connect, join_config)
            )
        except ChannelConflictError:
            return None, DiscordUIMessages.STATE_ALREADY_IN_OTHER_CHANNEL
        except (VoiceConnectionError, LookupError):
            logger.warning(LogTemplates.COMMAND_FAILED, self.name, ctx.guild_id, exc_info=True)
            return None, DiscordUIMessages.ERROR_COULD_NOT_JOIN_VOICE
        return session, None


class JoinCommand(VoiceCommand):
    name = "join"
    description = "Join your voice channel."
    aliases = ("ela",)
    mutates_state = True

    async def execute(self, ctx: MessageContext, args: str) -> CommandResult:
        if error := check_sender_in_voice(ctx) or check_no_conflicting_session(ctx, self._registry):
            return CommandResult.failure(error)

        _, error = await self._join(ctx)
        if error:
            return CommandResult.failure(error)
        return CommandResult.ok(DiscordUIMessages.SUCCESS_JOINED)


class LeaveCommand(VoiceCommand):
    name = "leave"
    description = "Stop the music and leave the voice channel."
    aliases = ("marsh", "mahaj")
    mutates_state = True

    async def execute(self, ctx: MessageContext, args: str) -> CommandResult:
        session, error = find_session(ctx, self._registry)
        if session is None:
            return CommandResult.failure(error or DiscordUIMessages.STATE_NO_SESSION)

        try:
            await session.close()
        finally:
            self._registry.remove(session.key)
        return CommandResult.ok(DiscordUIMessages.SUCCESS_LEFT)


class PlayCommand(VoiceCommand):
    name = "play"
    description = "Queue songs by search terms or links (playlists too)."
    aliases = ("p", "pusni")
    mutates_state = True

    async def execute(self, ctx: MessageContext, args: str) -> CommandResult:
        if not args.strip():
            return CommandResult.failure(DiscordUIMessages.PLAY_QUERY_REQUIRED.format(prefix=self.prefix))

        if error := check_sender_in_voice(ctx, DiscordUIMessages.STATE_NOT_IN_VOICE_TO_PLAY):
            return CommandResult.failure(error)
        if error := check_no_conflicting_session(
            ctx, self._registry, DiscordUIMessages.STATE_PLAYING_ELSEWHERE
        ):
            return CommandResult.failure(error)

        session, error = await self._join(ctx)
        if session is None:
            return CommandResult.failure(error or DiscordUIMessages.ERROR_COULD_NOT_JOIN_VOICE)

        # Per-chunk summaries are posted by the session itself.
        await session.play(args)
        return CommandResult.ok()


class PauseCommand(VoiceCommand):
    name = "pause"
    description = "Pause the music."
    aliases = ("spri",)

    async def execute(self, ctx: MessageContext, args: str) -> CommandResult:
        session, error = find_listener_session(ctx, self._registry)
        if session is None:
            return CommandResult.failure(error or DiscordUIMessages.STATE_NO_SESSION)

        if not await session.pause():
            return CommandResult.failure(DiscordUIMessages.NOTHING_TO_PAUSE)
        return CommandResult.ok(DiscordUIMessages.SUCCESS_PAUSED)


class ResumeCommand(VoiceCommand):
    name = "resume"
    description = "Resume paused music."
    aliases = ("unpause", "daj")

    async def execute(self, ctx: MessageContext, args: str) -> CommandResult:
        session, error = find_listener_session(ctx, self._registry)
        if session is None:
            return CommandResult.failure(error or DiscordUIMessages.STATE_NO_SESSION)

        if not await session.unpause():
            return CommandResult.failure(DiscordUIMessages.NOTHING_TO_RESUME)
        return CommandResult.ok(DiscordUIMessages.SUCCESS_RESUMED)


class SkipCommand(VoiceCommand):
    name = "skip"
    description = "Skip the current song."
    aliases = ("s",)
    mutates_state = True

    async def execute(self, ctx: MessageContext, args: str) -> CommandResult:
        session, error = find_listener_session(ctx, self._registry)
        if session is None:
            return CommandResult.failure(error or DiscordUIMessages.STATE_NO_SESSION)

        skipped = await session.skip()
        if skipped is None:
            return CommandResult.failure(DiscordUIMessages.NOTHING_TO_SKIP)
        return CommandResult.ok(DiscordUIMessages.SUCCESS_SKIPPED.format(title=skipped.title))


class ClearCommand(VoiceCommand):
    name = "clear"
    description = "Stop whatever is playing and empty the queue."
    mutates_state = True

    async def execute(self, ctx: MessageContext, args: str) -> CommandResult:
        session, error = find_listener_session(ctx, self._registry)
        if session is None:
            return CommandResult.failure(error or DiscordUIMessages.STATE_NO_SESSION)

        await session.clear_queue()
        return CommandResult.ok(DiscordUIMessages.SUCCESS_QUEUE_CLEARED)


class QueueCommand(VoiceCommand):
    name = "queue"
    description = "Show the current song and what comes next."
    aliases = ("q",)

    async def execute(self, ctx: MessageContext, args: str) -> CommandResult:
        session, error = find_session(ctx, self._registry)
        if session is None:
            return CommandResult.failure(error or DiscordUIMessages.STATE_NO_SESSION)
        return CommandResult.ok(session.describe_queue())


class NowPlayingCommand(VoiceCommand):
    name = "nowplaying"
    description = "Show what is playing right now."
    aliases = ("np",)

    async def execute(self, ctx: MessageContext, args: str) -> CommandResult:
        session, error = find_session(ctx, self._registry)
        if session is None:
            return CommandResult.failure(error or DiscordUIMessages.STATE_NO_SESSION)
        return CommandResult.ok(session.describe_now_playing())


class RemoveCommand(VoiceCommand):
    name = "remove"
    aliases = ("rm",)
    mutates_state = True

    @property
    def description(self) -> str:  # type: ignore[override]
        return (
            f"Remove a song from the queue by its number, e.g. `{self.prefix}{self.name} 3` "
            f"or `{self.prefix}{self.name} 5-10`."
        )

    async def execute(self, ctx: MessageContext, args: str) -> CommandResult:
        session, error = find_listener_session(ctx, self._registry)
        if session is None:
            return CommandResult.failure(error or DiscordUIMessages.STATE_NO_SESSION)

        try:
            selection = parse_queue_selection(args, self.prefix)
        except ValidationError as e:
            return CommandResult.failure(e.message)

        if not await session.remove(selection):
            if isinstance(selection, QueueRange):
                return CommandResult.failure(DiscordUIMessages.REMOVE_BAD_RANGE)
            return CommandResult.failure(DiscordUIMessages.REMOVE_BAD_INDEX)
        # The session posts the confirmation.
        return CommandResult.ok()


class ShuffleCommand(VoiceCommand):
    name = "shuffle"
    description = "Shuffle the queue."
    aliases = ("shuf",)
    mutates_state = True

    async def execute(self, ctx: MessageContext, args: str) -> CommandResult:
        session, error = find_listener_session(ctx, self._registry)
        if session is None:
            return CommandResult.failure(error or DiscordUIMessages.STATE_NO_SESSION)

        if not await session.shuffle():
            return CommandResult.failure(DiscordUIMessages.NOTHING_TO_SHUFFLE)
        return CommandResult.ok()


class LoopCommand(VoiceCommand):
    name = "loop"
    description = "Toggle looping the whole queue."

    async def execute(self, ctx: MessageContext, args: str) -> CommandResult:
        session, error = find_listener_session(ctx, self._registry)
        if session is None:
            return CommandResult.failure(error or DiscordUIMessages.STATE_NO_SESSION)

        if session.change_mode() is PlayerMode.LOOP_QUEUE:
            return CommandResult.ok(DiscordUIMessages.LOOP_ENABLED)
        return CommandResult.ok(DiscordUIMessages.LOOP_DISABLED)
