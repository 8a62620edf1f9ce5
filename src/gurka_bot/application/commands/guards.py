"""Reusable precondition checks for voice commands.

These are free functions that take the registry explicitly, so any command can
use them. Each returns the user-facing error text, or None when the check passes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ...domain.shared.messages import DiscordUIMessages

if TYPE_CHECKING:
    from ..services.session import MusicSession
    from ..services.session_registry import SessionRegistry
    from .base import MessageContext


def check_not_bot(ctx: MessageContext) -> str | None:
    if ctx.sender_is_bot:
        return DiscordUIMessages.STATE_BOT_AUTHOR
    return None


def check_sender_in_voice(ctx: MessageContext, message: str = DiscordUIMessages.STATE_NOT_IN_VOICE) -> str | None:
    if ctx.sender_voice_channel_id is None:
        return message
    return None


def check_no_conflicting_session(
    ctx: MessageContext,
    registry: SessionRegistry,
    message: str = DiscordUIMessages.STATE_ALREADY_IN_OTHER_CHANNEL,
) -> str | None:
    """Fail when the bot already serves a different voice channel in this guild."""
    session = registry.get_for_guild(ctx.guild_id)
    if session is not None and session.key.channel_id != ctx.sender_voice_channel_id:
        return message
    return None


def find_session(ctx: MessageContext, registry: SessionRegistry) -> tuple[MusicSession | None, str | None]:
    """The guild's session, or the reason there is none to talk to."""
    session = registry.get_for_guild(ctx.guild_id)
    if session is None:
        return None, DiscordUIMessages.STATE_NO_SESSION
    return session, None


def find_listener_session(
    ctx: MessageContext, registry: SessionRegistry
) -> tuple[MusicSession | None, str | None]:
    """The guild's session, provided the sender is in its voice channel."""
    if error := check_sender_in_voice(ctx):
        return None, error

    session, error = find_session(ctx, registry)
    if session is None:
        return None, error

    if session.key.channel_id != ctx.sender_voice_channel_id:
        return None, DiscordUIMessages.STATE_NOT_IN_YOUR_CHANNEL
    return session, None
