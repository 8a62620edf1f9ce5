"""Main Discord bot class: routes messages to the command table and voice events to sessions."""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from gurka_bot.application.commands.base import MessageContext
from gurka_bot.domain.shared.messages import DiscordUIMessages, LogTemplates
from gurka_bot.infrastructure.discord.adapters.voice_adapter import DiscordVoiceTransport
from gurka_bot.utils.reply import split_message

if TYPE_CHECKING:
    from ...application.commands.base import CommandResult
    from ...config.container import Container
    from ...config.settings import Settings

logger = logging.getLogger(__name__)


def build_message_context(message: discord.Message) -> MessageContext | None:
    """Translate a guild message into a command context; None for DMs."""
    guild = message.guild
    if guild is None:
        return None

    author = message.author
    voice_channel_id: int | None = None
    nickname: str | None = None
    if isinstance(author, discord.Member):
        nickname = author.nick
        if author.voice is not None and author.voice.channel is not None:
            voice_channel_id = author.voice.channel.id

    return MessageContext(
        content=message.content,
        sender_id=author.id,
        sender_username=author.name,
        sender_nickname=nickname,
        sender_is_bot=author.bot,
        sender_voice_channel_id=voice_channel_id,
        channel_id=message.channel.id,
        channel_name=getattr(message.channel, "name", "") or "",
        guild_id=guild.id,
        guild_name=guild.name,
    )


def format_result(result: CommandResult) -> str | None:
    if result.error is not None:
        return DiscordUIMessages.ERROR_PREFIX.format(error=result.error)
    return result.response


class MusicBot(commands.Bot):
    def __init__(
        self,
        container: Container,
        settings: Settings,
        **kwargs,
    ) -> None:
        intents = discord.Intents.default()
        intents.message_content = True
        intents.voice_states = True
        intents.guilds = True

        super().__init__(
            command_prefix=settings.discord.command_prefix,
            intents=intents,
            help_command=None,
            **kwargs,
        )

        self.container = container
        self.settings = settings
        self._restored = False
        self._closing = False
        container.set_bot(self)

    async def setup_hook(self) -> None:
        logger.info(LogTemplates.BOT_SETUP)
        # Built eagerly so duplicate aliases are reported at startup.
        table = self.container.command_table
        logger.info(LogTemplates.BOT_COMMANDS_REGISTERED, len(table), table.prefix)
        logger.info(LogTemplates.BOT_SETUP_COMPLETE)

    async def on_ready(self) -> None:
        logger.info(
            LogTemplates.BOT_READY,
            self.user,  # type: ignore
            self.user.id,  # type: ignore
        )
        logger.info(LogTemplates.BOT_CONNECTED_GUILDS, len(self.guilds))

        # on_ready fires again after every gateway reconnect.
        if self._restored or not self.settings.persistence.enabled:
            return
        self._restored = True
        await self.container.session_persistence.restore(self.container.voice_gateway)

    async def on_message(self, message: discord.Message) -> None:
        if self.user is not None and message.author.id == self.user.id:
            return

        ctx = build_message_context(message)
        if ctx is None:
            return

        dispatched = await self.container.command_table.dispatch(ctx)
        if dispatched is None:
            return

        command, result = dispatched
        text = format_result(result)
        if text:
            await self._send(message.channel, text)

        if command.mutates_state and self._should_persist():
            await self.container.session_persistence.snapshot()

    async def _send(self, channel: discord.abc.Messageable, text: str) -> None:
        for chunk in split_message(text):
            try:
                await channel.send(chunk, allowed_mentions=discord.AllowedMentions.none())
            except discord.HTTPException:
                logger.warning(LogTemplates.BOT_REPLY_FAILED, getattr(channel, "id", None))
                return

    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        registry = self.container.session_registry
        session = registry.get_for_guild(member.guild.id)
        if session is None:
            return

        if self.user is not None and member.id == self.user.id:
            if after.channel is None:
                logger.warning(LogTemplates.VOICE_TEARDOWN_DETECTED, member.guild.id)
                try:
                    await session.close()
                finally:
                    registry.remove(session.key)
                if self._should_persist():
                    await self.container.session_persistence.snapshot()
            return

        channel_id = session.key.channel_id
        before_id = before.channel.id if before.channel else None
        after_id = after.channel.id if after.channel else None
        if channel_id not in (before_id, after_id):
            return

        transport = session.transport
        if isinstance(transport, DiscordVoiceTransport):
            await transport.update_listeners()

    def _should_persist(self) -> bool:
        return self.settings.persistence.enabled and not self._closing

    async def close(self) -> None:
        logger.info(LogTemplates.BOT_SHUTTING_DOWN)

        if self._should_persist():
            await self.container.session_persistence.snapshot()
        self._closing = True

        try:
            await self.container.shutdown()
            logger.info(LogTemplates.BOT_CONTAINER_SHUTDOWN)
        except Exception as e:
            logger.warning(LogTemplates.BOT_CONTAINER_SHUTDOWN_ERROR, e)

        await super().close()
        logger.info(LogTemplates.BOT_SHUTDOWN_COMPLETE)

    def run_with_graceful_shutdown(self, token: str, *, shutdown_timeout: float = 30.0) -> None:
        async def runner():
            async with self:
                loop = asyncio.get_running_loop()

                async def _graceful_close() -> None:
                    try:
                        await asyncio.wait_for(self.close(), timeout=shutdown_timeout)
                    except TimeoutError:
                        logger.warning(LogTemplates.BOT_SHUTDOWN_TIMEOUT, shutdown_timeout)

                for sig in (signal.SIGINT, signal.SIGTERM):
                    loop.add_signal_handler(sig, lambda: asyncio.create_task(_graceful_close()))
                await self.start(token)

        asyncio.run(runner())


def create_bot(container: Container, settings: Settings) -> MusicBot:
    return MusicBot(container=container, settings=settings)
