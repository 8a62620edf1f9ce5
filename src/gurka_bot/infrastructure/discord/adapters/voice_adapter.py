"""Discord implementations of the voice transport, text destination and voice gateway."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import discord

from gurka_bot.application.interfaces.voice_transport import (
    StatusListener,
    TextDestination,
    VoiceGateway,
    VoiceTransport,
)
from gurka_bot.config.settings import DiscordSettings, PlaybackSettings
from gurka_bot.domain.music.value_objects import TransportStatus
from gurka_bot.domain.shared.exceptions import VoiceConnectionError
from gurka_bot.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ....application.interfaces.audio_resolver import AudioStream
    from ....domain.music.entities import Track
    from ....domain.music.snapshot import JoinConfig

logger = logging.getLogger(__name__)

VoiceChannel = discord.VoiceChannel | discord.StageChannel


def count_listeners(channel: VoiceChannel | None) -> int:
    """Members who can actually hear the bot: humans that are not deafened."""
    if channel is None:
        return 0

    listeners = 0
    for member in channel.members:
        if member.bot:
            continue
        if member.voice and (member.voice.deaf or member.voice.self_deaf):
            continue
        listeners += 1
    return listeners


class DiscordVoiceTransport(VoiceTransport):
    """Wraps one ``discord.VoiceClient`` and reports its status to listeners.

    discord.py invokes the ``after`` callback of a finished source on the
    audio player thread. It is bridged onto the bot loop, and a finish is only
    reported as IDLE if the finished source is still the current one; sources
    replaced or stopped on our side finish silently.
    """

    def __init__(
        self,
        *,
        voice_client: discord.VoiceClient,
        join_config: JoinConfig,
        loop: asyncio.AbstractEventLoop,
        settings: PlaybackSettings | None = None,
    ) -> None:
        self._vc = voice_client
        self._join_config = join_config
        self._loop = loop
        self._settings = settings or PlaybackSettings()

        self._status = TransportStatus.IDLE
        self._listeners: list[StatusListener] = []
        self._source: discord.AudioSource | None = None
        self._alone = False

    @property
    def join_config(self) -> JoinConfig:
        return self._join_config

    @property
    def status(self) -> TransportStatus:
        return self._status

    @property
    def guild_id(self) -> int:
        return self._join_config.guild_id

    @property
    def voice_client(self) -> discord.VoiceClient:
        return self._vc

    def subscribe(self, listener: StatusListener) -> None:
        self._listeners.append(listener)

    def is_connected(self) -> bool:
        return self._vc.is_connected()

    async def _set_status(self, new: TransportStatus) -> None:
        old = self._status
        if old is new:
            return

        self._status = new
        logger.debug(LogTemplates.TRANSPORT_STATUS_CHANGED, self.guild_id, old.value, new.value)
        for listener in list(self._listeners):
            try:
                await listener(old, new)
            except Exception:
                logger.exception(LogTemplates.TRANSPORT_LISTENER_ERROR, self.guild_id)

    def _build_source(self, stream: AudioStream) -> discord.AudioSource:
        source = discord.FFmpegPCMAudio(
            stream.stdout,
            pipe=True,
            before_options=self._settings.ffmpeg_before_options or None,
            options=self._settings.ffmpeg_options or None,
        )
        return discord.PCMVolumeTransformer(source, volume=self._settings.default_volume)

    async def play(self, stream: AudioStream, track: Track) -> None:
        source = self._build_source(stream)

        # Forget the old source first so its after callback is treated as stale.
        self._source = None
        if self._vc.is_playing() or self._vc.is_paused():
            self._vc.stop()

        def after_callback(error: Exception | None = None) -> None:
            if error:
                logger.warning(LogTemplates.TRANSPORT_PLAYBACK_ERROR, self.guild_id, error)
            asyncio.run_coroutine_threadsafe(self._on_source_finished(source), self._loop)

        try:
            self._vc.play(source, after=after_callback)
        except discord.ClientException:
            source.cleanup()
            raise

        self._source = source
        await self._set_status(TransportStatus.PLAYING)

        if self._alone and self._settings.auto_pause_when_alone:
            self._vc.pause()
            await self._set_status(TransportStatus.AUTO_PAUSED)

    async def _on_source_finished(self, source: discord.AudioSource) -> None:
        if source is not self._source:
            logger.debug(LogTemplates.TRANSPORT_STALE_FINISH, self.guild_id)
            return

        self._source = None
        await self._set_status(TransportStatus.IDLE)

    async def stop(self) -> None:
        if self._source is None:
            return
        # IDLE is reported by the after callback once the player thread lets go.
        self._vc.stop()

    async def pause(self) -> None:
        if self._status is TransportStatus.AUTO_PAUSED:
            await self._set_status(TransportStatus.PAUSED)
            return
        if self._vc.is_playing():
            self._vc.pause()
            await self._set_status(TransportStatus.PAUSED)

    async def unpause(self) -> None:
        if self._status is not TransportStatus.PAUSED:
            return
        if self._alone and self._settings.auto_pause_when_alone:
            await self._set_status(TransportStatus.AUTO_PAUSED)
            return
        self._vc.resume()
        await self._set_status(TransportStatus.PLAYING)

    async def update_listeners(self) -> None:
        """Auto-pause when the channel empties and resume when someone comes back."""
        self._alone = count_listeners(self._vc.channel) == 0
        if not self._settings.auto_pause_when_alone:
            return

        if self._alone and self._status is TransportStatus.PLAYING:
            logger.info(LogTemplates.VOICE_AUTO_PAUSED, self.guild_id)
            self._vc.pause()
            await self._set_status(TransportStatus.AUTO_PAUSED)
        elif not self._alone and self._status is TransportStatus.AUTO_PAUSED:
            logger.info(LogTemplates.VOICE_AUTO_RESUMED, self.guild_id)
            self._vc.resume()
            await self._set_status(TransportStatus.PLAYING)

    async def destroy(self) -> None:
        self._source = None
        self._listeners.clear()
        self._status = TransportStatus.IDLE

        if self._vc.is_playing() or self._vc.is_paused():
            self._vc.stop()
        try:
            await self._vc.disconnect(force=True)
            logger.info(LogTemplates.VOICE_DISCONNECTED, self.guild_id)
        except Exception:
            logger.exception(LogTemplates.VOICE_CLIENT_ERROR, self.guild_id, "disconnect")


class DiscordTextDestination(TextDestination):
    """A guild text channel."""

    def __init__(self, channel: discord.abc.Messageable, channel_id: int) -> None:
        self._channel = channel
        self._channel_id = channel_id

    @property
    def channel_id(self) -> int:
        return self._channel_id

    async def send(self, text: str) -> None:
        await self._channel.send(text, allowed_mentions=discord.AllowedMentions.none())


class DiscordVoiceGateway(VoiceGateway):
    def __init__(
        self,
        bot: discord.Client,
        settings: DiscordSettings | None = None,
        playback: PlaybackSettings | None = None,
    ) -> None:
        self._bot = bot
        self._settings = settings or DiscordSettings()
        self._playback = playback or PlaybackSettings()

    def _get_voice_channel(self, join_config: JoinConfig) -> VoiceChannel:
        guild = self._bot.get_guild(join_config.guild_id)
        if guild is None:
            raise VoiceConnectionError(
                join_config.guild_id, join_config.channel_id, "guild not available"
            )

        channel = guild.get_channel(join_config.channel_id)
        if not isinstance(channel, discord.VoiceChannel | discord.StageChannel):
            raise VoiceConnectionError(
                join_config.guild_id, join_config.channel_id, "not a voice channel"
            )
        return channel

    async def _drop_stale_client(self, guild: discord.Guild) -> None:
        vc = guild.voice_client
        if vc is None:
            return
        logger.warning(LogTemplates.VOICE_STALE_CLEANUP, guild.id)
        try:
            await vc.disconnect(force=True)
        except Exception:
            logger.exception(LogTemplates.VOICE_CLIENT_ERROR, guild.id, "stale cleanup")

    async def connect(self, join_config: JoinConfig) -> VoiceTransport:
        channel = self._get_voice_channel(join_config)
        guild = channel.guild
        guild_id, channel_id = join_config.guild_id, join_config.channel_id

        # A voice client without a session is a leftover from a broken connection.
        await self._drop_stale_client(guild)

        try:
            async with asyncio.timeout(self._settings.connect_timeout_s):
                vc = await channel.connect(
                    timeout=self._settings.connect_timeout_s,
                    reconnect=True,
                    self_deaf=join_config.self_deaf,
                    self_mute=join_config.self_mute,
                )
        except TimeoutError as e:
            logger.error(LogTemplates.VOICE_CONNECTION_TIMEOUT, channel_id, guild_id)
            raise VoiceConnectionError(guild_id, channel_id, "timed out") from e
        except discord.Forbidden as e:
            logger.error(LogTemplates.VOICE_NO_PERMISSION, channel_id, guild_id)
            raise VoiceConnectionError(guild_id, channel_id, "missing permissions") from e
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, guild_id, e)
            raise VoiceConnectionError(guild_id, channel_id, str(e)) from e

        logger.info(LogTemplates.VOICE_CONNECTED, channel.name, guild.name)
        transport = DiscordVoiceTransport(
            voice_client=vc,
            join_config=join_config,
            loop=self._bot.loop,
            settings=self._playback,
        )
        await transport.update_listeners()
        return transport

    async def text_destination(self, channel_id: int) -> TextDestination:
        channel = self._bot.get_channel(channel_id)
        if channel is None:
            try:
                channel = await self._bot.fetch_channel(channel_id)
            except discord.HTTPException as e:
                raise LookupError(f"text channel {channel_id} is not reachable") from e

        if not isinstance(channel, discord.abc.Messageable):
            raise LookupError(f"channel {channel_id} cannot receive messages")
        return DiscordTextDestination(channel, channel_id)
