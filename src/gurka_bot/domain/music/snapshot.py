"""Wire models for the persisted session state file.

The file is a JSON array with one entry per active session::

    [{"joinConfig": {"guildId": "…", "channelId": "…", "selfMute": false,
                     "selfDeaf": true, "group": "default"},
      "musicChannelId": "…",
      "queue": [{"title": "…", "duration": 212, "youtubeId": "dQw4w9WgXcQ"}]}]
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from gurka_bot.domain.shared.types import NonNegativeInt, SnowflakeString

DEFAULT_VOICE_GROUP = "default"


class SerializedTrack(BaseModel):
    """A track reduced to what is needed to resolve it again."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str
    duration: NonNegativeInt
    source_id: str = Field(alias="youtubeId", min_length=1)


class JoinConfig(BaseModel):
    """Parameters needed to (re)join a voice channel."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    guild_id: SnowflakeString = Field(alias="guildId")
    channel_id: SnowflakeString = Field(alias="channelId")
    self_mute: bool = Field(default=False, alias="selfMute")
    self_deaf: bool = Field(default=True, alias="selfDeaf")
    group: str = DEFAULT_VOICE_GROUP


class SessionSnapshot(BaseModel):
    """Resumable state of one session: where to reconnect, where to talk, what to play."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    join_config: JoinConfig = Field(alias="joinConfig")
    music_channel_id: SnowflakeString = Field(alias="musicChannelId")
    queue: list[SerializedTrack] = Field(default_factory=list)
