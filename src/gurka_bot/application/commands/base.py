"""
Command Base Types

Message context handed to every command, the result a command returns, and
the abstract command interface the command table dispatches to.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, model_validator

from ...domain.shared.types import DiscordSnowflake


class MessageContext(BaseModel):
    """Everything a command may need to know about the message that invoked it."""

    model_config = ConfigDict(frozen=True)

    content: str

    sender_id: DiscordSnowflake
    sender_username: str
    sender_nickname: str | None = None
    sender_is_bot: bool = False
    sender_voice_channel_id: DiscordSnowflake | None = None

    channel_id: DiscordSnowflake
    channel_name: str = ""

    guild_id: DiscordSnowflake
    guild_name: str = ""

    @property
    def sender_display_name(self) -> str:
        return self.sender_nickname or self.sender_username


class CommandResult(BaseModel):
    """Outcome of a command. A set ``error`` means the command failed."""

    model_config = ConfigDict(frozen=True)

    response: str | None = None
    error: str | None = None

    @model_validator(mode="after")
    def _at_most_one(self) -> CommandResult:
        if self.response is not None and self.error is not None:
            raise ValueError("A command result carries either a response or an error, not both")
        return self

    @property
    def is_success(self) -> bool:
        return self.error is None

    @classmethod
    def ok(cls, response: str | None = None) -> CommandResult:
        return cls(response=response)

    @classmethod
    def failure(cls, error: str) -> CommandResult:
        return cls(error=error)


class Command(ABC):
    """A named operation users invoke with ``<prefix><name> [args]``.

    ``mutates_state`` marks commands after which the session state file is
    rewritten.
    """

    name: ClassVar[str]
    description: ClassVar[str] = ""
    aliases: ClassVar[tuple[str, ...]] = ()
    mutates_state: ClassVar[bool] = False

    @property
    def names(self) -> tuple[str, ...]:
        return (self.name, *self.aliases)

    @abstractmethod
    async def execute(self, ctx: MessageContext, args: str) -> CommandResult:
        """Run the command. Expected failures come back as ``CommandResult.failure``."""
        ...
