"""Canned-reply commands configured in settings."""

from __future__ import annotations

import random
from collections.abc import Sequence

from ...domain.shared.messages import DiscordUIMessages
from .base import Command, CommandResult, MessageContext


class ResponseCommand(Command):
    """Answers with a random entry of ``responses``."""

    def __init__(
        self,
        name: str,
        description: str,
        responses: Sequence[str],
        aliases: Sequence[str] = (),
    ) -> None:
        self.name = name
        self.description = description
        self.aliases = tuple(aliases)
        self._responses = list(responses)

    def _next_response(self) -> str:
        return random.choice(self._responses)

    async def execute(self, ctx: MessageContext, args: str) -> CommandResult:
        if not self._responses:
            return CommandResult.failure(DiscordUIMessages.RESPONSE_NOT_CONFIGURED.format(name=self.name))
        return CommandResult.ok(self._next_response())


class SequentialResponseCommand(ResponseCommand):
    """Walks through ``responses`` in order and wraps around."""

    def __init__(
        self,
        name: str,
        description: str,
        responses: Sequence[str],
        aliases: Sequence[str] = (),
    ) -> None:
        super().__init__(name, description, responses, aliases)
        self._next_index = 0

    def _next_response(self) -> str:
        response = self._responses[self._next_index]
        self._next_index = (self._next_index + 1) % len(self._responses)
        return response
