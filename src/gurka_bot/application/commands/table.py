"""Name/alias lookup and dispatch for prefixed text commands."""

from __future__ import annotations

import logging

from ...domain.shared.messages import DiscordUIMessages, LogTemplates
from .base import Command, CommandResult, MessageContext
from .guards import check_not_bot

logger = logging.getLogger(__name__)


class CommandTable:
    """Maps ``<prefix><name>`` and ``<prefix><alias>`` to commands.

    The table is filled once at startup. The first command to claim a name
    keeps it; later claims are logged and ignored.
    """

    def __init__(self, prefix: str) -> None:
        self._prefix = prefix
        self._commands: list[Command] = []
        self._lookup: dict[str, Command] = {}

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def commands(self) -> list[Command]:
        return list(self._commands)

    def __len__(self) -> int:
        return len(self._lookup)

    def __contains__(self, word: object) -> bool:
        return isinstance(word, str) and word.lower() in self._lookup

    def register(self, command: Command) -> None:
        claimed = False
        for name in command.names:
            word = f"{self._prefix}{name}".lower()
            if word in self._lookup:
                logger.warning(LogTemplates.COMMAND_DUPLICATE_ALIAS, word)
                continue
            self._lookup[word] = command
            claimed = True

        if claimed:
            self._commands.append(command)

    def resolve(self, content: str) -> tuple[Command, str] | None:
        """Find the command a message invokes and the argument text after it.

        The whole message is tried first so names containing spaces work,
        then the first word.
        """
        text = content.strip()
        if not text:
            return None

        whole = self._lookup.get(text.lower())
        if whole is not None:
            return whole, ""

        head, _, rest = text.partition(" ")
        command = self._lookup.get(head.lower())
        if command is None:
            return None
        return command, rest.strip()

    def help_text(self) -> str:
        lines = [DiscordUIMessages.HELP_HEADER]
        for command in self._commands:
            names = ", ".join(f"{self._prefix}{name}" for name in command.names)
            lines.append(DiscordUIMessages.HELP_LINE.format(name=names, description=command.description))
        return "\n".join(lines)

    async def dispatch(self, ctx: MessageContext) -> tuple[Command, CommandResult] | None:
        """Run the command *ctx* invokes. Returns None when it invokes none."""
        resolved = self.resolve(ctx.content)
        if resolved is None:
            return None

        command, args = resolved
        if error := check_not_bot(ctx):
            return command, CommandResult.failure(error)

        logger.info(LogTemplates.COMMAND_DISPATCH, command.name, ctx.sender_username, ctx.guild_id)
        try:
            result = await command.execute(ctx, args)
        except Exception:
            logger.exception(LogTemplates.COMMAND_FAILED, command.name, ctx.guild_id)
            result = CommandResult.failure(DiscordUIMessages.ERROR_UNEXPECTED)
        return command, result


class HelpCommand(Command):
    name = "help"
    description = "List every command."

    def __init__(self, table: CommandTable) -> None:
        self._table = table

    async def execute(self, ctx: MessageContext, args: str) -> CommandResult:
        return CommandResult.ok(self._table.help_text())
