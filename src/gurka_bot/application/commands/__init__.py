"""Text commands: context/result types, the command table and the built-in commands."""

from .base import Command, CommandResult, MessageContext
from .response import ResponseCommand, SequentialResponseCommand
from .table import CommandTable, HelpCommand
from .voice import (
    ClearCommand,
    JoinCommand,
    LeaveCommand,
    LoopCommand,
    NowPlayingCommand,
    PauseCommand,
    PlayCommand,
    QueueCommand,
    RemoveCommand,
    ResumeCommand,
    ShuffleCommand,
    SkipCommand,
    VoiceCommand,
    parse_queue_selection,
)

__all__ = [
    "ClearCommand",
    "Command",
    "CommandResult",
    "CommandTable",
    "HelpCommand",
    "JoinCommand",
    "LeaveCommand",
    "LoopCommand",
    "MessageContext",
    "NowPlayingCommand",
    "PauseCommand",
    "PlayCommand",
    "QueueCommand",
    "RemoveCommand",
    "ResponseCommand",
    "ResumeCommand",
    "SequentialResponseCommand",
    "ShuffleCommand",
    "SkipCommand",
    "VoiceCommand",
    "parse_queue_selection",
]
