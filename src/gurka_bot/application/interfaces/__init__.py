"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters. These are the "ports" in
hexagonal architecture.
"""

from gurka_bot.application.interfaces.audio_resolver import AudioResolver, AudioStream, FetchResult
from gurka_bot.application.interfaces.state_store import StateStore
from gurka_bot.application.interfaces.voice_transport import (
    StatusListener,
    TextDestination,
    VoiceGateway,
    VoiceTransport,
)

__all__ = [
    "AudioResolver",
    "AudioStream",
    "FetchResult",
    "StateStore",
    "StatusListener",
    "TextDestination",
    "VoiceGateway",
    "VoiceTransport",
]
