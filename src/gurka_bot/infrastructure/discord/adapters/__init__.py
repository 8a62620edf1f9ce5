from gurka_bot.infrastructure.discord.adapters.voice_adapter import (
    DiscordTextDestination,
    DiscordVoiceGateway,
    DiscordVoiceTransport,
)

__all__ = ["DiscordTextDestination", "DiscordVoiceGateway", "DiscordVoiceTransport"]
