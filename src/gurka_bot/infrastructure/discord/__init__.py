"""Discord gateway integration: the bot and its voice/text adapters."""
