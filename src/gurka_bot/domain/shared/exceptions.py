"""Base exception classes for domain-level errors."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ValidationError(DomainError):
    """Raised when user-supplied input cannot be interpreted."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class BusinessRuleViolationError(DomainError):
    """Raised when a business rule is violated."""

    def __init__(self, rule: str, message: str | None = None) -> None:
        msg = message or f"Business rule violated: {rule}"
        super().__init__(msg, code="BUSINESS_RULE_VIOLATION")
        self.rule = rule


class ChannelConflictError(BusinessRuleViolationError):
    """Raised when a guild already has a session bound to another voice channel."""

    def __init__(self, guild_id: int, active_channel_id: int, requested_channel_id: int) -> None:
        super().__init__(
            rule="ONE_SESSION_PER_GUILD",
            message=(
                f"Guild {guild_id} already has a session in channel {active_channel_id}, "
                f"cannot bind channel {requested_channel_id}"
            ),
        )
        self.guild_id = guild_id
        self.active_channel_id = active_channel_id
        self.requested_channel_id = requested_channel_id


class VoiceConnectionError(DomainError):
    """Raised when the voice platform refuses or times out a channel join."""

    def __init__(self, guild_id: int, channel_id: int, reason: str) -> None:
        super().__init__(
            f"Could not connect to channel {channel_id} in guild {guild_id}: {reason}",
            code="VOICE_CONNECTION_FAILED",
        )
        self.guild_id = guild_id
        self.channel_id = channel_id
        self.reason = reason


class ResolverError(DomainError):
    """Raised inside the audio resolver when the external process misbehaves."""

    def __init__(self, query: str, reason: str) -> None:
        super().__init__(f"Resolver failed for {query!r}: {reason}", code="RESOLVER_ERROR")
        self.query = query
        self.reason = reason
