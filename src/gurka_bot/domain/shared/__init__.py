"""
Shared Domain Kernel

Contains exceptions, message catalogues and constrained types shared across the bot.
"""

from gurka_bot.domain.shared.exceptions import (
    BusinessRuleViolationError,
    ChannelConflictError,
    DomainError,
    ResolverError,
    ValidationError,
    VoiceConnectionError,
)

__all__ = [
    "DomainError",
    "ValidationError",
    "BusinessRuleViolationError",
    "ChannelConflictError",
    "VoiceConnectionError",
    "ResolverError",
]
