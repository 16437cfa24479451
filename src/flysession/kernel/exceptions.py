"""Unified exception hierarchy for flysession.

All session exceptions inherit from FlySessionException, enabling unified
error handling in the hosting application.

Categories:
- SessionException: Session data and protocol violations
- SecurityException: Encryption key and ciphertext errors
- InfrastructureException: Backend binding and storage failures
- ConfigurationException: Invalid session configuration
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class FlySessionException(Exception):
    """Base exception for all flysession errors.

    Carries an optional error code and context dict for structured error data.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "SESSION_001").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Session Exceptions
# =============================================================================


class SessionException(FlySessionException):
    """Session data or session protocol errors."""


class InvalidSessionCookieException(SessionException):
    """A session cookie carries a value that violates the cookie protocol."""


class SessionTooLargeException(SessionException):
    """Serialized session does not fit in the available cookie chunks."""


class MissingSessionIdException(SessionException):
    """An operation that addresses a stored session was given no session ID."""


# =============================================================================
# Security Exceptions
# =============================================================================


class SecurityException(FlySessionException):
    """Encryption and decryption errors."""


class EncryptionKeyException(SecurityException):
    """The configured encryption key is missing or too weak."""


class DecryptionException(SecurityException):
    """Ciphertext is malformed, tampered with, or sealed with another key."""


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(FlySessionException):
    """Storage backend failures."""


class BackendBindingException(InfrastructureException):
    """No key-value backend is bound to the current request context."""


class SessionStoreException(InfrastructureException):
    """A session storage backend failed to complete a write or delete."""


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationException(FlySessionException):
    """Session configuration is invalid or incomplete."""
