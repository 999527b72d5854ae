"""Typed exceptions for session validation failures."""


class AuthError(Exception):
    """Base class for authentication errors."""


class InvalidTokenError(AuthError):
    """Session token is unknown, malformed, or was revoked."""


class SessionExpiredError(AuthError):
    """Session has expired and the dealer must sign in again."""
