"""Exceptions raised by the login flow."""

from __future__ import annotations


class AuthError(Exception):
    """Base class for authentication errors."""

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        self.error_code = error_code


class AuthConfigError(AuthError):
    """The authorization URL could not be built. Not recoverable."""


class CallbackServerError(AuthError):
    """The local callback server could not be started, usually because the port is taken."""

    def __init__(self, message: str, port: int | None = None):
        super().__init__(message, error_code="bind_failed")
        self.port = port


class LoginCancelled(AuthError):
    """The caller cancelled the wait before a token arrived."""

    def __init__(self, message: str = "Login was cancelled"):
        super().__init__(message, error_code="cancelled")


class TokenNotReceived(AuthError):
    """The wait ended without a usable token."""

    def __init__(self, message: str = "Failed to receive token"):
        super().__init__(message, error_code="no_token")
