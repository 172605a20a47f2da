"""AniList authentication.

Implements the OAuth implicit grant through a local callback server.

Usage:
    from hisame.auth import LoginFlow, TokenStorage

    flow = LoginFlow()
    attempt = flow.start()
    result = attempt.wait()
    if result.success:
        TokenStorage().save(result.token)
"""

from .errors import (
    AuthError,
    AuthConfigError,
    CallbackServerError,
    LoginCancelled,
    TokenNotReceived,
)
from .channel import TokenChannel
from .server import CallbackServer, CALLBACK_PORT
from .session import AuthSession, build_login_url
from .storage import TokenStorage
from .login import LoginFlow, LoginAttempt, LoginResult, describe_failure

__all__ = [
    "AuthError",
    "AuthConfigError",
    "CallbackServerError",
    "LoginCancelled",
    "TokenNotReceived",
    "TokenChannel",
    "CallbackServer",
    "CALLBACK_PORT",
    "AuthSession",
    "build_login_url",
    "TokenStorage",
    "LoginFlow",
    "LoginAttempt",
    "LoginResult",
    "describe_failure",
]
