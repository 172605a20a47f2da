"""A single AniList login attempt.

Usage:
    session = AuthSession()
    session.start_callback_server()      # raises CallbackServerError if the port is taken
    webbrowser.open(session.login_url)
    token = session.wait_for_token(cancel_event)   # stops the server on return
"""

from __future__ import annotations

import logging
import threading
from urllib.parse import urlencode, urlsplit, urlunsplit

from ..logs import TRACE
from .channel import ChannelClosed, TokenChannel, WaitCancelled
from .errors import AuthConfigError, AuthError, LoginCancelled, TokenNotReceived
from .server import CALLBACK_PORT, CallbackServer

ANILIST_AUTHORIZE_URL = "https://anilist.co/api/v2/oauth/authorize"
CLIENT_ID = "18776"

logger = logging.getLogger(__name__)


def build_login_url(client_id: str = CLIENT_ID, authorize_url: str = ANILIST_AUTHORIZE_URL) -> str:
    """Build the implicit-grant authorization URL.

    No ``redirect_uri`` is sent; AniList uses the one registered for the client.

    Raises:
        AuthConfigError: If the endpoint or client id cannot form a valid URL
    """
    parts = urlsplit(authorize_url)
    if parts.scheme not in ("http", "https") or not parts.netloc or not client_id:
        raise AuthConfigError(
            f"Failed to generate auth url from {authorize_url!r} (client_id={client_id!r})",
            error_code="bad_auth_url",
        )
    query = urlencode({"client_id": client_id, "response_type": "token"})
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, ""))


class AuthSession:
    """Owns the callback server and token channel for one login attempt.

    Sessions are single-use: create a new one for every attempt.
    """

    def __init__(self, port: int = CALLBACK_PORT, client_id: str = CLIENT_ID):
        self._login_url = build_login_url(client_id)
        self._port = port
        self._channel = TokenChannel()
        self._server: CallbackServer | None = None
        self._lock = threading.Lock()
        self._waiting = False

    @property
    def login_url(self) -> str:
        return self._login_url

    @property
    def server_running(self) -> bool:
        server = self._server
        return server is not None and server.running

    def start_callback_server(self) -> None:
        """Start listening for the browser callback.

        Raises:
            CallbackServerError: If the port cannot be bound
        """
        server = CallbackServer(self._channel, port=self._port)
        with self._lock:
            if self._server is not None:
                raise AuthError("Callback server already started for this session")
            server.start()
            self._server = server

    def wait_for_token(self, cancel: threading.Event | None = None) -> str:
        """Block until the browser delivers a token or ``cancel`` is set.

        Must not be called from a UI thread. The callback server is stopped
        before this returns, whatever the outcome.

        Args:
            cancel: Event the caller sets to abandon the login

        Returns:
            The access token

        Raises:
            LoginCancelled: If ``cancel`` was set before a token arrived
            TokenNotReceived: If the channel closed or delivered an empty token
        """
        with self._lock:
            if self._waiting:
                raise AuthError("Another caller is already waiting on this session")
            self._waiting = True

        logger.debug("Waiting for token to arrive on /token endpoint")
        try:
            token = self._channel.get(cancel)
        except WaitCancelled:
            logger.debug("wait_for_token exiting because login was cancelled")
            raise LoginCancelled() from None
        except ChannelClosed as e:
            logger.warning("Failed to receive token: %s", e)
            raise TokenNotReceived() from e
        finally:
            self._shutdown_server(warn_if_idle=False)

        if not token:
            logger.warning("Failed to receive token: empty token delivered")
            raise TokenNotReceived()

        logger.info("Received token")
        logger.log(TRACE, "Received token: %s", token)
        return token

    def stop_callback_server(self) -> None:
        """Stop the callback server. Safe to call when it was never started."""
        self._shutdown_server(warn_if_idle=True)

    def _shutdown_server(self, warn_if_idle: bool) -> None:
        with self._lock:
            server, self._server = self._server, None

        if server is None:
            if warn_if_idle:
                logger.warning("Call to stop_callback_server when server was not started")
            return

        server.stop()
        self._channel.close()

    def __enter__(self):
        self.start_callback_server()
        return self

    def __exit__(self, *args):
        self._shutdown_server(warn_if_idle=False)
