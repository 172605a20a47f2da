"""Login orchestration shared by the presentation layer.

:class:`LoginFlow` runs one login attempt: it starts the callback server on
the calling thread (so a bind failure is reported before anything starts
waiting), opens the browser, then waits for the token on a worker thread.
The caller gets a :class:`LoginAttempt` it can cancel or wait on.
:meth:`LoginFlow.run` does the same on the calling thread and returns the
:class:`LoginResult` directly.
"""

from __future__ import annotations

import logging
import threading
import webbrowser
from dataclasses import dataclass
from functools import partial
from typing import Callable

from .errors import AuthError, CallbackServerError, LoginCancelled, TokenNotReceived
from .session import AuthSession

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    """Outcome of a login attempt."""

    token: str | None = None
    error: AuthError | None = None
    cancelled: bool = False
    browser_opened: bool = False

    @property
    def success(self) -> bool:
        return self.token is not None and self.error is None and not self.cancelled


def describe_failure(error: AuthError) -> str:
    """User-facing message for a failed login."""
    if isinstance(error, CallbackServerError):
        return "Error starting login flow. Please check the logs and try again."
    if isinstance(error, TokenNotReceived):
        return "There was an error reading the auth token. Please check the logs and try again."
    return f"Login failed: {error}. Please check the logs and try again."


class LoginAttempt:
    """Handle to an in-progress login."""

    def __init__(self, login_url: str, cancel: threading.Event | None = None):
        self.login_url = login_url
        self.browser_opened = False
        self.result: LoginResult | None = None
        self._cancel = cancel if cancel is not None else threading.Event()
        self._done = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def cancel_event(self) -> threading.Event:
        return self._cancel

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def cancel(self) -> None:
        """Abandon the login. The callback server is stopped by the waiting thread."""
        logger.info("Login cancelled by user")
        self._cancel.set()

    def wait(self, timeout: float | None = None) -> LoginResult | None:
        """Wait for the attempt to finish; returns None on timeout."""
        if not self._done.wait(timeout):
            return None
        return self.result

    def _finish(self, result: LoginResult) -> None:
        self.result = result
        self._done.set()


class LoginFlow:
    """Runs AniList logins.

    Usage:
        flow = LoginFlow()
        attempt = flow.start(
            on_success=lambda token: context.set_auth_token(token),
            on_failure=lambda message: show_error(message),
        )
        # user clicks "Cancel"
        attempt.cancel()

    Or blocking, from a worker thread:
        result = flow.run(cancel=cancel_event)
    """

    def __init__(
        self,
        session_factory: Callable[[], AuthSession] = AuthSession,
        open_browser: Callable[[str], bool] = webbrowser.open,
    ):
        self._session_factory = session_factory
        self._open_browser = open_browser

    def start(
        self,
        on_success: Callable[[str], None] | None = None,
        on_failure: Callable[[str], None] | None = None,
        on_cancel: Callable[[], None] | None = None,
        on_waiting: Callable[[LoginAttempt], None] | None = None,
    ) -> LoginAttempt:
        """Begin a login attempt.

        Args:
            on_success: Called with the token
            on_failure: Called with a human-readable message on bind or wait failure
            on_cancel: Called when the attempt was cancelled
            on_waiting: Called once the browser step is done and the wait begins

        Returns:
            The attempt; already finished if the callback server failed to start
        """
        session, attempt = self._begin(None)

        try:
            session.start_callback_server()
        except CallbackServerError as e:
            logger.error("Error starting login flow: %s", e)
            try:
                if on_failure:
                    on_failure(describe_failure(e))
            finally:
                attempt._finish(LoginResult(error=e))
            return attempt

        attempt.browser_opened = self._open(session.login_url)
        if on_waiting:
            on_waiting(attempt)

        attempt._thread = threading.Thread(
            target=self._wait,
            args=(session, attempt, on_success, on_failure, on_cancel),
            name="hisame-login",
            daemon=True,
        )
        attempt._thread.start()
        return attempt

    def run(
        self,
        cancel: threading.Event | None = None,
        on_waiting: Callable[[LoginAttempt], None] | None = None,
    ) -> LoginResult:
        """Run a login attempt on the calling thread.

        Args:
            cancel: Event that abandons the login when set
            on_waiting: Called once the browser step is done and the wait begins

        Returns:
            The outcome; a bind failure is returned before the browser is opened
        """
        session, attempt = self._begin(cancel)

        try:
            session.start_callback_server()
        except CallbackServerError as e:
            logger.error("Error starting login flow: %s", e)
            result = LoginResult(error=e)
        else:
            attempt.browser_opened = self._open(session.login_url)
            if on_waiting:
                on_waiting(attempt)
            result = self._collect(session, attempt)

        attempt._finish(result)
        return result

    def _begin(self, cancel: threading.Event | None) -> tuple[AuthSession, LoginAttempt]:
        session = self._session_factory()
        logger.info("Starting login. Login URL: %s", session.login_url)
        return session, LoginAttempt(session.login_url, cancel)

    def _open(self, url: str) -> bool:
        try:
            opened = self._open_browser(url)
        except webbrowser.Error as e:
            logger.warning("Error opening Login URL: %s", e)
            return False
        if not opened:
            logger.warning("No browser could be opened for the Login URL")
        return bool(opened)

    def _collect(self, session: AuthSession, attempt: LoginAttempt) -> LoginResult:
        """Wait for the token and turn the outcome into a LoginResult."""
        try:
            token = session.wait_for_token(attempt.cancel_event)
        except LoginCancelled:
            return LoginResult(cancelled=True, browser_opened=attempt.browser_opened)
        except AuthError as e:
            logger.error("Error waiting for token: %s", e)
            return LoginResult(error=e, browser_opened=attempt.browser_opened)
        except Exception:
            logger.exception("Login wait failed unexpectedly")
            return LoginResult(
                error=AuthError("Unexpected error while waiting for token"),
                browser_opened=attempt.browser_opened,
            )

        logger.info("Login complete")
        return LoginResult(token=token, browser_opened=attempt.browser_opened)

    def _wait(self, session, attempt, on_success, on_failure, on_cancel) -> None:
        result = self._collect(session, attempt)

        notify: Callable[[], None] | None = None
        if result.cancelled:
            notify = on_cancel
        elif result.error is not None:
            if on_failure:
                notify = partial(on_failure, describe_failure(result.error))
        elif on_success:
            notify = partial(on_success, result.token)

        # Callbacks complete before the attempt is marked done.
        try:
            if notify:
                notify()
        finally:
            attempt._finish(result)
