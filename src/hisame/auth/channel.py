"""One-shot token handoff between the HTTP handler and the login flow."""

from __future__ import annotations

import threading

# How often a waiter re-checks its cancellation event.
_POLL_INTERVAL = 0.05


class ChannelClosed(Exception):
    """The channel was closed, or its token already taken, before a read."""


class WaitCancelled(Exception):
    """The cancellation event fired while waiting for a token."""


class TokenChannel:
    """Write-once, read-once cell carrying a single token.

    The producer (the ``/token`` handler) calls :meth:`put`; the consumer
    blocks in :meth:`get`. Only the first ``put`` is kept. Later writes are
    dropped and never block.

    Usage:
        channel = TokenChannel()

        # handler thread
        channel.put("abc123")

        # waiting thread
        token = channel.get(cancel=cancel_event)
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._value: str | None = None
        self._delivered = False
        self._consumed = False
        self._closed = False

    def put(self, token: str) -> bool:
        """Deliver a token. Returns False if the slot was already used or closed."""
        with self._cond:
            if self._delivered or self._closed:
                return False
            self._value = token
            self._delivered = True
            self._cond.notify_all()
            return True

    def close(self) -> None:
        """Close the channel. A token delivered before closing can still be read."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    @property
    def closed(self) -> bool:
        return self._closed

    def try_get(self) -> str | None:
        """Take the token if one is waiting, without blocking."""
        with self._cond:
            if self._delivered and not self._consumed:
                self._consumed = True
                return self._value
            return None

    def get(self, cancel: threading.Event | None = None) -> str:
        """Block until the token arrives.

        Args:
            cancel: Event that aborts the wait when set

        Returns:
            The delivered token (which may be an empty string)

        Raises:
            WaitCancelled: If ``cancel`` was set first
            ChannelClosed: If the channel closed empty or the token was already taken
        """
        with self._cond:
            while True:
                if self._delivered and not self._consumed:
                    self._consumed = True
                    return self._value  # type: ignore[return-value]
                if self._consumed:
                    raise ChannelClosed("token already consumed")
                if self._closed:
                    raise ChannelClosed("channel closed before a token was delivered")
                if cancel is not None and cancel.is_set():
                    raise WaitCancelled()
                self._cond.wait(_POLL_INTERVAL if cancel is not None else None)
