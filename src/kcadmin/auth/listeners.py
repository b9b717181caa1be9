"""Token event listeners and their fault-isolating registry.

Observers implement :class:`TokenEventListener` and are registered with
:class:`ListenerRegistry` (usually through
:meth:`~kcadmin.auth.manager.TokenManager.register_listener`). Every
listener is wrapped in a :class:`SafeEventListener`, so an exception
raised by one observer is logged and dropped: other observers are still
notified and the token manager never sees the error.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod

from kcadmin.auth.token import Token

logger = logging.getLogger(__name__)


class TokenEventListener(ABC):
    """Observer of token issuance and refresh.

    Subclasses provide a :attr:`unique_name`, used as the registry key, and
    both callbacks. Callbacks run synchronously on the thread that obtained
    the token, which may be the background refresh thread.
    """

    @property
    @abstractmethod
    def unique_name(self) -> str:
        """Return the identity under which this listener is registered."""
        ...

    @abstractmethod
    def on_token_issued(self, token: Token) -> None:
        """Called after a new token was obtained with client credentials."""
        ...

    @abstractmethod
    def on_token_refreshed(self, token: Token) -> None:
        """Called after the held token was replaced through a refresh grant."""
        ...


class SafeEventListener(TokenEventListener):
    """Wrapper that shields callers from a delegate listener's failures."""

    def __init__(self, delegate: TokenEventListener) -> None:
        self._delegate = delegate
        self._name = delegate.unique_name

    @property
    def unique_name(self) -> str:
        return self._name

    @property
    def delegate(self) -> TokenEventListener:
        return self._delegate

    def on_token_issued(self, token: Token) -> None:
        try:
            self._delegate.on_token_issued(token)
        except Exception as exc:
            logger.warning("Listener '%s' failed in on_token_issued: %s", self._name, exc)
            logger.debug("Listener failure details", exc_info=True)

    def on_token_refreshed(self, token: Token) -> None:
        try:
            self._delegate.on_token_refreshed(token)
        except Exception as exc:
            logger.warning("Listener '%s' failed in on_token_refreshed: %s", self._name, exc)
            logger.debug("Listener failure details", exc_info=True)


class ListenerRegistry:
    """Thread-safe mapping of listener names to :class:`SafeEventListener` wrappers.

    Registration and dispatch may happen concurrently. Dispatch iterates a
    snapshot taken under the lock, so callbacks run without holding it and
    may themselves register listeners.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, SafeEventListener] = {}
        self._lock = threading.Lock()

    def register(self, listener: TokenEventListener) -> None:
        """Register *listener*, replacing any listener with the same name."""
        safe = SafeEventListener(listener)
        with self._lock:
            replaced = safe.unique_name in self._listeners
            self._listeners[safe.unique_name] = safe
        if replaced:
            logger.debug("Replaced token listener '%s'", safe.unique_name)
        else:
            logger.debug("Registered token listener '%s'", safe.unique_name)

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._listeners)

    def notify_issued(self, token: Token) -> None:
        for listener in self._snapshot():
            listener.on_token_issued(token)

    def notify_refreshed(self, token: Token) -> None:
        for listener in self._snapshot():
            listener.on_token_refreshed(token)

    def _snapshot(self) -> list[SafeEventListener]:
        with self._lock:
            return list(self._listeners.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)
