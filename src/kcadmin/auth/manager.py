"""Token manager -- obtains, caches and refreshes the admin API token.

:class:`TokenManager` is the single source of truth for the current
access token. It issues a token with the client-credentials grant on
first use, hands the cached token to every later caller, and relies on a
:class:`~kcadmin.auth.scheduler.RefreshScheduler` to renew it shortly
before it expires. Issuance and refresh events are broadcast to the
registered :class:`~kcadmin.auth.listeners.TokenEventListener` instances.

Issuing a token follows two steps:

1. If a token is held and expired, try the refresh grant; on failure
   drop the held token. A held token that has not expired is reused.
2. Otherwise request a new token with client credentials.

Concurrent cold-start callers are not coalesced: each may perform its own
client-credentials request, and the last one to finish wins.

See Also:
    :class:`~kcadmin.auth.endpoint.TokenEndpoint` -- the grant requests.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from kcadmin.auth.endpoint import TokenEndpoint
from kcadmin.auth.listeners import ListenerRegistry, TokenEventListener
from kcadmin.auth.scheduler import DEFAULT_SAFETY_MARGIN, RefreshScheduler, TimerService
from kcadmin.auth.token import Token
from kcadmin.exceptions import TokenRequestError
from kcadmin.models import SSOConfig

logger = logging.getLogger(__name__)


class TokenManager:
    """Lifecycle manager for a client-credentials access token.

    Args:
        config: SSO connection settings.
        endpoint: Token endpoint client. Built from *config* when omitted,
            in which case :meth:`close` also closes it.
        timer_service: Timer source for the refresh scheduler.
        clock: Monotonic clock returning seconds. Token expiry instants are
            expressed on this clock.
        safety_margin: Seconds before expiry at which the scheduled
            refresh fires.

    Example::

        manager = TokenManager(config)
        token = manager.get_token()
        headers = {"Authorization": f"Bearer {token.access_token}"}
        ...
        manager.close()
    """

    def __init__(
        self,
        config: SSOConfig,
        endpoint: Optional[TokenEndpoint] = None,
        timer_service: Optional[TimerService] = None,
        clock: Callable[[], float] = time.monotonic,
        safety_margin: float = DEFAULT_SAFETY_MARGIN,
    ) -> None:
        self._config = config
        self._owns_endpoint = endpoint is None
        self._endpoint = endpoint or TokenEndpoint(config)
        self._clock = clock
        self._listeners = ListenerRegistry()
        self._scheduler = RefreshScheduler(
            self._on_refresh_due,
            timer_service=timer_service,
            safety_margin=safety_margin,
        )
        self._running = threading.Event()
        self._running.set()
        self._token: Optional[Token] = None
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def config(self) -> SSOConfig:
        return self._config

    @property
    def is_running(self) -> bool:
        return self._running.is_set()

    @property
    def current_token(self) -> Optional[Token]:
        """The held token, without triggering any request."""
        with self._lock:
            return self._token

    def get_token(self) -> Token:
        """Return the held token, issuing one first if none is held.

        The held token is returned as-is; keeping it fresh is the refresh
        scheduler's job.

        Raises:
            TokenRequestError: If a token had to be issued and the request
                failed.
        """
        token = self.current_token
        if token is not None:
            return token
        return self._generate_token()

    def register_listener(self, listener: TokenEventListener) -> None:
        """Register *listener* for issuance and refresh events."""
        self._listeners.register(listener)

    def shutdown(self) -> None:
        """Stop automatic refreshes.

        The held token is kept, so references already handed out stay
        usable until they expire, and :meth:`get_token` can still issue a
        token on demand. In-flight requests are not aborted. Safe to call
        more than once.
        """
        if not self._running.is_set():
            return
        self._running.clear()
        self._scheduler.shutdown()
        logger.debug("Token manager for realm '%s' shut down", self._config.realm)

    def close(self) -> None:
        """Shut down and release the endpoint's HTTP client, if owned."""
        self.shutdown()
        if self._owns_endpoint:
            self._endpoint.close()

    def __enter__(self) -> TokenManager:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Issuance and refresh
    # ------------------------------------------------------------------

    def _generate_token(self, due: bool = False) -> Token:
        # due: the refresh deadline has passed, so the held token is
        # replaced even though it has not reached its expiry yet.
        held = self.current_token
        if held is not None:
            if not due and not held.is_expired(self._clock()):
                return held
            if held.can_refresh:
                try:
                    return self._refresh_token(held)
                except TokenRequestError as exc:
                    logger.warning("Token refresh failed, issuing a new token: %s", exc)
            with self._lock:
                if self._token is held:
                    self._token = None

        response = self._endpoint.client_credentials()
        token = Token.from_response(response, self._clock())
        logger.debug("Token issued for client '%s'", self._config.client_id)
        with self._lock:
            self._token = token
        self._arm_scheduler(token)
        self._listeners.notify_issued(token)
        return token

    def _refresh_token(self, held: Token) -> Token:
        # Cleared before the request so nobody reuses a token being replaced.
        with self._lock:
            self._token = None

        response = self._endpoint.refresh(held.refresh_token)
        token = Token.from_response(response, self._clock())
        logger.debug("Token refreshed for client '%s'", self._config.client_id)
        with self._lock:
            self._token = token
        self._arm_scheduler(token)
        self._listeners.notify_refreshed(token)
        return token

    def _arm_scheduler(self, token: Token) -> None:
        if token.expires_at is None:
            # No declared lifetime: the token is never refreshed automatically.
            logger.debug("Token has no expiry, refresh not scheduled")
            return
        if not self._running.is_set():
            return
        self._scheduler.schedule_for_expiry(token.expires_at, self._clock())

    def _on_refresh_due(self) -> None:
        if not self._running.is_set():
            return
        logger.debug("Refreshing token")
        try:
            self._generate_token(due=True)
        except TokenRequestError:
            logger.exception("Failed to refresh token")
        except Exception:
            logger.exception("Unexpected error while refreshing token")
