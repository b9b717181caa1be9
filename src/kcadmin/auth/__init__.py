"""Token lifecycle management for the Keycloak admin API.

The main entry points are:

- :class:`TokenManager` -- issues, caches and proactively refreshes the
  client-credentials access token.
- :class:`TokenEventListener` -- interface for observers of issuance and
  refresh events.
- :class:`Token` -- immutable snapshot of an issued token.

Typical usage::

    from kcadmin.auth import TokenManager

    with TokenManager(config) as manager:
        token = manager.get_token()
"""

from kcadmin.auth.endpoint import TokenEndpoint
from kcadmin.auth.listeners import ListenerRegistry, SafeEventListener, TokenEventListener
from kcadmin.auth.manager import TokenManager
from kcadmin.auth.scheduler import (
    DEFAULT_SAFETY_MARGIN,
    RefreshScheduler,
    ThreadingTimerService,
    TimerHandle,
    TimerService,
    compute_refresh_delay,
)
from kcadmin.auth.token import Token

__all__ = [
    "DEFAULT_SAFETY_MARGIN",
    "ListenerRegistry",
    "RefreshScheduler",
    "SafeEventListener",
    "ThreadingTimerService",
    "TimerHandle",
    "TimerService",
    "Token",
    "TokenEndpoint",
    "TokenEventListener",
    "TokenManager",
    "compute_refresh_delay",
]
