"""Exception hierarchy for kcadmin.

All exceptions inherit from :class:`KcAdminError` and carry an
``exit_code`` taken from :mod:`kcadmin.exit_codes`; the CLI exits with it.
Token grant failures share the :class:`TokenRequestError` base so callers
(and the token manager's refresh fallback) can treat transport and
rejection failures alike while still being able to tell them apart.

Subclass hierarchy::

    KcAdminError
    +-- ConfigError
    +-- TokenRequestError
        +-- TokenTransportError
        +-- TokenRejectedError
"""

from __future__ import annotations

from typing import Optional

from kcadmin.exit_codes import EXIT_AUTH_FAILURE, EXIT_CONNECTION_ERROR, EXIT_GENERIC_FAILURE


class KcAdminError(Exception):
    """Base exception for all kcadmin errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(KcAdminError):
    """Raised for configuration problems (missing file, invalid YAML/JSON, bad fields)."""

    exit_code = EXIT_GENERIC_FAILURE


class TokenRequestError(KcAdminError):
    """Raised when a request to the token endpoint does not yield a token."""

    exit_code = EXIT_AUTH_FAILURE


class TokenTransportError(TokenRequestError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused)."""

    exit_code = EXIT_CONNECTION_ERROR


class TokenRejectedError(TokenRequestError):
    """Raised when the token endpoint answers but does not issue a token.

    Covers non-2xx responses (invalid client credentials, revoked refresh
    token) as well as bodies that are not JSON or lack ``access_token``.

    Args:
        message: Human-readable error description.
        status_code: HTTP status of the response, when one was received.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code = EXIT_AUTH_FAILURE

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        exit_code: Optional[int] = None,
    ):
        super().__init__(message, exit_code=exit_code)
        self.status_code = status_code
