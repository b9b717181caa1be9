"""Numeric process exit codes used by the ``kcadmin`` CLI.

Each :class:`~kcadmin.exceptions.KcAdminError` subclass carries one of
these as its ``exit_code``, so shell scripts can tell a rejected client
secret from an unreachable SSO server without parsing stderr.

Example::

    $ kcadmin token --config sso.yaml
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the token endpoint refused the credentials
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred (including configuration problems)."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or option values."""

EXIT_AUTH_FAILURE = 3
"""The token endpoint did not issue a token."""

EXIT_CONNECTION_ERROR = 6
"""The token endpoint could not be reached (timeout, DNS failure, connection refused)."""
