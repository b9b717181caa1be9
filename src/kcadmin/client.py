"""Admin API client facade.

:class:`KeycloakAdminClient` bundles an :class:`~kcadmin.models.SSOConfig`
with its :class:`~kcadmin.auth.manager.TokenManager` and an
:class:`httpx.Client` whose requests are authenticated by
:class:`BearerAuth`. Resource-specific helpers (users, roles, realms) are
built on top of :meth:`KeycloakAdminClient.request` by callers.
"""

from __future__ import annotations

from typing import Any, Generator, Optional

import httpx

from kcadmin.auth.manager import TokenManager
from kcadmin.models import SSOConfig


class BearerAuth(httpx.Auth):
    """httpx auth flow that injects the manager's current access token.

    The configured extra headers are added as well, so admin API calls
    pass through the same gateways as token requests.
    """

    def __init__(self, token_manager: TokenManager) -> None:
        self._token_manager = token_manager

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        token = self._token_manager.get_token()
        for name, value in self._token_manager.config.headers.items():
            request.headers.setdefault(name, value)
        request.headers["Authorization"] = f"Bearer {token.access_token}"
        yield request


class KeycloakAdminClient:
    """Entry point for talking to the Keycloak admin REST API.

    Args:
        config: SSO connection settings.
        token_manager: Optional pre-built manager; one is created from
            *config* otherwise.
        transport: Optional httpx transport for the admin API client.

    Example::

        with KeycloakAdminClient(config) as client:
            users = client.request("GET", "/users").json()
    """

    def __init__(
        self,
        config: SSOConfig,
        token_manager: Optional[TokenManager] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config
        self._token_manager = token_manager or TokenManager(config)
        self._http = httpx.Client(
            base_url=self.admin_url,
            auth=BearerAuth(self._token_manager),
            timeout=config.timeout,
            verify=config.verify_ssl,
            transport=transport,
        )

    @classmethod
    def from_credentials(
        cls, client_id: str, client_secret: str, realm: str, base_url: str
    ) -> KeycloakAdminClient:
        return cls(
            SSOConfig(
                client_id=client_id,
                client_secret=client_secret,
                realm=realm,
                base_url=base_url,
            )
        )

    @property
    def config(self) -> SSOConfig:
        return self._config

    @property
    def token_manager(self) -> TokenManager:
        return self._token_manager

    @property
    def admin_url(self) -> str:
        """Base URL of the realm's admin API."""
        return f"{self._config.base_url}/admin/realms/{self._config.realm}"

    def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send an authenticated request to *path* under :attr:`admin_url`."""
        return self._http.request(method, path, **kwargs)

    def close(self) -> None:
        self._http.close()
        self._token_manager.close()

    def __enter__(self) -> KeycloakAdminClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
