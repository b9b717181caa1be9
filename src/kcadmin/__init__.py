"""kcadmin -- client-credentials token management for the Keycloak admin API.

The package obtains an access token for a service account with the OAuth2
client-credentials grant, caches it, and refreshes it in the background
shortly before it expires. Observers can subscribe to issuance and
refresh events.

Typical usage::

    from kcadmin import KeycloakAdminClient
    from kcadmin.config import load_config

    with KeycloakAdminClient(load_config("sso.yaml")) as client:
        token = client.token_manager.get_token()

Modules:
    auth: Token value, listeners, refresh scheduler and token manager.
    client: Admin API client facade and httpx bearer auth.
    config: YAML/JSON config loading and saving.
    models: Pydantic models shared across the package.
    exceptions: Exception hierarchy.
    app: Typer CLI.
"""

__version__ = "0.1.0"

from kcadmin.client import BearerAuth, KeycloakAdminClient  # noqa: E402

__all__ = ["BearerAuth", "KeycloakAdminClient", "__version__"]
