"""Pydantic models shared across kcadmin.

:class:`SSOConfig` describes how to reach and authenticate against the
remote token endpoint. It is loaded from YAML or JSON by
:mod:`kcadmin.config` and handed to
:class:`~kcadmin.auth.manager.TokenManager`.

:class:`TokenResponse` is the parsed JSON body returned by the token
endpoint for both grant types.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SSOConfig(BaseModel):
    """Connection settings for a client-credentials integration.

    The token URL is derived from ``base_url`` and ``realm``; it is never
    configured directly.

    Example::

        SSOConfig(
            client_id="admin-cli",
            client_secret="s3cr3t",
            realm="master",
            base_url="https://sso.example.com",
            headers={"X-Tenant": "acme"},
        )
    """

    client_id: str = Field(description="OAuth2 client identifier")
    client_secret: str = Field(description="OAuth2 client secret")
    realm: str = Field(description="Realm (tenant) the client belongs to")
    base_url: str = Field(description="Base address of the SSO server")
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Extra headers attached to every token request",
    )
    timeout: float = Field(
        default=30.0, gt=0, description="Token request timeout in seconds"
    )
    verify_ssl: bool = Field(
        default=True, description="Verify TLS certificates of the SSO server"
    )

    @field_validator("realm")
    @classmethod
    def _realm_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("realm must not be blank")
        return value

    @field_validator("base_url")
    @classmethod
    def _base_url_is_http(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return value.rstrip("/")

    @property
    def token_url(self) -> str:
        """The OpenID Connect token endpoint for :attr:`realm`."""
        return f"{self.base_url}/realms/{self.realm}/protocol/openid-connect/token"


class TokenResponse(BaseModel):
    """JSON body returned by the token endpoint.

    Unknown fields (``scope``, ``session_state``, ...) are preserved in
    ``model_extra``.
    """

    model_config = ConfigDict(extra="allow")

    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[float] = None
    token_type: str = "Bearer"
