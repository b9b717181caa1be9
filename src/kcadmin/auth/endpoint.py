"""HTTP access to the OpenID Connect token endpoint.

:class:`TokenEndpoint` performs the two grants used by the token manager:

- ``client_credentials`` (:rfc:`6749` section 4.4), authenticating the
  client with HTTP Basic credentials.
- ``refresh_token`` (:rfc:`6749` section 6), exchanging a previously
  issued refresh token. Keycloak requires confidential clients to
  authenticate here too, so the same Basic credentials are sent.

Every request carries the extra headers from
:attr:`SSOConfig.headers <kcadmin.models.SSOConfig.headers>`. Failures are
mapped onto :class:`~kcadmin.exceptions.TokenTransportError` and
:class:`~kcadmin.exceptions.TokenRejectedError`.
"""

from __future__ import annotations

from typing import Optional

import httpx
from pydantic import ValidationError

from kcadmin.exceptions import TokenRejectedError, TokenTransportError
from kcadmin.models import SSOConfig, TokenResponse


class TokenEndpoint:
    """Client for the realm's token endpoint.

    Args:
        config: SSO connection settings.
        client: Optional pre-built :class:`httpx.Client`. When omitted one
            is created from ``config.timeout`` and ``config.verify_ssl`` and
            closed by :meth:`close`.
    """

    def __init__(self, config: SSOConfig, client: Optional[httpx.Client] = None) -> None:
        self._config = config
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=config.timeout,
            verify=config.verify_ssl,
        )

    @property
    def url(self) -> str:
        return self._config.token_url

    def client_credentials(self) -> TokenResponse:
        """Request a new token with the client-credentials grant.

        Raises:
            TokenTransportError: If the request could not be completed.
            TokenRejectedError: If the endpoint did not issue a token.
        """
        return self._grant({"grant_type": "client_credentials"})

    def refresh(self, refresh_token: str) -> TokenResponse:
        """Exchange *refresh_token* for a new token.

        Raises:
            TokenTransportError: If the request could not be completed.
            TokenRejectedError: If the endpoint did not issue a token
                (e.g. the refresh token was revoked or has expired).
        """
        return self._grant({"grant_type": "refresh_token", "refresh_token": refresh_token})

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _grant(self, data: dict[str, str]) -> TokenResponse:
        headers = {"Accept": "application/json"}
        headers.update(self._config.headers)
        grant_type = data["grant_type"]
        if self._client.is_closed:
            raise TokenTransportError(
                f"Token request ({grant_type}) failed: HTTP client is closed"
            )

        try:
            response = self._client.post(
                self.url,
                data=data,
                headers=headers,
                auth=(self._config.client_id, self._config.client_secret),
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise TokenRejectedError(
                f"Token request ({grant_type}) failed with status "
                f"{exc.response.status_code}: {exc.response.text}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise TokenTransportError(f"Token request ({grant_type}) failed: {exc}") from exc
        except ValueError as exc:
            raise TokenRejectedError(
                f"Token endpoint returned invalid JSON ({grant_type}): {exc}",
                status_code=response.status_code,
            ) from exc

        if not isinstance(payload, dict) or "access_token" not in payload:
            raise TokenRejectedError(
                f"Token response ({grant_type}) missing 'access_token' field",
                status_code=response.status_code,
            )
        try:
            return TokenResponse.model_validate(payload)
        except ValidationError as exc:
            raise TokenRejectedError(
                f"Malformed token response ({grant_type}): {exc}",
                status_code=response.status_code,
            ) from exc
