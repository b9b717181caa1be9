"""Immutable snapshot of an issued access token.

A :class:`Token` is built once per successful grant and never mutated;
refreshing produces a new instance. Expiry is expressed as an instant on
the owning manager's clock (seconds, ``time.monotonic`` by default), so
the same clock must be used when asking :meth:`Token.is_expired`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from kcadmin.models import TokenResponse


@dataclass(frozen=True)
class Token:
    """An access token with its optional refresh token and expiry instant.

    Attributes:
        access_token: The bearer credential sent to the admin API.
        refresh_token: Value for the ``refresh_token`` grant, if issued.
        expires_at: Clock instant at which the token expires, or ``None``
            when the endpoint declared no positive lifetime. Such a token
            is never considered expired.
        issued_at: Clock instant the response was received.
        token_type: Token type reported by the endpoint.
    """

    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[float] = None
    issued_at: float = 0.0
    token_type: str = "Bearer"

    @classmethod
    def from_response(cls, response: TokenResponse, now: float) -> Token:
        """Build a token from a parsed endpoint response received at *now*."""
        expires_at: Optional[float] = None
        if response.expires_in is not None and response.expires_in > 0:
            expires_at = now + response.expires_in
        return cls(
            access_token=response.access_token,
            refresh_token=response.refresh_token,
            expires_at=expires_at,
            issued_at=now,
            token_type=response.token_type,
        )

    def is_expired(self, now: float) -> bool:
        """Return True once *now* reaches :attr:`expires_at`."""
        if self.expires_at is None:
            return False
        return not now < self.expires_at

    @property
    def can_refresh(self) -> bool:
        return bool(self.refresh_token)

    def __repr__(self) -> str:
        # Keep credentials out of logs and tracebacks.
        return (
            f"Token(token_type={self.token_type!r}, expires_at={self.expires_at!r}, "
            f"refreshable={self.can_refresh})"
        )
