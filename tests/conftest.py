"""Shared test fixtures for kcadmin.

Provides a controllable clock, a timer service whose timers only fire
when a test says so, and a scripted token endpoint built on
:class:`httpx.MockTransport`. Together they make the token manager's
background refresh fully deterministic.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Union
from urllib.parse import parse_qs

import httpx
import pytest

from kcadmin.auth.endpoint import TokenEndpoint
from kcadmin.auth.manager import TokenManager
from kcadmin.auth.scheduler import TimerHandle, TimerService
from kcadmin.models import SSOConfig


# ---------------------------------------------------------------------------
# Clock and timers
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced clock returning seconds."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTimerHandle(TimerHandle):
    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeTimerService(TimerService):
    """Timer service that records timers and fires them on demand."""

    def __init__(self) -> None:
        self.timers: list[FakeTimerHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = FakeTimerHandle(delay, callback)
        self.timers.append(handle)
        return handle

    @property
    def pending(self) -> list[FakeTimerHandle]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    @property
    def last(self) -> FakeTimerHandle:
        return self.timers[-1]

    def fire(self, handle: Optional[FakeTimerHandle] = None) -> None:
        """Fire *handle* (default: the most recent timer), even if cancelled."""
        handle = handle or self.last
        handle.fired = True
        handle.callback()

    def fire_pending(self) -> int:
        """Fire every timer that is neither cancelled nor already fired."""
        due = self.pending
        for handle in due:
            self.fire(handle)
        return len(due)


# ---------------------------------------------------------------------------
# Scripted token endpoint
# ---------------------------------------------------------------------------


ScriptedReply = Union[dict[str, Any], int, Exception, httpx.Response]


class TokenServer:
    """Scripted token endpoint for :class:`httpx.MockTransport`.

    Each request consumes the next queued reply:

    - ``dict`` -- 200 response with the dict as JSON body.
    - ``int`` -- empty JSON error body with that status code.
    - ``Exception`` -- raised from the transport (e.g. ``httpx.ConnectError``).
    - :class:`httpx.Response` -- returned as-is.
    """

    def __init__(self) -> None:
        self.replies: list[ScriptedReply] = []
        self.requests: list[httpx.Request] = []

    def reply(self, *replies: ScriptedReply) -> TokenServer:
        self.replies.extend(replies)
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.replies:
            raise AssertionError(f"Unexpected token request: {request.content!r}")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            return reply
        if isinstance(reply, int):
            return httpx.Response(reply, json={"error": "invalid_grant"})
        return httpx.Response(200, json=reply)

    def form(self, index: int = -1) -> dict[str, str]:
        """Form fields of the request at *index*, single-valued."""
        parsed = parse_qs(self.requests[index].content.decode())
        return {k: v[0] for k, v in parsed.items()}

    def grant_types(self) -> list[str]:
        return [self.form(i)["grant_type"] for i in range(len(self.requests))]

    @property
    def call_count(self) -> int:
        return len(self.requests)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sso_config() -> SSOConfig:
    return SSOConfig(
        client_id="admin-cli",
        client_secret="s3cr3t",
        realm="acme",
        base_url="https://sso.example.com",
        headers={"X-Tenant": "acme"},
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timers() -> FakeTimerService:
    return FakeTimerService()


@pytest.fixture
def token_server() -> TokenServer:
    return TokenServer()


@pytest.fixture
def endpoint(sso_config: SSOConfig, token_server: TokenServer) -> TokenEndpoint:
    client = httpx.Client(transport=httpx.MockTransport(token_server.handler))
    yield TokenEndpoint(sso_config, client=client)
    client.close()


@pytest.fixture
def manager(
    sso_config: SSOConfig,
    endpoint: TokenEndpoint,
    timers: FakeTimerService,
    clock: FakeClock,
) -> TokenManager:
    """A token manager wired to the scripted endpoint, fake timers and fake clock."""
    mgr = TokenManager(sso_config, endpoint=endpoint, timer_service=timers, clock=clock)
    yield mgr
    mgr.shutdown()
