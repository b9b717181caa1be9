"""Tests for token event listeners and the listener registry."""

from __future__ import annotations

import logging
import threading

from kcadmin.auth.listeners import ListenerRegistry, SafeEventListener, TokenEventListener
from kcadmin.auth.token import Token


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class RecordingListener(TokenEventListener):
    def __init__(self, name: str = "recorder") -> None:
        self._name = name
        self.issued: list[Token] = []
        self.refreshed: list[Token] = []

    @property
    def unique_name(self) -> str:
        return self._name

    def on_token_issued(self, token: Token) -> None:
        self.issued.append(token)

    def on_token_refreshed(self, token: Token) -> None:
        self.refreshed.append(token)


class FailingListener(TokenEventListener):
    def __init__(self, name: str = "failing") -> None:
        self._name = name
        self.calls = 0

    @property
    def unique_name(self) -> str:
        return self._name

    def on_token_issued(self, token: Token) -> None:
        self.calls += 1
        raise RuntimeError("issued boom")

    def on_token_refreshed(self, token: Token) -> None:
        self.calls += 1
        raise ValueError("refreshed boom")


TOKEN = Token(access_token="A1", refresh_token="R1", expires_at=60.0)


# ---------------------------------------------------------------------------
# SafeEventListener
# ---------------------------------------------------------------------------


class TestSafeEventListener:
    def test_delegates_calls(self) -> None:
        delegate = RecordingListener()
        safe = SafeEventListener(delegate)
        safe.on_token_issued(TOKEN)
        safe.on_token_refreshed(TOKEN)
        assert delegate.issued == [TOKEN]
        assert delegate.refreshed == [TOKEN]
        assert safe.unique_name == "recorder"
        assert safe.delegate is delegate

    def test_swallows_and_logs_delegate_errors(self, caplog) -> None:
        delegate = FailingListener()
        safe = SafeEventListener(delegate)
        with caplog.at_level(logging.WARNING, logger="kcadmin.auth.listeners"):
            safe.on_token_issued(TOKEN)
            safe.on_token_refreshed(TOKEN)
        assert delegate.calls == 2
        assert "issued boom" in caplog.text
        assert "refreshed boom" in caplog.text


# ---------------------------------------------------------------------------
# ListenerRegistry
# ---------------------------------------------------------------------------


class TestListenerRegistry:
    def test_register_and_notify(self) -> None:
        registry = ListenerRegistry()
        first = RecordingListener("first")
        second = RecordingListener("second")
        registry.register(first)
        registry.register(second)

        registry.notify_issued(TOKEN)
        registry.notify_refreshed(TOKEN)

        assert len(registry) == 2
        assert registry.names() == ["first", "second"]
        assert first.issued == [TOKEN] and second.issued == [TOKEN]
        assert first.refreshed == [TOKEN] and second.refreshed == [TOKEN]

    def test_same_name_replaces_previous_listener(self) -> None:
        registry = ListenerRegistry()
        old = RecordingListener("dup")
        new = RecordingListener("dup")
        registry.register(old)
        registry.register(new)

        registry.notify_issued(TOKEN)

        assert len(registry) == 1
        assert old.issued == []
        assert new.issued == [TOKEN]

    def test_failing_listener_does_not_block_others(self) -> None:
        registry = ListenerRegistry()
        failing = FailingListener("a-failing")
        healthy = RecordingListener("b-healthy")
        registry.register(failing)
        registry.register(healthy)

        registry.notify_issued(TOKEN)
        registry.notify_refreshed(TOKEN)

        assert failing.calls == 2
        assert healthy.issued == [TOKEN]
        assert healthy.refreshed == [TOKEN]

    def test_notify_with_no_listeners(self) -> None:
        registry = ListenerRegistry()
        registry.notify_issued(TOKEN)
        registry.notify_refreshed(TOKEN)
        assert len(registry) == 0

    def test_listener_may_register_during_dispatch(self) -> None:
        registry = ListenerRegistry()
        late = RecordingListener("late")

        class Registering(RecordingListener):
            def on_token_issued(self, token: Token) -> None:
                super().on_token_issued(token)
                registry.register(late)

        registry.register(Registering("registering"))
        registry.notify_issued(TOKEN)

        assert "late" in registry.names()
        # Registered mid-dispatch, so it only sees later events.
        assert late.issued == []
        registry.notify_issued(TOKEN)
        assert late.issued == [TOKEN]

    def test_concurrent_register_and_notify(self) -> None:
        registry = ListenerRegistry()
        errors: list[BaseException] = []

        def register_many(prefix: str) -> None:
            try:
                for i in range(200):
                    registry.register(RecordingListener(f"{prefix}-{i}"))
            except BaseException as exc:  # pragma: no cover - surfaced below
                errors.append(exc)

        def notify_many() -> None:
            try:
                for _ in range(200):
                    registry.notify_issued(TOKEN)
            except BaseException as exc:  # pragma: no cover - surfaced below
                errors.append(exc)

        threads = [
            threading.Thread(target=register_many, args=("x",)),
            threading.Thread(target=register_many, args=("y",)),
            threading.Thread(target=notify_many),
            threading.Thread(target=notify_many),
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(registry) == 400
