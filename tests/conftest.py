"""Shared pytest fixtures for relay tests."""
import sys
sys.dont_write_bytecode = True

import pytest  # noqa: E402

from .helpers import ADMIN_UID, FakeClock, FakeMessenger, RecordingStore  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_webhook_singletons():
    """Reset the webhook module's lazily built singletons between tests.

    Settings, store and relay core are module-level globals built on first
    use. Without this reset, a relay wired with one test's fakes would leak
    into the next test.
    """
    import anonrelay.api.routes.webhooks_telegram as webhook_module

    def _reset():
        webhook_module._settings = None
        webhook_module._store = None
        webhook_module._relay = None
        webhook_module._tasks_client.clear()

    _reset()
    yield
    _reset()


@pytest.fixture
def relay_env(monkeypatch):
    """Set required relay environment variables."""
    monkeypatch.setenv("BOT_TOKEN", "123456:test-token")
    monkeypatch.setenv("BOT_SECRET", "test-webhook-secret")
    monkeypatch.setenv("ADMIN_UID", str(ADMIN_UID))
    monkeypatch.setenv("STORE_BACKEND", "memory")
    monkeypatch.delenv("WEBHOOK_PATH", raising=False)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return RecordingStore(clock)


@pytest.fixture
def messenger():
    return FakeMessenger()
