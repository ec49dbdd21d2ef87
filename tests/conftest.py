"""
Shared fixtures and fakes for the SMART Session test suite.
"""

import base64
import json
import os
import tempfile
import threading
import time
from concurrent.futures import Future
from unittest.mock import MagicMock

import pytest

# Keep the profile directory (config.json, log file) out of the real home directory
os.environ.setdefault("SMART_CONFIG_DIR", tempfile.mkdtemp(prefix="smart-session-tests-"))

from smart_session.auth import (  # noqa: E402
    MemoryTokenStore,
    ProtocolEngine,
    RevocationCoordinator,
    SessionLifecycleManager,
    SiteDataClearer,
    UrlOpener,
)
from smart_session.models import SmartConfig  # noqa: E402


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def make_jwt(claims, header=None) -> str:
    """Unsigned compact token carrying the given claims"""
    header = header or {"alg": "none", "typ": "JWT"}
    return ".".join([
        _b64url(json.dumps(header).encode("utf-8")),
        _b64url(json.dumps(claims).encode("utf-8")),
        "signature",
    ])


def wait_for(predicate, timeout=2.0, interval=0.01):
    """Poll until predicate() is truthy; used for fire-and-forget side effects"""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return bool(predicate())


def done(value=None) -> Future:
    future = Future()
    future.set_result(value)
    return future


class FakeProtocolEngine(ProtocolEngine):
    """
    Scriptable protocol engine.

    With auto_result set, begin_authorization reports immediately; otherwise
    it stays awaiting until complete() is called.
    """

    def __init__(self, state=None, auto_result=None, redirect_state=None):
        self.state = state if state is not None else {}
        self.auto_result = auto_result
        self.redirect_state = redirect_state
        self.awaiting = False
        self.callback = None
        self.begin_calls = 0
        self.reset_calls = 0
        self.redirects = []
        self.started = threading.Event()

    def begin_authorization(self, callback):
        self.begin_calls += 1
        self.callback = callback
        if self.auto_result is not None:
            patient, error = self.auto_result
            callback(patient, error)
        else:
            self.awaiting = True
        self.started.set()

    def complete(self, patient=None, error=None):
        self.awaiting = False
        callback = self.callback
        self.callback = None
        callback(patient, error)

    def consume_redirect(self, url):
        self.redirects.append(url)
        if self.redirect_state is not None:
            self.state = self.redirect_state
        self.awaiting = False
        return True

    def is_awaiting_callback(self):
        return self.awaiting

    def reset(self):
        # Real engines drop their auth state along with the pending flow
        self.reset_calls += 1
        self.awaiting = False
        self.state = {}

    def server_state(self):
        return self.state


def fake_engine() -> FakeProtocolEngine:
    """Module-level factory for dotted-path loading"""
    return FakeProtocolEngine()


class EngineFactory:
    """Engine factory that records every engine it creates"""

    def __init__(self, **engine_kwargs):
        self.engine_kwargs = engine_kwargs
        self.engines = []

    def __call__(self):
        engine = FakeProtocolEngine(**self.engine_kwargs)
        self.engines.append(engine)
        return engine

    @property
    def current(self) -> FakeProtocolEngine:
        return self.engines[-1]


class RecordingUrlOpener(UrlOpener):
    def __init__(self):
        self.urls = []
        self._lock = threading.Lock()

    def open(self, url):
        with self._lock:
            self.urls.append(url)


class RecordingSiteDataClearer(SiteDataClearer):
    def __init__(self):
        self.calls = 0
        self.cleared = threading.Event()

    def clear_all(self, completion=None):
        self.calls += 1
        if completion:
            completion()
        self.cleared.set()


@pytest.fixture
def smart_config():
    return SmartConfig(
        base_url="https://fhir.example.org/r4/",
        client_id="demo-client",
        redirect_uri="https://app.example.org/callback",
        reselect_delay=0,
        reset_delay=0,
        teardown_timeout=1.0,
    )


@pytest.fixture
def engine_factory():
    return EngineFactory()


@pytest.fixture
def token_store():
    return MemoryTokenStore()


@pytest.fixture
def url_opener():
    return RecordingUrlOpener()


@pytest.fixture
def site_data_clearer():
    return RecordingSiteDataClearer()


@pytest.fixture
def revocation():
    coordinator = MagicMock(spec=RevocationCoordinator)
    coordinator.revoke_token.return_value = True
    coordinator.do_rp_initiated_logout.return_value = False
    return coordinator


@pytest.fixture
def make_manager(smart_config, engine_factory, token_store, url_opener, site_data_clearer, revocation):
    """Build managers wired to the fakes; every manager is closed at teardown"""
    managers = []

    def factory(**overrides):
        kwargs = {
            "config": smart_config,
            "engine_factory": engine_factory,
            "token_store": token_store,
            "url_opener": url_opener,
            "site_data_clearer": site_data_clearer,
            "discovery": MagicMock(),
            "revocation": revocation,
        }
        kwargs.update(overrides)
        manager = SessionLifecycleManager(**kwargs)
        managers.append(manager)
        return manager

    yield factory

    for manager in managers:
        manager.close()


@pytest.fixture
def manager(make_manager):
    return make_manager()
