"""
Shared fixtures for gem proxy unit tests.
"""

import time
from typing import Optional

import pytest

from shared.metrics import get_metrics_collector
from shared.test_helpers import FakeRegistry, GemDataFactory, build_test_config
from service_gem_proxy.app.adapters.rubygems_client import RubygemsClient
from service_gem_proxy.app.caching.classifier import PathClassifier
from service_gem_proxy.app.caching.policy import CachePolicy
from service_gem_proxy.app.caching.store import FileStore
from service_gem_proxy.app.domain.fetch_orchestrator import FetchOrchestrator
from service_gem_proxy.app.domain.views import ViewRenderer


class ManualClock:
    """Clock the tests can move forward."""

    def __init__(self, now: Optional[float] = None):
        self.now = time.time() if now is None else now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def registry():
    """Fake upstream registry preloaded with a couple of gems."""
    return FakeRegistry(GemDataFactory.registry_files())


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def service_config(tmp_path):
    return build_test_config(tmp_path)


@pytest.fixture
def store(tmp_path):
    return FileStore(tmp_path / "public", tmp_path / "specs")


@pytest.fixture
def metrics():
    return get_metrics_collector("gem_proxy")


@pytest.fixture
def upstream(registry):
    return RubygemsClient("https://rubygems.org", transport=registry.transport)


@pytest.fixture
def orchestrator(store, upstream, metrics, clock):
    return FetchOrchestrator(
        PathClassifier(),
        CachePolicy(),
        store,
        upstream,
        ViewRenderer(),
        metrics,
        clock=clock,
    )
