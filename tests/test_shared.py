"""
Tests for the shared configuration, error, logging and metrics helpers.
"""

import json
import logging
import logging.handlers

import structlog

from shared.config import get_config
from shared.errors import DirectoryConflict, GemProxyException, InvalidResourceKey, NotFoundLocally, UpstreamUnavailable
from shared.logging import clear_context, configure_logging, get_logger, get_request_id, set_request_id
from shared.metrics import get_metrics_collector


class TestConfig:
    """Test cases for environment-driven configuration."""

    def test_defaults(self, monkeypatch):
        for name in ("ACCESS_ENV", "ACCESS_CACHE_DIR", "ACCESS_SPECS_DIR", "ACCESS_UPSTREAM_URL"):
            monkeypatch.delenv(name, raising=False)

        config = get_config("gem_proxy", 9292)

        assert config.service_name == "gem_proxy"
        assert config.port == 9292
        assert config.upstream_url == "https://rubygems.org"
        assert config.cache_dir == "./public"
        assert config.specs_dir == "./specs"
        assert config.api_prefix == "/api"
        assert config.specs_max_age_seconds == 84600
        assert config.upstream_timeout == 5.0

    def test_environment_prefix(self, monkeypatch):
        monkeypatch.setenv("ACCESS_UPSTREAM_URL", "https://mirror.example.org")
        monkeypatch.setenv("ACCESS_SPECS_MAX_AGE_SECONDS", "60")
        monkeypatch.setenv("ACCESS_LOG_LEVEL", "debug")

        config = get_config("gem_proxy", 9292)

        assert config.upstream_url == "https://mirror.example.org"
        assert config.specs_max_age_seconds == 60
        assert config.log_level == "debug"

    def test_overrides_win_over_environment(self, monkeypatch):
        monkeypatch.setenv("ACCESS_CACHE_DIR", "/from/env")

        config = get_config("gem_proxy", 9292, cache_dir="/from/override")

        assert config.cache_dir == "/from/override"


class TestErrors:
    """Test cases for the error hierarchy."""

    def test_codes(self):
        assert UpstreamUnavailable("/x").code == "UPSTREAM_UNAVAILABLE"
        assert NotFoundLocally("/x").code == "NOT_FOUND_LOCALLY"
        assert InvalidResourceKey("/x").code == "INVALID_RESOURCE_KEY"

    def test_message_and_details(self):
        error = UpstreamUnavailable("/specs.4.8.gz", "timed out", details={"error_type": "ReadTimeout"})

        assert isinstance(error, GemProxyException)
        assert error.target == "/specs.4.8.gz"
        assert str(error) == error.message == "/specs.4.8.gz: timed out"
        assert error.details == {"error_type": "ReadTimeout"}

    def test_details_default_to_empty(self):
        assert DirectoryConflict("/gems/").details == {}


class TestLogging:
    """Test cases for structured logging."""

    def test_request_id_context(self):
        generated = set_request_id()
        assert get_request_id() == generated

        set_request_id("req-42")
        assert get_request_id() == "req-42"

        clear_context()
        assert get_request_id() is None

    def test_rotating_log_file(self, tmp_path):
        log_file = tmp_path / "gem_proxy.log"
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        root.handlers = []
        try:
            configure_logging("gem_proxy", "info", str(log_file))
            set_request_id("req-7")
            get_logger("gem_proxy.test").info("Cached upstream body", target="/gems/rails-7.1.0.gem")
            for handler in root.handlers:
                handler.flush()

            record = json.loads(log_file.read_text().strip().splitlines()[-1])
            assert record["event"] == "Cached upstream body"
            assert record["request_id"] == "req-7"
            assert record["service"] == "gem_proxy"
            assert isinstance(root.handlers[-1], logging.handlers.RotatingFileHandler)
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers = saved_handlers
            root.setLevel(saved_level)
            clear_context()
            structlog.reset_defaults()


class TestMetrics:
    """Test cases for the metrics collector."""

    def test_collectors_are_independent(self):
        first = get_metrics_collector("gem_proxy")
        second = get_metrics_collector("gem_proxy")

        first.increment_counter("cache_hits_total", cache_type="artifact")

        assert first.get_counter_value("cache_hits_total", cache_type="artifact") == 1
        assert second.get_counter_value("cache_hits_total", cache_type="artifact") == 0

    def test_unknown_counter_is_ignored(self):
        metrics = get_metrics_collector("gem_proxy")

        metrics.increment_counter("no_such_metric")

        assert metrics.get_counter_value("no_such_metric") == 0

    def test_http_and_error_metrics(self):
        metrics = get_metrics_collector("gem_proxy")

        metrics.record_http_request("GET", 200, 0.01)
        metrics.record_error("UPSTREAM_UNAVAILABLE")

        assert metrics.get_counter_value("http_requests_total", method="GET", status_code="200") == 1
        assert metrics.get_counter_value("errors_total", error_type="UPSTREAM_UNAVAILABLE", service="gem_proxy") == 1

    def test_gem_proxy_metrics_only_for_gem_proxy(self):
        assert get_metrics_collector("gem_proxy").get_metric("spec_purges_total") is not None
        assert get_metrics_collector("other").get_metric("spec_purges_total") is None
