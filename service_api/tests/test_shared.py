"""
Tests for the shared logging and metrics helpers.
"""

import json
import logging
from datetime import datetime

from shared.logging import configure_logging, get_logger, set_request_id, clear_context
from shared.metrics import MetricsCollector


class TestLogging:
    """Rendered log events."""

    def _last_event(self, caplog, name):
        records = [r for r in caplog.records if r.name == name]
        return json.loads(records[-1].getMessage())

    def test_timestamp_is_iso(self, caplog):
        configure_logging("backend-api")

        with caplog.at_level(logging.INFO):
            get_logger("backend-api.tests").warning("Cache state changed", current="ready")

        event = self._last_event(caplog, "backend-api.tests")
        assert isinstance(event["timestamp"], str)
        datetime.fromisoformat(event["timestamp"].replace("Z", "+00:00"))
        assert event["service"] == "backend-api"
        assert event["current"] == "ready"

    def test_request_id_is_attached(self, caplog):
        configure_logging("backend-api")
        set_request_id("req-1")

        try:
            with caplog.at_level(logging.INFO):
                get_logger("backend-api.tests").warning("Request rejected")
        finally:
            clear_context()

        assert self._last_event(caplog, "backend-api.tests")["request_id"] == "req-1"


class TestMetricsCollector:
    """Per-instance registries and exposition."""

    def test_collectors_do_not_share_series(self):
        first = MetricsCollector("backend-api")
        second = MetricsCollector("backend-api")

        first.record_cache_request("user_data", hit=True)

        assert first.sample_value("cache_requests_total", {"namespace": "user_data", "result": "hit"}) == 1.0
        assert second.sample_value("cache_requests_total", {"namespace": "user_data", "result": "hit"}) is None

    def test_time_operation_observes_duration(self):
        metrics = MetricsCollector("backend-api")

        with metrics.time_operation("cache_operation_duration_seconds", operation="get"):
            pass

        assert metrics.sample_value("cache_operation_duration_seconds_count", {"operation": "get"}) == 1.0

    def test_export(self):
        metrics = MetricsCollector("backend-api")
        metrics.record_token_verification("valid")

        exported = metrics.export().decode()

        assert 'token_verifications_total{status="valid"} 1.0' in exported
