"""
Unit tests for dbcompare.utils.metrics

Tests cover ComparisonMetrics recording and MetricsPublisher exposure and
Pushgateway delivery. Every test uses its own CollectorRegistry.
"""

from unittest.mock import patch

import pytest
from prometheus_client import CollectorRegistry

from dbcompare.utils.metrics import ComparisonMetrics, MetricsPublisher


@pytest.fixture
def registry():
    return CollectorRegistry()


class TestComparisonMetrics:
    """Test ComparisonMetrics class"""

    def test_record_compared_table(self, registry):
        metrics = ComparisonMetrics(registry=registry)

        metrics.record_table("dbo.Orders", "MISMATCH", duration=2.5, mismatch_count=7)

        assert registry.get_sample_value("dbcompare_tables_total", {"status": "mismatch"}) == 1
        assert registry.get_sample_value(
            "dbcompare_table_duration_seconds_count", {"table_name": "dbo.Orders"}
        ) == 1
        assert registry.get_sample_value(
            "dbcompare_table_duration_seconds_sum", {"table_name": "dbo.Orders"}
        ) == 2.5
        assert registry.get_sample_value(
            "dbcompare_table_mismatch_rows", {"table_name": "dbo.Orders"}
        ) == 7

    def test_errors_and_exclusions_skip_duration(self, registry):
        metrics = ComparisonMetrics(registry=registry)

        metrics.record_table("dbo.Broken", "ERROR", duration=1.0)
        metrics.record_table("staging.x", "EXCLUDED", duration=0.0)

        assert registry.get_sample_value("dbcompare_tables_total", {"status": "error"}) == 1
        assert registry.get_sample_value("dbcompare_tables_total", {"status": "excluded"}) == 1
        assert registry.get_sample_value(
            "dbcompare_table_duration_seconds_count", {"table_name": "dbo.Broken"}
        ) is None
        assert registry.get_sample_value(
            "dbcompare_table_mismatch_rows", {"table_name": "dbo.Broken"}
        ) is None

    def test_record_fingerprints(self, registry):
        metrics = ComparisonMetrics(registry=registry)

        metrics.record_fingerprints("old", 100)
        metrics.record_fingerprints("old", 50)

        assert registry.get_sample_value(
            "dbcompare_fingerprints_captured_total", {"side": "old"}
        ) == 150

    def test_record_run(self, registry):
        metrics = ComparisonMetrics(registry=registry)

        metrics.record_run(12)

        assert registry.get_sample_value("dbcompare_run_mismatch_rows") == 12
        assert registry.get_sample_value("dbcompare_last_run_timestamp") > 0


class TestMetricsPublisher:
    """Test MetricsPublisher class"""

    def test_init_defaults(self, registry):
        publisher = MetricsPublisher(registry=registry)

        assert publisher.port == 9091
        assert publisher.registry is registry
        assert publisher.is_started() is False

    @patch("dbcompare.utils.metrics.publisher.start_http_server")
    def test_start(self, mock_start, registry):
        publisher = MetricsPublisher(port=9200, registry=registry)

        publisher.start()
        publisher.start()

        mock_start.assert_called_once_with(9200, registry=registry)
        assert publisher.is_started() is True

    @patch("dbcompare.utils.metrics.publisher.start_http_server")
    def test_start_port_in_use(self, mock_start, registry):
        mock_start.side_effect = OSError("Address already in use")

        with pytest.raises(RuntimeError, match="could not bind port 9091"):
            MetricsPublisher(registry=registry).start()

    @patch("dbcompare.utils.metrics.publisher.push_to_gateway")
    def test_push(self, mock_push, registry):
        MetricsPublisher(registry=registry).push("pushgateway:9091")

        mock_push.assert_called_once_with("pushgateway:9091", job="db-compare", registry=registry)

    @patch("dbcompare.utils.metrics.publisher.push_to_gateway")
    def test_push_failure_is_logged(self, mock_push, registry, caplog):
        mock_push.side_effect = OSError("connection refused")

        MetricsPublisher(registry=registry).push("pushgateway:9091")

        assert "Failed to push metrics" in caplog.text
