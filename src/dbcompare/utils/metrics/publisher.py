"""
Metrics publishing for Prometheus.

A long-running process (``db-compare schedule``) exposes metrics over
HTTP; a one-shot ``db-compare run`` can push them to a Pushgateway before
it exits.
"""

import logging

from prometheus_client import REGISTRY, CollectorRegistry, push_to_gateway, start_http_server

logger = logging.getLogger(__name__)


class MetricsPublisher:
    """
    Publishes a registry on ``/metrics`` or to a Pushgateway
    """

    def __init__(
        self,
        port: int = 9091,
        registry: CollectorRegistry | None = None,
    ):
        """
        Initialize metrics publisher

        Args:
            port: Port to expose metrics on (default: 9091)
            registry: Custom Prometheus registry (default: global REGISTRY)
        """
        self.port = port
        self.registry = registry or REGISTRY
        self._server_started = False

    def start(self) -> None:
        """Start the metrics HTTP server"""
        if self._server_started:
            logger.warning(f"Metrics server already running on port {self.port}")
            return

        try:
            start_http_server(self.port, registry=self.registry)
        except OSError as e:
            raise RuntimeError(f"Metrics server could not bind port {self.port}: {e}") from e

        self._server_started = True
        logger.info(f"Metrics server started on port {self.port}")

    def is_started(self) -> bool:
        """Check if metrics server is running"""
        return self._server_started

    def push(self, gateway: str, job: str = "db-compare") -> None:
        """
        Push the registry to a Prometheus Pushgateway

        Failures are logged, not raised: a comparison result must not be
        lost because the gateway is down.

        Args:
            gateway: Pushgateway address (host:port)
            job: Job label
        """
        try:
            push_to_gateway(gateway, job=job, registry=self.registry)
            logger.info(f"Pushed metrics to {gateway} (job={job})")
        except OSError as e:
            logger.warning(f"Failed to push metrics to {gateway}: {e}")
