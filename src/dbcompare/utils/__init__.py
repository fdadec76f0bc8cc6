"""
Utility modules for db-compare

Provides:
- logging: diagnostic logging setup and the run-log sink
- metrics: Prometheus metrics for comparison runs
- tracing: OpenTelemetry spans
- vault_client: HashiCorp Vault lookup of connection strings
"""

__all__ = ["logging", "metrics", "tracing", "vault_client"]
