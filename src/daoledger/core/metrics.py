"""
Contract call instrumentation.

Prometheus metrics tracking how many calls each operation receives, how they
end, how long they take and which notifications they emit. The helpers are
safe to call from the commit path and do nothing when metrics are disabled.
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

from daoledger.core.config import Config

contract_calls_total = Counter(
    "daoledger_contract_calls_total",
    "Total contract calls by operation and outcome",
    ["operation", "outcome"],
)

contract_call_duration_seconds = Histogram(
    "daoledger_contract_call_duration_seconds",
    "Wall-clock duration of contract calls",
    ["operation"],
)

contract_events_total = Counter(
    "daoledger_contract_events_total",
    "Total notifications delivered after commit",
    ["event"],
)


def record_call(operation: str, outcome: str, duration: float) -> None:
    """Count one finished call; outcome is "ok" or an error code."""
    if not Config.METRICS_ENABLED:
        return

    contract_calls_total.labels(operation=operation, outcome=outcome).inc()
    contract_call_duration_seconds.labels(operation=operation).observe(duration)


def record_event(event_name: str) -> None:
    if not Config.METRICS_ENABLED:
        return

    contract_events_total.labels(event=event_name).inc()
