"""
Tests for contract call metrics.
"""

import pytest
from prometheus_client import REGISTRY

from daoledger.core import metrics
from daoledger.core.config import Config
from daoledger.core.exceptions import InsufficientBalanceError

from daoledger_tests.helpers import ALICE, BOB, OWNER, call


def _calls(operation, outcome):
    value = REGISTRY.get_sample_value(
        "daoledger_contract_calls_total",
        {"operation": operation, "outcome": outcome},
    )
    return value or 0.0


def _events(name):
    return REGISTRY.get_sample_value("daoledger_contract_events_total", {"event": name}) or 0.0


@pytest.fixture(autouse=True)
def metrics_enabled(monkeypatch):
    monkeypatch.setattr(Config, "METRICS_ENABLED", True)


class TestContractMetrics:
    """Call outcomes and notifications are counted after each call."""

    def test_successful_call_counted(self, funded_contract):
        before_calls = _calls("transfer", "ok")
        before_events = _events("BalanceTransfer")

        funded_contract.transfer(call(ALICE), BOB, 1)

        assert _calls("transfer", "ok") == before_calls + 1
        assert _events("BalanceTransfer") == before_events + 1

    def test_rejection_counted_by_code(self, funded_contract):
        before = _calls("transfer", "InsufficientBalance")
        before_events = _events("BalanceTransfer")

        with pytest.raises(InsufficientBalanceError):
            funded_contract.transfer(call(BOB), ALICE, 100)

        assert _calls("transfer", "InsufficientBalance") == before + 1
        assert _events("BalanceTransfer") == before_events

    def test_duration_observed(self, contract):
        before = REGISTRY.get_sample_value(
            "daoledger_contract_call_duration_seconds_count", {"operation": "mint"}
        ) or 0.0

        contract.mint(call(OWNER), ALICE, 1)

        after = REGISTRY.get_sample_value(
            "daoledger_contract_call_duration_seconds_count", {"operation": "mint"}
        )
        assert after == before + 1

    def test_disabled_metrics_record_nothing(self, monkeypatch):
        monkeypatch.setattr(Config, "METRICS_ENABLED", False)
        before = _calls("vote", "ok")

        metrics.record_call("vote", "ok", 0.01)
        metrics.record_event("VoteMade")

        assert _calls("vote", "ok") == before
