"""
Tests for structured JSON logging setup.
"""

import json
import logging

import pytest

from daoledger.core.logging_config import CustomJsonFormatter, setup_logging


@pytest.fixture
def logger_name(request):
    name = f"daoledger.test.{request.node.name}"
    yield name
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


class TestCustomJsonFormatter:
    """Tests for CustomJsonFormatter."""

    def test_adds_context_fields(self):
        formatter = CustomJsonFormatter(environment="test", service_name="daoledger")
        record = logging.LogRecord(
            name="daoledger.contracts.governance",
            level=logging.INFO,
            pathname=__file__,
            lineno=12,
            msg="Vote cast",
            args=(),
            exc_info=None,
        )
        record.dao_id = 1

        payload = json.loads(formatter.format(record))

        assert payload["message"] == "Vote cast"
        assert payload["environment"] == "test"
        assert payload["service"] == "daoledger"
        assert payload["level"] == "info"
        assert payload["dao_id"] == 1
        assert payload["source"]["line"] == 12
        assert "timestamp" in payload


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_writes_json_to_file(self, tmp_path, logger_name):
        log_file = tmp_path / "logs" / "daoledger.log"
        logger = setup_logging(
            name=logger_name,
            log_file=str(log_file),
            level="DEBUG",
            environment="test",
            enable_console=False,
        )

        logger.info("DAO created", extra={"event": "governance.dao_created", "dao_id": 3})
        for handler in logger.handlers:
            handler.flush()

        line = log_file.read_text().strip().splitlines()[-1]
        payload = json.loads(line)
        assert payload["message"] == "DAO created"
        assert payload["event"] == "governance.dao_created"
        assert payload["dao_id"] == 3
        assert payload["environment"] == "test"

    def test_repeated_setup_does_not_duplicate_handlers(self, logger_name):
        setup_logging(name=logger_name, enable_console=True)
        logger = setup_logging(name=logger_name, enable_console=True)
        assert len(logger.handlers) == 1

    def test_null_handler_when_outputs_disabled(self, logger_name):
        logger = setup_logging(name=logger_name, enable_console=False)
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.NullHandler)

    def test_level_applied(self, logger_name):
        logger = setup_logging(name=logger_name, level="warning", enable_console=False)
        assert logger.level == logging.WARNING
