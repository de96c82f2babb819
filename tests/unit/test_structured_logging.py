"""Unit tests for structured logging functionality."""

import json
import logging

import pytest

from storefront_pricing.shared.logging_config import configure_structured_logging
from storefront_pricing.shared.logging_utils import get_structured_logger


class TestStructuredLogger:
    def test_generate_correlation_id(self):
        logger = get_structured_logger("test")
        corr_id = logger.generate_correlation_id("SYNC")

        assert corr_id.startswith("SYNC_")
        assert len(corr_id) == 17  # SYNC_ + 12 hex chars

    def test_set_and_clear_correlation_id(self):
        logger = get_structured_logger("test")
        assert logger._correlation_id is None

        logger.set_correlation_id("RUN_123")
        assert logger._correlation_id == "RUN_123"

        logger.clear_correlation_id()
        assert logger._correlation_id is None

    def test_structured_log_format(self, caplog):
        logger = get_structured_logger("test.module")
        logger.set_correlation_id("SYNC_abc")

        with caplog.at_level(logging.INFO):
            logger.info("Price sync completed", updated=3, failed=0)

        assert len(caplog.records) == 1
        log_data = json.loads(caplog.records[0].message)
        assert log_data["level"] == "INFO"
        assert log_data["message"] == "Price sync completed"
        assert log_data["correlation_id"] == "SYNC_abc"
        assert log_data["context"] == {"updated": 3, "failed": 0}

    def test_no_context_without_kwargs(self, caplog):
        logger = get_structured_logger("test.plain")

        with caplog.at_level(logging.WARNING):
            logger.warning("Feed empty")

        log_data = json.loads(caplog.records[0].message)
        assert log_data["correlation_id"] == "none"
        assert "context" not in log_data

    def test_non_json_values_are_stringified(self, caplog):
        from decimal import Decimal

        logger = get_structured_logger("test.decimal")
        with caplog.at_level(logging.INFO):
            logger.info("rate", exchange_rate=Decimal("1200.5"))

        assert json.loads(caplog.records[0].message)["context"]["exchange_rate"] == "1200.5"

    def test_run_tags_entries_with_operation(self, caplog):
        logger = get_structured_logger("test.run")

        with caplog.at_level(logging.INFO):
            with logger.run("recalculate", prefix="RECALC") as run_id:
                logger.info("Recalculation completed", changed=2)

        log_data = json.loads(caplog.records[0].message)
        assert run_id.startswith("RECALC_")
        assert log_data["correlation_id"] == run_id
        assert log_data["operation"] == "recalculate"
        assert log_data["elapsed_ms"] >= 0
        assert logger._correlation_id is None

    def test_run_logs_failure_and_reraises(self, caplog):
        logger = get_structured_logger("test.run.fail")

        with caplog.at_level(logging.ERROR):
            with pytest.raises(ValueError):
                with logger.run("price_sync", prefix="SYNC"):
                    raise ValueError("feed down")

        log_data = json.loads(caplog.records[0].message)
        assert log_data["message"] == "price_sync failed"
        assert log_data["context"] == {"error": "feed down", "error_type": "ValueError"}
        assert logger.elapsed_ms() is None


def test_configure_quiets_third_party_loggers():
    configure_structured_logging(level="DEBUG")
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
