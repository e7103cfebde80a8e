"""Tests for taskweave.core.run_logging."""

import logging
import re

from taskweave.core.run_logging import generate_run_id, log_event, truncate


class TestRunId:
    def test_format(self):
        assert re.fullmatch(r"\d{8}_\d{6}_[a-z0-9]{3}", generate_run_id())


class TestTruncate:
    def test_short_value_unchanged(self):
        assert truncate(42) == "42"

    def test_long_value_notes_length(self):
        assert truncate("x" * 150, 10) == "xxxxxxxxxx... (150 chars)"


class TestLogEvent:
    """Tests for the uniform log line."""

    def test_fields_and_duration(self, caplog):
        logger = logging.getLogger("taskweave.tests.run_logging")
        with caplog.at_level(logging.DEBUG, logger=logger.name):
            log_event(logger, logging.INFO, "run1", "task_complete", duration_s=1.25, task="a")

        assert caplog.records[0].getMessage() == "[run1] task_complete: task=a (1.2s)"
        assert caplog.records[0].levelno == logging.INFO

    def test_bare_action(self, caplog):
        logger = logging.getLogger("taskweave.tests.run_logging")
        with caplog.at_level(logging.DEBUG, logger=logger.name):
            log_event(logger, logging.WARNING, "run1", "task_cancelled")

        assert caplog.records[0].getMessage() == "[run1] task_cancelled"

    def test_errors_get_longer_limit(self, caplog):
        logger = logging.getLogger("taskweave.tests.run_logging")
        with caplog.at_level(logging.DEBUG, logger=logger.name):
            log_event(logger, logging.ERROR, "r", "x", error="e" * 150, note="n" * 150)

        message = caplog.records[0].getMessage()
        assert f"error={'e' * 150}," in message
        assert "note=" + "n" * 100 + "... (150 chars)" in message

    def test_disabled_level_is_skipped(self, caplog):
        logger = logging.getLogger("taskweave.tests.run_logging")
        with caplog.at_level(logging.WARNING, logger=logger.name):
            log_event(logger, logging.DEBUG, "r", "noise", task="a")

        assert caplog.records == []
