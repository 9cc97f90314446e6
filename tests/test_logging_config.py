"""Tests for logging setup and credential masking."""

import logging

import pytest

from common.logging_config import SensitiveDataFilter, get_logger, setup_logging


def _record(msg, args=None):
    return logging.LogRecord("drive.test", logging.INFO, __file__, 1, msg, args, None)


@pytest.fixture
def isolated_loggers():
    """Restore package logger state touched by setup_logging."""
    names = ("test-component", "drive", "blobstore", "common")
    saved = {
        name: (list(logging.getLogger(name).handlers), logging.getLogger(name).level, logging.getLogger(name).propagate)
        for name in names
    }
    yield
    for name, (handlers, level, propagate) in saved.items():
        logger = logging.getLogger(name)
        logger.handlers = handlers
        logger.setLevel(level)
        logger.propagate = propagate


class TestSensitiveDataFilter:
    @pytest.mark.parametrize(
        "message, secret",
        [
            ("connecting with token=abc123", "abc123"),
            ("retrying with Bearer eyJhbGciOi", "eyJhbGciOi"),
            ("authorization=Basic", "Basic"),
            ("api_key: sk-live-42", "sk-live-42"),
            ('{"password": "hunter2"}', "hunter2"),
        ],
    )
    def test_secrets_masked(self, message, secret):
        record = _record(message)

        assert SensitiveDataFilter().filter(record)
        assert secret not in record.msg
        assert "***MASKED***" in record.msg

    def test_args_masked(self):
        record = _record("backend said %s", ("secret=topsecret",))

        SensitiveDataFilter().filter(record)

        assert record.args == ("secret=***MASKED***",)

    def test_plain_message_untouched(self):
        record = _record("Merged 3 chunks into file 7")
        SensitiveDataFilter().filter(record)
        assert record.msg == "Merged 3 chunks into file 7"


class TestSetupLogging:
    def test_component_logger_configured(self, isolated_loggers):
        logger = setup_logging("test-component", "DEBUG")

        assert logger.name == "test-component"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert any(isinstance(f, SensitiveDataFilter) for f in logger.handlers[0].filters)
        assert logging.getLogger("drive").handlers

    def test_unknown_level_falls_back_to_info(self, isolated_loggers):
        logger = setup_logging("test-component", "CHATTY")
        assert logger.level == logging.INFO

    def test_get_logger(self):
        assert get_logger("drive.services").name == "drive.services"
