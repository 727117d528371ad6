"""Tests for log masking and logger setup."""

import logging

from common.logging_config import SensitiveDataFilter, setup_logging


def make_record(msg, args=None):
    return logging.LogRecord("transport", logging.INFO, __file__, 1, msg, args, None)


def test_webhook_token_masked():
    record = make_record("Posted to https://chat.example/api/webhooks/123456/abcDEF-token_x")

    SensitiveDataFilter().filter(record)

    assert "abcDEF-token_x" not in record.msg
    assert "/webhooks/123456/***MASKED***" in record.msg


def test_signed_url_params_masked():
    record = make_record("Fetching https://cdn.example/a.part001?ex=65ab&is=65aa&hm=deadbeef&size=3")

    SensitiveDataFilter().filter(record)

    assert "deadbeef" not in record.msg
    assert "ex=***MASKED***" in record.msg
    assert "size=3" in record.msg


def test_authorization_in_args_masked():
    record = make_record("headers: %s", ("Authorization: Bot s3cr3t",))

    SensitiveDataFilter().filter(record)

    assert "s3cr3t" not in record.getMessage()


def test_plain_message_untouched():
    record = make_record("Merged 3 chunks for video.mp4:25:1")

    SensitiveDataFilter().filter(record)

    assert record.msg == "Merged 3 chunks for video.mp4:25:1"


def test_setup_logging_is_idempotent():
    logger = setup_logging("chunkrelay-test-component", log_level="DEBUG")
    again = setup_logging("chunkrelay-test-component", log_level="WARNING")

    assert logger is again
    assert len(logger.handlers) == 1
    assert logger.level == logging.WARNING
    assert not logger.propagate
