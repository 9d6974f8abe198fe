"""Tests for the shared logging setup."""

import logging

import pytest

from utils import logger as billing_logger
from utils.logger import BRIEF_FORMAT, DEBUG_FORMAT, NAMESPACE, get_logger, parse_level, set_log_level


@pytest.fixture
def restore_level():
    namespace = logging.getLogger(NAMESPACE)
    level = namespace.level
    yield namespace
    set_log_level(level)


def test_parse_level() -> None:
    assert parse_level(logging.ERROR) == logging.ERROR
    assert parse_level(" debug ") == logging.DEBUG
    assert parse_level("WARN") == logging.WARNING
    with pytest.raises(ValueError, match="loud"):
        parse_level("loud")


def test_loggers_share_one_namespace() -> None:
    assert get_logger("services.invoice_service").name == "billing_docs.services.invoice_service"
    assert get_logger("billing_docs.cli").name == "billing_docs.cli"
    assert logging.getLogger(NAMESPACE).propagate is False


def test_set_log_level_switches_format(restore_level) -> None:
    set_log_level("DEBUG")
    assert restore_level.level == logging.DEBUG
    assert billing_logger._handler.formatter._fmt == DEBUG_FORMAT

    set_log_level(logging.WARNING)
    assert restore_level.level == logging.WARNING
    assert billing_logger._handler.formatter._fmt == BRIEF_FORMAT
