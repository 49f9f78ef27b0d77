"""Tests for the shared logging setup."""

import logging

from qms.infrastructure import logging_config


def test_configure_twice_installs_one_handler():
    logging_config.configure_logging("debug")
    logging_config.configure_logging("warning")

    root = logging.getLogger()
    assert root.handlers.count(logging_config._handler) == 1
    assert root.level == logging.WARNING
