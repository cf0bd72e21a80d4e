import logging

import pytest

from issuerelay.infrastructure.monitoring.logger_setup import resolve_log_level, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    httpx_level = logging.getLogger("httpx").level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
    logging.getLogger("httpx").setLevel(httpx_level)


@pytest.mark.parametrize("value, expected", [
    ("debug", logging.DEBUG),
    ("WARNING", logging.WARNING),
    (logging.ERROR, logging.ERROR),
    (None, logging.INFO),
    ("", logging.INFO),
    ("chatty", logging.INFO),
])
def test_resolve_log_level(value, expected):
    assert resolve_log_level(value) == expected


def test_setup_logging_replaces_root_handlers(restore_root_logger):
    setup_logging("warning")

    root = restore_root_logger
    assert root.level == logging.WARNING
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0], logging.StreamHandler)


def test_setup_logging_with_file(restore_root_logger, tmp_path):
    log_file = tmp_path / "relay.log"
    setup_logging("DEBUG", log_file=str(log_file))

    logging.getLogger("issuerelay.test").debug("written to file")
    for handler in restore_root_logger.handlers:
        handler.flush()

    assert "written to file" in log_file.read_text(encoding="utf-8")
    # httpx request logs stay at WARNING even when debugging
    assert logging.getLogger("httpx").level == logging.WARNING


def test_unwritable_log_file_keeps_console_logging(restore_root_logger, tmp_path):
    setup_logging("INFO", log_file=str(tmp_path / "missing-dir" / "relay.log"))
    assert len(restore_root_logger.handlers) == 1
