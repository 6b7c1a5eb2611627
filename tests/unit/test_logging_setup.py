# tests/unit/test_logging_setup.py
import logging

import pytest

from pipesplit.core import logging_setup
from pipesplit.core.logging_setup import COORD_LEVEL, LevelFilter, get_logger
from pipesplit.driver import Driver


@pytest.fixture
def fresh_root(monkeypatch, tmp_path):
    """Root logger as a host application would have it, before pipesplit configures anything."""
    host_handler = logging.NullHandler()
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [host_handler])
    monkeypatch.setattr(logging_setup, "_root_configured", False)
    monkeypatch.setenv("PIPESPLIT_LOG_DIR", str(tmp_path))
    return host_handler


def test_get_logger_leaves_host_logging_alone(fresh_root, tmp_path):
    logger = get_logger("pipesplit.somewhere")
    logger.info("library use")

    assert logging.getLogger().handlers == [fresh_root]
    assert not logging_setup._root_configured
    assert not (tmp_path / logging_setup.LOG_FILE_NAME).exists()


def test_driver_configures_logging(fresh_root, tmp_path):
    Driver()

    assert logging_setup._root_configured
    assert (tmp_path / logging_setup.LOG_FILE_NAME).exists()
    assert fresh_root not in logging.getLogger().handlers


def test_level_filter_skips_intermediate_levels():
    level_filter = LevelFilter(["ERROR", "COORD"])

    def record(level):
        return logging.LogRecord("x", level, __file__, 1, "msg", None, None)

    assert level_filter.filter(record(logging.ERROR))
    assert level_filter.filter(record(COORD_LEVEL))
    assert not level_filter.filter(record(logging.WARNING))
    assert not level_filter.filter(record(logging.INFO))
