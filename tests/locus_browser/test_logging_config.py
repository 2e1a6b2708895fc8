import json
import logging

import pytest
from pythonjsonlogger import jsonlogger

from locus_browser.logging_config import configure_logging


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_plain_format(root_logger):
    configure_logging(logging.DEBUG, force_format="plain")

    (handler,) = root_logger.handlers
    assert root_logger.level == logging.DEBUG
    assert not isinstance(handler.formatter, jsonlogger.JsonFormatter)
    assert "%(levelname)s" in handler.formatter._fmt


def test_json_is_default(root_logger, monkeypatch):
    monkeypatch.delenv("LOCUS_BROWSER_LOG_FORMAT", raising=False)
    monkeypatch.delenv("LOCUS_BROWSER_LOG_LEVEL", raising=False)

    configure_logging()

    (handler,) = root_logger.handlers
    assert isinstance(handler.formatter, jsonlogger.JsonFormatter)


def test_env_var_selects_format(root_logger, monkeypatch):
    monkeypatch.setenv("LOCUS_BROWSER_LOG_FORMAT", "PLAIN")

    configure_logging()

    (handler,) = root_logger.handlers
    assert not isinstance(handler.formatter, jsonlogger.JsonFormatter)


def test_repeated_calls_do_not_stack_handlers(root_logger):
    configure_logging(force_format="plain")
    configure_logging(force_format="plain")

    assert len(root_logger.handlers) == 1


def _record(**extra):
    record = logging.LogRecord("locus_browser.plot.plot", logging.INFO, __file__, 1, "Applying state", None, None)
    record.__dict__.update(extra)
    return record


def test_json_groups_browser_context(root_logger):
    configure_logging(force_format="json")
    (handler,) = root_logger.handlers

    payload = json.loads(handler.format(_record(plot_id="gwas", panel_id="assoc", region="10:1-2")))

    assert payload["message"] == "Applying state"
    assert payload["context"] == {"plot_id": "gwas", "panel_id": "assoc"}
    assert payload["region"] == "10:1-2"
    assert "plot_id" not in payload


def test_plain_appends_browser_context(root_logger):
    configure_logging(force_format="plain")
    (handler,) = root_logger.handlers

    line = handler.format(_record(plot_id="gwas", generation=3))

    assert line.endswith("Applying state [plot_id=gwas generation=3]")
    assert handler.format(_record()).endswith("Applying state")


@pytest.mark.parametrize("level, expected", [("debug", logging.DEBUG), ("nonsense", logging.INFO)])
def test_level_by_name(root_logger, level, expected):
    configure_logging(level, force_format="plain")

    assert root_logger.level == expected


def test_env_var_selects_level(root_logger, monkeypatch):
    monkeypatch.setenv("LOCUS_BROWSER_LOG_LEVEL", "WARNING")

    configure_logging(force_format="plain")

    assert root_logger.level == logging.WARNING
