from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional, Union

from pythonjsonlogger import jsonlogger

# Structured keys the plot, panels and sources pass through ``extra=``.
CONTEXT_FIELDS = ("plot_id", "panel_id", "layer_id", "generation", "namespace", "url")


class LocusJsonFormatter(jsonlogger.JsonFormatter):
    """JSON records with the browser context grouped under ``context``."""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        context = {key: log_record.pop(key) for key in CONTEXT_FIELDS if key in log_record}
        if context:
            log_record["context"] = context


class ContextFormatter(logging.Formatter):
    """Plain text lines suffixed with whichever context keys the record carries."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        pairs = [f"{key}={getattr(record, key)}" for key in CONTEXT_FIELDS if hasattr(record, key)]
        if pairs:
            line = f"{line} [{' '.join(pairs)}]"
        return line


def configure_logging(
        level: Union[int, str, None] = None,
        force_format: Optional[str] = None,
) -> None:
    """
    Configure the root logger for the browser.

    Format selection:
        1) force_format argument ("json" or "plain") if provided
        2) env var LOCUS_BROWSER_LOG_FORMAT
        3) default = "json", for a served Dash app

    Level selection:
        1) level argument (int or level name) if provided
        2) env var LOCUS_BROWSER_LOG_LEVEL
        3) default = INFO
    """

    if force_format is not None:
        format_mode = force_format.lower()
    else:
        format_mode = os.getenv("LOCUS_BROWSER_LOG_FORMAT", "json").lower()

    if level is None:
        level = os.getenv("LOCUS_BROWSER_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    handler = logging.StreamHandler()
    if format_mode == "plain":
        handler.setFormatter(ContextFormatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
    else:
        handler.setFormatter(LocusJsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s"))

    # Replace any existing handlers to avoid duplicate logs
    root.handlers.clear()
    root.addHandler(handler)
