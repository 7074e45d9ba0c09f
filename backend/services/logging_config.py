"""
Logging setup shared by the admin scripts.

Plain text by default; JSON lines (python-json-logger) when LOG_JSON is set,
with timestamp, level, logger name and service fields on every record.
"""

from __future__ import annotations

import logging
import sys
from typing import Union

from pythonjsonlogger.json import JsonFormatter

SERVICE_NAME = "obra-admin-scripts"


class ServiceJsonFormatter(JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["name"] = record.name
        log_record["service"] = SERVICE_NAME
        if "message" not in log_record:
            log_record["message"] = record.getMessage()


def setup_logging(level: Union[int, str] = logging.INFO, format_as_json: bool = False) -> None:
    """
    Configure the root logger with a single stdout handler.

    Args:
        level: Logging level name or number
        format_as_json: Emit JSON lines instead of plain text
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if format_as_json:
        formatter: logging.Formatter = ServiceJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
