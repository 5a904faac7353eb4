import logging
import os
from datetime import datetime, timezone
from logging.config import dictConfig

from pythonjsonlogger.json import JsonFormatter

import kubeget.constants as const


class JsonLogFormatter(JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        if "timestamp" not in log_record:
            log_record["timestamp"] = str(
                datetime.fromtimestamp(record.created, timezone.utc)
            )
        log_record["level"] = record.levelname


def configure_logging(level: str = None):
    """
    Send all logs as JSON lines to stdout. The level defaults to the `LOG_LEVEL`
    environment variable, or INFO. Python warnings, like certificates that couldn't
    be loaded, are logged as well.
    """
    level = level or os.environ.get(const.LOG_LEVEL, "INFO")

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {"class": "kubeget.logging.JsonLogFormatter"},
            },
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout",
                    "formatter": "json",
                },
            },
            "root": {"level": level, "handlers": ["stdout"]},
        }
    )
    logging.captureWarnings(True)
