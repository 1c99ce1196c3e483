"""Logging setup for the SkillMatch service.

One Loguru logger for the whole process. Records go to stdout, and to
Datadog Logs when ``DD_API_KEY`` is configured. Standard-library ``logging``
records (httpx, FastAPI, Uvicorn) are intercepted and re-emitted through
Loguru so every line shares the same format and structured ``extra`` fields.
"""

from __future__ import annotations

import inspect
import logging
import os
import sys
from logging import StreamHandler

import uvicorn
from datadog_api_client.v2 import ApiClient, Configuration
from datadog_api_client.v2.api.logs_api import LogsApi
from datadog_api_client.v2.model.content_encoding import ContentEncoding
from datadog_api_client.v2.model.http_log import HTTPLog
from datadog_api_client.v2.model.http_log_item import HTTPLogItem
from loguru import logger as loguru_logger

from app.core.config import settings


STDOUT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS Z}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level> | <level>{extra}</level>"
)

# Chatty third-party loggers kept at INFO even when the service runs at DEBUG
QUIET_LOGGERS = ("httpx", "httpcore", "openai")


def _caller_depth() -> int:
    frame, depth = inspect.currentframe(), 0
    while frame:
        filename = frame.f_code.co_filename
        if depth > 0 and filename != logging.__file__ and "importlib._bootstrap" not in filename:
            break
        frame = frame.f_back
        depth += 1
    return depth


class InterceptHandler(logging.Handler):
    """Re-emits standard-library records through Loguru at the caller's frame."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        loguru_logger.opt(depth=_caller_depth(), exception=record.exc_info).log(
            level, record.getMessage()
        )


class DatadogHandler(StreamHandler):
    """Ships records to Datadog Logs. ``search_id`` and friends become log attributes."""

    def __init__(self) -> None:
        super().__init__()
        configuration = Configuration()
        configuration.api_key["apiKeyAuth"] = settings.datadog_api_key
        self.api_instance = LogsApi(ApiClient(configuration))
        self.hostname = os.getenv("HOSTNAME", "unknown")

    def emit(self, record: logging.LogRecord) -> None:
        extras = {key: str(value) for key, value in (getattr(record, "extra", None) or {}).items()}

        item = HTTPLogItem(
            status=record.levelname,
            ddsource="loguru",
            ddtags=f"level:{record.levelname},env:{settings.environment}",
            message=self.format(record),
            service=settings.service_name,
            hostname=self.hostname,
            **extras,
        )
        try:
            self.api_instance.submit_log(content_encoding=ContentEncoding.DEFLATE, body=HTTPLog([item]))
        except Exception:  # noqa: BLE001
            self.handleError(record)


def init_logging():
    """Configure Loguru once and return it."""
    if getattr(init_logging, "_configured", False):
        return loguru_logger

    loguru_logger.remove()
    loguru_logger.add(sys.stdout, format=STDOUT_FORMAT, level=settings.log_level)

    if settings.datadog_api_key:
        loguru_logger.add(DatadogHandler(), level=settings.datadog_log_level)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO)

    # Uvicorn would otherwise install its own handlers on startup
    uvicorn.config.LOGGING_CONFIG = None
    loguru_logger.enable("uvicorn")

    init_logging._configured = True  # type: ignore[attr-defined]
    return loguru_logger


logger = init_logging()
