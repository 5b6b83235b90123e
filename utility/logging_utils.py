# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-02
# Updated: 2026-10-18
# Description: logging_utils.py
# -----------------------------------------------------------------------------
"""
One colour console handler (plus an optional rotating file) on the ``tldw``
base logger. Class/module loggers are children of it and propagate; the
routers' ``api.*`` loggers get the same handlers. Bearer tokens, JWTs and
Gemini API keys are masked before anything is written.
"""
import logging
import re
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, Optional

import colorlog

import settings

BASE_LOGGER_NAME = "tldw"

# Module-level loggers outside the tldw tree that share its handlers
ATTACHED_LOGGERS = ("api",)

_CONSOLE_FORMAT = (
    "%(log_color)s%(asctime)s [%(levelname)s] %(threadName)s "
    "%(name)s:%(lineno)d:%(reset)s %(message_log_color)s%(message)s"
)
_FILE_FORMAT = "%(asctime)s [%(levelname)s] %(threadName)s %(name)s:%(lineno)d: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_SECRET_PATTERNS = (
    (re.compile(r"(?i)\b(bearer\s+)[A-Za-z0-9._~+/=-]+"), r"\1***"),
    (re.compile(r"\beyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]*"), "***jwt***"),
    (re.compile(r"\bAIza[0-9A-Za-z_-]{20,}"), "***api-key***"),
)

_configured = False
_configure_lock = threading.Lock()


def redact(text: str) -> str:
    for pattern, replacement in _SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class RedactSecretsFilter(logging.Filter):
    """Rewrites the formatted message when it carries a credential."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = redact(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setFormatter(colorlog.ColoredFormatter(
        fmt=_CONSOLE_FORMAT,
        datefmt=_DATE_FORMAT,
        log_colors={
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        },
        secondary_log_colors={
            "message": {
                "INFO": "white",
                "WARNING": "yellow",
                "ERROR": "light_red",
                "CRITICAL": "red",
            }
        },
        style="%",
    ))
    return handler


def _file_handler(path: Path) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt=_FILE_FORMAT, datefmt=_DATE_FORMAT))
    return handler


def configure_logging(
        level: Optional[str] = None,
        *,
        log_file: Optional[str] = None,
        attach: Iterable[str] = ATTACHED_LOGGERS,
) -> logging.Logger:
    """
    Install the handlers once per process; later calls are no-ops.
    ``log_file`` overrides TLDW_LOG_TO_FILE / TLDW_LOG_FILE.
    """
    global _configured
    base = logging.getLogger(BASE_LOGGER_NAME)
    with _configure_lock:
        if _configured:
            return base

        handlers = [_console_handler()]
        if log_file or settings.LOG_TO_FILE:
            handlers.append(_file_handler(Path(log_file or settings.LOG_FILE)))
        redactor = RedactSecretsFilter()
        for handler in handlers:
            handler.addFilter(redactor)

        numeric_level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)
        for name in (BASE_LOGGER_NAME, *attach):
            logger = logging.getLogger(name)
            for handler in handlers:
                logger.addHandler(handler)
            logger.setLevel(numeric_level)
            logger.propagate = False

        _configured = True
    return base


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Generic logger that does not include a class name.
    """
    configure_logging()
    return logging.getLogger(f"{BASE_LOGGER_NAME}.{name}" if name else BASE_LOGGER_NAME)


def get_class_logger(cls: type) -> logging.Logger:
    """
    Returns a logger whose name includes module + class, e.g.:

      tldw.vectorstore.ChromaEmbeddingStore.ChromaEmbeddingStore
      tldw.services.SearchService.SearchService
    """
    module = getattr(cls, "__module__", "unknown_module")
    classname = getattr(cls, "__name__", "UnknownClass")
    return get_logger(f"{module}.{classname}")
