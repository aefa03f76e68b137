import json
import logging
import os
import sys
from collections.abc import Iterable

DEFAULT_LOG_FILE = "/tmp/github-cms-mcp.log"
REDACTED = "[REDACTED]"

_TEXT_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """One JSON object per record: ts, level, logger, msg and optional exc."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class RedactingFilter(logging.Filter):
    """Replaces known secret values in log records with ``[REDACTED]``.

    The message is rendered once with its args, scrubbed, and stored back
    so handlers never see the raw value. Exception text is scrubbed too.
    """

    def __init__(self, secrets: Iterable[str] = ()) -> None:
        super().__init__()
        self._secrets = [s for s in secrets if s]

    def redact(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, REDACTED)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True

        message = record.getMessage()
        scrubbed = self.redact(message)
        if scrubbed != message:
            record.msg = scrubbed
            record.args = None

        if record.exc_info and not record.exc_text:
            record.exc_text = logging.Formatter().formatException(
                record.exc_info
            )
        if record.exc_text:
            record.exc_text = self.redact(record.exc_text)
            # JsonFormatter formats exc_info directly
            record.exc_info = None
        return True


_NAMED_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s %(message)s"
_QUIET_LOGGERS = ("urllib3", "charset_normalizer")


def _formatter(debug_format: str, fmt: str = _TEXT_FORMAT) -> logging.Formatter:
    if debug_format == "json":
        return JsonFormatter(datefmt=_DATE_FORMAT)
    return logging.Formatter(fmt, datefmt=_DATE_FORMAT)


def _resolve_level(mode: str, debug: bool, level: str | None) -> int:
    if debug:
        return logging.DEBUG
    fallback = level or ("WARNING" if mode == "mcp" else "INFO")
    name = os.getenv("LOG_LEVEL", fallback).upper()
    return getattr(logging, name, logging.INFO)


def _file_handler(path: str, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.FileHandler(path, mode="a")
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    mode: str = "cli",
    debug: bool = False,
    log_file: str | None = None,
    debug_format: str = "text",
    secrets: Iterable[str] = (),
    level: str | None = None,
) -> None:
    """
    Install root handlers for the given run mode.

    In ``"mcp"`` mode records go to a file and nowhere else, because stdout
    is the JSON-RPC stream. In ``"cli"`` mode they go to stderr, and also to
    *log_file* when one is given.

    Level precedence: *debug*, then ``LOG_LEVEL``, then *level* (the
    ``logging.level`` config value), then WARNING for mcp / INFO for cli.
    The mcp log file is *log_file*, else ``LOG_FILE``, else
    ``/tmp/github-cms-mcp.log``.

    Args:
        debug_format: ``"text"`` or ``"json"`` (one object per line).
        secrets: Values such as the access token that are replaced with
            ``[REDACTED]`` before any handler writes them.
    """
    log_level = _resolve_level(mode, debug, level)

    if mode == "mcp":
        target = log_file or os.getenv("LOG_FILE", DEFAULT_LOG_FILE)
        handlers = [_file_handler(target, _formatter(debug_format))]
    else:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(_formatter(debug_format))
        handlers = [console]
        if log_file:
            handlers.append(
                _file_handler(log_file, _formatter(debug_format, _NAMED_FORMAT))
            )

    redactor = RedactingFilter(secrets)
    for handler in handlers:
        handler.addFilter(redactor)

    logging.basicConfig(level=log_level, handlers=handlers)

    if log_level != logging.DEBUG:
        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
