"""Logging setup for glrefs using loguru.

Messages go to stderr so that stdout stays free for command output.
httpx and githubkit log through the standard library; those records are
routed into loguru and kept quiet unless debugging, because httpx logs
every request URL at INFO.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

from loguru import logger

if TYPE_CHECKING:
    from loguru import Logger, Record

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_CONSOLE_FORMAT = (
    "<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | "
    "<cyan>{extra[source]}</cyan> - <level>{message}</level>"
)
_FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{extra[source]}:{function}:{line} | {extra} | {message}"
)


class InterceptHandler(logging.Handler):
    """Forward standard library records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip the logging module's own frames so loguru reports the caller
        frame = logging.currentframe()
        depth = 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).bind(
            stdlib_name=record.name
        ).log(level, record.getMessage())


def _with_source(record: Record) -> bool:
    """Fill extra[source]: the bound name, else the stdlib logger, else the module."""
    extra = record["extra"]
    extra["source"] = extra.get("name") or extra.get("stdlib_name") or record["name"]
    return True


def setup_logging(
    level: LogLevel = "INFO",
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
    serialize: bool = False,
) -> list[int]:
    """Replace loguru's handlers with the glrefs configuration.

    Args:
        level: Base log level from settings
        verbose: Use DEBUG (wins over quiet)
        quiet: Use WARNING
        log_file: Optional file that receives everything from DEBUG up,
            rotated and gzip-compressed
        rotation: When to rotate the log file (e.g., "10 MB", "1 day")
        retention: How long to keep rotated files
        serialize: Write the file as JSON lines

    Returns:
        Ids of the installed loguru handlers
    """
    effective: LogLevel = "DEBUG" if verbose else "WARNING" if quiet else level

    logger.remove()
    handler_ids = [
        logger.add(
            sys.stderr,
            level=effective,
            format=_CONSOLE_FORMAT,
            filter=_with_source,
            colorize=True,
            backtrace=True,
            diagnose=False,
        )
    ]
    if log_file is not None:
        handler_ids.append(
            logger.add(
                log_file,
                level="DEBUG",
                format=_FILE_FORMAT,
                filter=_with_source,
                rotation=rotation,
                retention=retention,
                compression="gz",
                serialize=serialize,
                diagnose=False,
            )
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    library_level = logging.DEBUG if effective in ("TRACE", "DEBUG") else logging.WARNING
    for name in ("httpx", "httpcore", "githubkit"):
        logging.getLogger(name).setLevel(library_level)

    return handler_ids


def get_logger(name: str) -> Logger:
    """Logger with ``name`` bound; use ``get_logger(__name__)`` per module."""
    return logger.bind(name=name)


def bind_project(project_path: str) -> Logger:
    """Logger for one GitLab project's fetch run."""
    return logger.bind(name="fetch", project=project_path)


def bind_merge_request(project_path: str, iid: int) -> Logger:
    """Logger for one merge request within a fetch run."""
    return logger.bind(name="fetch", project=project_path, iid=iid)


class LogContext:
    """Bind context to every message logged inside the block.

    Usage:
        with LogContext(project="group/project"):
            fetcher.fetch("group/project", sink)
    """

    def __init__(self, **context: Any) -> None:
        self._context = context
        self._token: Any = None

    def __enter__(self) -> Logger:
        self._token = logger.contextualize(**self._context)
        self._token.__enter__()
        return logger

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        if self._token is not None:
            self._token.__exit__(exc_type, exc_val, exc_tb)
