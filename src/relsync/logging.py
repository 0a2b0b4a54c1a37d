"""Log streams for relsync.

Every event is written to ``relsync.log`` as readable ``key=value`` lines.
Events of the ``relsync.sync`` hierarchy (resolver, scheduler, invoker,
interceptor) are additionally written to ``sync.log`` as JSON lines, one
object per event, carrying the ``sync_run`` id bound by the scheduler.
Both files rotate at 10 MB and keep 5 backups.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path

import structlog

_ROTATE_BYTES = 10 * 1024 * 1024
_ROTATE_KEEP = 5

SYNC_LOGGER = "relsync.sync"
_QUIET_LOGGERS = ("httpx", "httpcore")

# Applied to structlog events and to records from plain stdlib loggers alike.
_pre_chain: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.ExtraAdder(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


@dataclass(frozen=True)
class _Stream:
    filename: str
    renderer: structlog.types.Processor
    logger_prefix: str | None = None


def _streams() -> list[_Stream]:
    return [
        _Stream("relsync.log", structlog.dev.ConsoleRenderer(colors=False)),
        # exceptions and other non-JSON values are rendered with str()
        _Stream("sync.log", structlog.processors.JSONRenderer(default=str), SYNC_LOGGER),
    ]


def _file_handler(log_dir: Path, stream: _Stream) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        log_dir / stream.filename,
        maxBytes=_ROTATE_BYTES,
        backupCount=_ROTATE_KEEP,
        encoding="utf-8",
    )
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=stream.renderer, foreign_pre_chain=_pre_chain)
    )
    if stream.logger_prefix:
        handler.addFilter(logging.Filter(stream.logger_prefix))
    return handler


def _log_uncaught(exc_type: type[BaseException], exc_value: BaseException, exc_tb: object) -> None:
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_tb)  # type: ignore[arg-type]
        return
    logging.getLogger("relsync").critical("Unhandled exception", exc_info=(exc_type, exc_value, exc_tb))


def setup_logging(log_level: str = "info", log_dir: Path | None = None) -> None:
    """Route structlog through stdlib logging and attach the file streams.

    Parameters
    ----------
    log_level:
        Python log-level name (``debug``, ``info``, ``warning``, etc.).
        Unknown names fall back to ``info``.
    log_dir:
        Directory for ``relsync.log`` and ``sync.log``; created if missing.
        When *None* the root logger gets no handlers at all.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[*_pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        for stream in _streams():
            root.addHandler(_file_handler(log_dir, stream))

    # request lines from the REST endpoints only show at warning and above
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    sys.excepthook = _log_uncaught  # type: ignore[assignment]
