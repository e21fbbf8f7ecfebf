"""Log output for musiclt: compact text for humans, JSON for log shippers.

Every record passing through the root handler is stamped with the id of the request that
produced it, so one grep over the logs reconstructs a single request end to end.
"""

import contextvars
import logging
import sys
import traceback
import uuid
from pathlib import Path
from types import TracebackType
from typing import Any

from pythonjsonlogger.json import JsonFormatter

# Hey future me, the request id lives in a ContextVar, so each asyncio task (= each
# request) carries its own. Logs emitted outside a request (startup, shutdown) get "".
_request_id: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)

_OWN_CODE = "musiclt"
_QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "aiosqlite", "uvicorn.access")

TEXT_FORMAT = "%(asctime)s │ %(levelname)-7s │ %(name)s:%(lineno)d │ %(message)s"
JSON_FORMAT = "%(timestamp)s %(level)s %(name)s %(message)s"

# JSON key -> LogRecord attribute
_RECORD_FIELDS = {
    "level": "levelname",
    "logger": "name",
    "module": "module",
    "function": "funcName",
    "line": "lineno",
}


def get_correlation_id() -> str:
    """Id of the request being handled, "" outside of one."""
    return _request_id.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a request id to the current task and return it.

    Missing or blank ids (no X-Correlation-ID header) get a fresh uuid4.
    """
    value = correlation_id or str(uuid.uuid4())
    _request_id.set(value)
    return value


class CorrelationIdFilter(logging.Filter):
    """Stamps records with the current request id."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _request_id.get()
        return True


def _cause_chain(exc: BaseException) -> list[BaseException]:
    """Exceptions linked by __cause__/__context__, innermost first."""
    chain: list[BaseException] = []
    node: BaseException | None = exc
    while node is not None and node not in chain:
        chain.append(node)
        node = node.__cause__ or node.__context__
    return chain[::-1]


def _own_frames(tb: TracebackType | None) -> list[str]:
    if tb is None:
        return []
    rendered: list[str] = []
    for frame in traceback.extract_tb(tb):
        if _OWN_CODE not in frame.filename or "/site-packages/" in frame.filename:
            continue
        rendered.append(
            f'    File "{Path(frame.filename).name}", line {frame.lineno}, in {frame.name}'
        )
        if frame.line:
            rendered.append(f"      {frame.line.strip()}")
    return rendered


class CompactExceptionFormatter(logging.Formatter):
    """Text formatter that shrinks tracebacks to one arrow per exception.

    The root cause comes first and library frames are dropped:

        ERROR │ musiclt.api:88 │ Failed to save artist
        ╰─► StaleDataError: UPDATE statement on table 'artists' expected to update 1 row(s)
        ╰─► ConcurrentModificationError: Artist with id g1 was modified concurrently
            File "repositories.py", line 251, in _save
              raise ConcurrentModificationError("Artist", artist_id) from e
    """

    def formatException(
        self,
        ei: tuple[type[BaseException], BaseException, TracebackType | None]
        | tuple[None, None, None],
    ) -> str:
        if ei[1] is None:
            return ""

        lines: list[str] = []
        for exc in _cause_chain(ei[1]):
            lines.append(f"╰─► {type(exc).__name__}: {exc}")
            lines.extend(_own_frames(exc.__traceback__))
        return "\n".join(lines)


class CustomJsonFormatter(JsonFormatter):
    """One JSON object per record, with source location and request id."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = self.formatTime(record, self.datefmt)
        for key, attribute in _RECORD_FIELDS.items():
            log_record[key] = getattr(record, attribute)

        # outside a request there is nothing worth emitting
        request_id = getattr(record, "correlation_id", "")
        if request_id:
            log_record["correlation_id"] = request_id
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)


def _build_formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return CustomJsonFormatter(JSON_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    return CompactExceptionFormatter(fmt=TEXT_FORMAT, datefmt="%H:%M:%S")


# Listen future me, the lifespan in main.py calls this once per app start. basicConfig(force=True)
# throws away whatever handlers were there, so tests may call it as often as they like.
def configure_logging(
    log_level: str = "INFO",
    json_format: bool = False,
    app_name: str = "musiclt",
) -> None:
    """Install the single stdout handler on the root logger.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL (unknown names fall back to INFO)
        json_format: JSON lines instead of the compact text format
        app_name: Reported in the first log line
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(CorrelationIdFilter())
    handler.setFormatter(_build_formatter(json_format))
    logging.basicConfig(level=level, handlers=[handler], force=True)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging configured",
        extra={"app_name": app_name, "log_level": log_level, "json_format": json_format},
    )
