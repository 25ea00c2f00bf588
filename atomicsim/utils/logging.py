"""
Structured logging for atomicsim.

Every coordinator run executes inside a correlation context keyed by its
transaction ID, so all lines emitted for one commit attempt (the per-step
DEBUG trace, the decision, the outcome record) can be grouped together.
Lines are written as JSON objects encoded with orjson, or as plain text.
"""
import logging
import logging.handlers
import sys
import threading
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import orjson
from typing_extensions import Self

# Transaction (or other) ID attached to every record emitted in this context
correlation_id: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

# LogRecord attributes that are never copied into the JSON payload
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord('', 0, '', 0, '', None, None))
) | {'message', 'asctime', 'taskName', 'extra_fields', 'correlation_id'}

_JSON_SCALARS = (str, int, float, bool, list, dict, type(None))

TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class StructuredFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    def __init__(self, include_correlation_id: bool = True):
        super().__init__()
        self.include_correlation_id = include_correlation_id

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if self.include_correlation_id:
            active = correlation_id.get() or getattr(record, 'correlation_id', None)
            if active:
                entry["correlation_id"] = active

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": self.formatException(record.exc_info),
            }

        entry.update(getattr(record, 'extra_fields', None) or {})
        entry.update(
            (key, value) for key, value in record.__dict__.items()
            if not key.startswith('_')
            and key not in _RECORD_ATTRIBUTES
            and isinstance(value, _JSON_SCALARS)
        )

        return orjson.dumps(entry, default=str, option=orjson.OPT_NON_STR_KEYS).decode("utf-8")


class CorrelationIdFilter(logging.Filter):
    """Stamp the active correlation ID onto records that pass through."""

    def filter(self, record: logging.LogRecord) -> bool:
        active = correlation_id.get()
        if active:
            record.correlation_id = active
        return True


class AtomicSimLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter carrying a fixed correlation ID and structured fields.

    ``bind`` returns a new adapter; the original is left unchanged.
    """

    def __init__(self, logger, correlation_id=None, extra_fields=None):
        super().__init__(logger, {})
        self.correlation_id = correlation_id
        self.extra_fields = extra_fields or {}

    def process(self, msg, kwargs):
        extra = kwargs.setdefault('extra', {})
        if self.correlation_id:
            extra['correlation_id'] = self.correlation_id
        if self.extra_fields:
            extra['extra_fields'] = self.extra_fields
        return msg, kwargs

    def bind(self, **fields) -> Self:
        return type(self)(self.logger, self.correlation_id, {**self.extra_fields, **fields})


class MetricsLogger:
    """
    Emits machine-readable events about simulator runs.

    Each event is a log record whose ``extra_fields`` carry an ``event_type``
    plus the event's own fields, so JSON output can be filtered on them.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _emit(self, level: int, message: str, event_type: str, **fields):
        self.logger.log(level, message, extra={'extra_fields': {'event_type': event_type, **fields}})

    def log_operation_start(self, operation: str, **kwargs):
        self._emit(logging.DEBUG, "Operation started", 'operation_start', operation=operation, **kwargs)

    def log_operation_end(self, operation: str, duration: float, success: bool = True, **kwargs):
        """
        Args:
            operation: Name of the operation
            duration: Wall-clock duration in seconds
            success: Whether the operation completed normally
            **kwargs: Additional event fields
        """
        self._emit(
            logging.INFO,
            "Operation completed",
            'operation_end',
            operation=operation,
            duration_seconds=duration,
            success=success,
            **kwargs,
        )

    def log_transaction_outcome(self, protocol: str, transaction_id: str, outcome: str,
                                yes_votes: int, no_votes: int, step_count: int, **kwargs):
        """Record how one simulated commit attempt ended."""
        self._emit(
            logging.INFO,
            "Transaction finished",
            'transaction_outcome',
            protocol=protocol,
            transaction_id=transaction_id,
            outcome=outcome,
            yes_votes=yes_votes,
            no_votes=no_votes,
            step_count=step_count,
            **kwargs,
        )


class LogManager:
    """
    Owns the handlers atomicsim installs on the root logger.

    A console handler is always installed and a rotating file handler when
    ``log_file`` is given. ``shutdown`` removes exactly those handlers, so
    handlers belonging to the host application or the test runner stay put.
    """

    def __init__(self,
                 log_level: str = "INFO",
                 log_format: str = "json",
                 log_file: Optional[str] = None,
                 max_bytes: int = 10 * 1024 * 1024,  # 10MB
                 backup_count: int = 5,
                 include_correlation_id: bool = True):
        """
        Args:
            log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
            log_format: 'json' or 'text'
            log_file: Optional path of a rotating log file
            max_bytes: Size at which the log file rotates
            backup_count: Rotated files kept
            include_correlation_id: Whether records carry the correlation ID

        Raises:
            ValueError: On an unknown level or format
        """
        level = logging.getLevelName(log_level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {log_level}")
        if log_format not in ("json", "text"):
            raise ValueError(f"Unknown log format: {log_format}")

        self.log_level = level
        self.log_format = log_format
        self.log_file = log_file
        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self.include_correlation_id = include_correlation_id

        self._lock = threading.RLock()
        self._handlers: List[logging.Handler] = []

        with self._lock:
            self._install_handlers()

        self.logger = self.get_logger("atomicsim")
        self.metrics = MetricsLogger(self.get_logger("atomicsim.metrics"))

    def _formatter(self) -> logging.Formatter:
        if self.log_format == "json":
            return StructuredFormatter(self.include_correlation_id)
        return logging.Formatter(TEXT_FORMAT)

    def _install_handlers(self):
        root_logger = logging.getLogger()
        root_logger.setLevel(self.log_level)

        handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
        if self.log_file:
            Path(self.log_file).parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.handlers.RotatingFileHandler(
                self.log_file,
                maxBytes=self.max_bytes,
                backupCount=self.backup_count,
            ))

        formatter = self._formatter()
        for handler in handlers:
            handler.setLevel(self.log_level)
            handler.setFormatter(formatter)
            if self.include_correlation_id:
                handler.addFilter(CorrelationIdFilter())
            root_logger.addHandler(handler)
            self._handlers.append(handler)

    def shutdown(self):
        """Detach and close the handlers installed by this manager."""
        with self._lock:
            root_logger = logging.getLogger()
            while self._handlers:
                handler = self._handlers.pop()
                root_logger.removeHandler(handler)
                handler.close()

    def get_logger(self, name: str) -> logging.Logger:
        return logging.getLogger(name)

    def get_adapter(self, name: str, correlation_id: Optional[str] = None, **extra_fields) -> AtomicSimLoggerAdapter:
        return AtomicSimLoggerAdapter(self.get_logger(name), correlation_id, extra_fields)


_log_manager: Optional[LogManager] = None
_log_manager_lock = threading.RLock()


def initialize_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    include_correlation_id: bool = True,
) -> LogManager:
    """
    (Re)configure atomicsim logging.

    The handlers of the previous manager, if any, are removed first.
    """
    global _log_manager

    with _log_manager_lock:
        if _log_manager is not None:
            _log_manager.shutdown()
        _log_manager = LogManager(
            log_level=log_level,
            log_format=log_format,
            log_file=log_file,
            max_bytes=max_bytes,
            backup_count=backup_count,
            include_correlation_id=include_correlation_id,
        )
        return _log_manager


def _current_manager() -> LogManager:
    with _log_manager_lock:
        if _log_manager is None:
            initialize_logging()
        return _log_manager


def get_log_manager() -> Optional[LogManager]:
    """The active manager, or None when logging was never initialized."""
    return _log_manager


def get_logger(name: str) -> logging.Logger:
    return _current_manager().get_logger(name)


def get_adapter(name: str, correlation_id: Optional[str] = None, **extra_fields) -> AtomicSimLoggerAdapter:
    return _current_manager().get_adapter(name, correlation_id, **extra_fields)


def get_metrics_logger() -> MetricsLogger:
    return _current_manager().metrics


def set_correlation_id(correlation_id_value: str):
    correlation_id.set(correlation_id_value)


def get_correlation_id() -> Optional[str]:
    return correlation_id.get()


def clear_correlation_id():
    correlation_id.set(None)


class CorrelationIdContext:
    """
    Scope a correlation ID to a ``with`` block.

    The previous value is restored on exit, so contexts nest.
    """

    def __init__(self, correlation_id_value: Optional[str] = None):
        self.correlation_id_value = correlation_id_value or str(uuid.uuid4())
        self._token = None

    def __enter__(self):
        self._token = correlation_id.set(self.correlation_id_value)
        return self.correlation_id_value

    def __exit__(self, exc_type, exc_val, exc_tb):
        correlation_id.reset(self._token)
        self._token = None


def with_correlation_id(correlation_id_value: Optional[str] = None) -> CorrelationIdContext:
    """Shorthand for ``CorrelationIdContext(correlation_id_value)``."""
    return CorrelationIdContext(correlation_id_value)
