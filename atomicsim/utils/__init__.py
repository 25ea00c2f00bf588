"""atomicsim utility modules."""

from .logging import (
    get_logger,
    get_adapter,
    get_metrics_logger,
    initialize_logging,
    set_correlation_id,
    get_correlation_id,
    clear_correlation_id,
    with_correlation_id
)
from .logging_config import (
    LoggingPresets,
    configure_from_environment,
    get_logging_config
)
from .datetime_utils import elapsed_since, format_timestamp, utc_now

__all__ = [
    # Logging functions
    "get_logger",
    "get_adapter",
    "get_metrics_logger",
    "initialize_logging",
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    "with_correlation_id",
    # Logging configuration
    "LoggingPresets",
    "configure_from_environment",
    "get_logging_config",
    "utc_now",
    "elapsed_since",
    "format_timestamp",
]
