"""
Ready-made logging setups for atomicsim.

``development`` logs every protocol step, ``production`` only run starts,
decisions and outcomes, and ``testing`` keeps the console quiet.
"""
import os
from typing import Any, Dict, Optional

from .logging import LogManager, get_log_manager, initialize_logging


class LoggingPresets:
    """Named logging configurations."""

    @staticmethod
    def development(log_file: Optional[str] = None) -> LogManager:
        """DEBUG-level JSON, including the per-step protocol trace."""
        return initialize_logging(
            log_level="DEBUG",
            log_format="json",
            log_file=log_file,
            max_bytes=5 * 1024 * 1024,  # 5MB
            backup_count=3,
            include_correlation_id=True,
        )

    @staticmethod
    def production(log_file: Optional[str] = None) -> LogManager:
        """
        INFO-level JSON.

        Args:
            log_file: Optional rotating log file

        Returns:
            The new log manager
        """
        return initialize_logging(
            log_level="INFO",
            log_format="json",
            log_file=log_file,
            max_bytes=50 * 1024 * 1024,  # 50MB
            backup_count=10,
            include_correlation_id=True,
        )

    @staticmethod
    def testing(log_file: Optional[str] = None) -> LogManager:
        return initialize_logging(
            log_level="WARNING",
            log_format="text",
            log_file=log_file,
            max_bytes=1 * 1024 * 1024,  # 1MB
            backup_count=1,
            include_correlation_id=False,
        )


def configure_from_environment() -> LogManager:
    """
    Configure logging from ``ATOMICSIM_LOG_*`` environment variables.

    Environment variables:
    - ATOMICSIM_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR or CRITICAL (default INFO)
    - ATOMICSIM_LOG_FORMAT: json or text (default json)
    - ATOMICSIM_LOG_FILE: Optional log file path
    - ATOMICSIM_LOG_MAX_BYTES: Rotation size in bytes (default 10MB)
    - ATOMICSIM_LOG_BACKUP_COUNT: Rotated files kept (default 5)
    - ATOMICSIM_LOG_INCLUDE_CORRELATION_ID: true or false (default true)
    """
    include_correlation_id = os.getenv("ATOMICSIM_LOG_INCLUDE_CORRELATION_ID", "true")
    return initialize_logging(
        log_level=os.getenv("ATOMICSIM_LOG_LEVEL", "INFO"),
        log_format=os.getenv("ATOMICSIM_LOG_FORMAT", "json"),
        log_file=os.getenv("ATOMICSIM_LOG_FILE"),
        max_bytes=int(os.getenv("ATOMICSIM_LOG_MAX_BYTES", str(10 * 1024 * 1024))),
        backup_count=int(os.getenv("ATOMICSIM_LOG_BACKUP_COUNT", "5")),
        include_correlation_id=include_correlation_id.strip().lower() == "true",
    )


def get_logging_config() -> Dict[str, Any]:
    """Describe the active logging setup, for diagnostics."""
    manager = get_log_manager()
    if manager is None:
        return {"status": "not_initialized"}

    return {
        "status": "initialized",
        "log_level": manager.log_level,
        "log_format": manager.log_format,
        "log_file": manager.log_file,
        "max_bytes": manager.max_bytes,
        "backup_count": manager.backup_count,
        "include_correlation_id": manager.include_correlation_id,
    }
