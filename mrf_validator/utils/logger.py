"""
Logging for the MRF validator.

Every module logs through an MRFLogger obtained from get_module_logger().
Context is passed as keyword arguments and rendered as a JSON suffix, so a
line reads like:

    INFO | Validation finished | {"source": "charges.csv", "valid": false, ...}

Set MRF_LOG_LEVEL to change the level and MRF_LOG_DIR to also write rotating
log files (one with everything, one with errors only).
"""

import inspect
import json
import logging
import logging.handlers
import os
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any

from ..config.constants import LOG_LEVEL_ENV, LOG_DIR_ENV

LOGGER_NAMESPACE = "mrf_validator"

FILE_FORMAT = logging.Formatter(
    '%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
CONSOLE_FORMAT = logging.Formatter('%(levelname)s | %(message)s')


class MRFLogger:
    """
    Logger for validation runs.

    Features:
    - Keyword context appended as JSON, long values shortened
    - Console output limited to warnings so library use stays quiet
    - Optional rotating files: <name>_<date>.log and <name>_errors_<date>.log
    - Helpers for row phases, aborts, run outcome and timing
    """

    # Cell values can be long free text
    MAX_VALUE_LENGTH = 200

    def __init__(
        self,
        name: str,
        log_dir: Optional[str] = None,
        log_level: str = "INFO",
        max_bytes: int = 10 * 1024 * 1024,  # 10MB
        backup_count: int = 5,
        enable_console: bool = True,
    ):
        """
        Initialize the logger.

        Args:
            name: Short logger name, usually the module name
            log_dir: Directory for log files; no files are written when None
            log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
            max_bytes: Size at which a log file is rotated
            backup_count: Rotated files to keep
            enable_console: Whether to log warnings and errors to stderr
        """
        self.name = name
        self.logger = logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
        self.logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
        self.logger.handlers = []
        self.logger.propagate = False

        if enable_console:
            console = logging.StreamHandler()
            console.setLevel(logging.WARNING)
            console.setFormatter(CONSOLE_FORMAT)
            self.logger.addHandler(console)

        if log_dir:
            Path(log_dir).mkdir(parents=True, exist_ok=True)
            stamp = f"{datetime.now():%Y%m%d}"
            for file_name, level in ((f"{name}_{stamp}.log", logging.DEBUG),
                                     (f"{name}_errors_{stamp}.log", logging.ERROR)):
                self.logger.addHandler(
                    self._file_handler(os.path.join(log_dir, file_name), level, max_bytes, backup_count)
                )

    @staticmethod
    def _file_handler(path: str, level: int, max_bytes: int, backup_count: int) -> logging.Handler:
        handler = logging.handlers.RotatingFileHandler(
            filename=path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        handler.setLevel(level)
        handler.setFormatter(FILE_FORMAT)
        return handler

    def _shorten(self, data: Any) -> Any:
        """Truncate long strings nested in log context."""
        if isinstance(data, dict):
            return {key: self._shorten(value) for key, value in data.items()}
        if isinstance(data, (list, tuple)):
            return [self._shorten(item) for item in data]
        if isinstance(data, str) and len(data) > self.MAX_VALUE_LENGTH:
            return f"{data[:self.MAX_VALUE_LENGTH]}..."
        return data

    def _log(self, level: int, message: str, context: Dict[str, Any],
             exception: Optional[Exception] = None):
        if not self.logger.isEnabledFor(level):
            return
        if context:
            message = f"{message} | {json.dumps(self._shorten(context), default=str)}"
        if exception is not None:
            message = f"{message} | Exception: {exception}"
        self.logger.log(level, message, exc_info=exception is not None, stacklevel=3)

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, exception: Optional[Exception] = None, **kwargs):
        """Log an error, with the traceback when an exception is given."""
        self._log(logging.ERROR, message, kwargs, exception)

    def critical(self, message: str, exception: Optional[Exception] = None, **kwargs):
        self._log(logging.CRITICAL, message, kwargs, exception)

    # Validation run events

    def log_phase(self, phase: str, row_index: int, **details):
        """Row state machine moved to a new phase."""
        self.debug("Validation phase", phase=phase, row=row_index, **details)

    def log_abort(self, reason: str, row_index: int, error_count: int):
        """Run stopped reading input early."""
        self.info("Validation aborted", reason=reason, row=row_index, error_count=error_count)

    def log_validation(
        self,
        source: str,
        is_valid: bool,
        error_count: int,
        alert_count: int,
        version: Optional[str] = None
    ):
        """Outcome of a validation run."""
        self.info(
            "Validation finished",
            source=source,
            version=version,
            valid=is_valid,
            errors=error_count,
            alerts=alert_count
        )

    def log_performance(
        self,
        operation: str,
        duration_seconds: float,
        details: Optional[Dict[str, Any]] = None
    ):
        """Duration of a whole operation."""
        self.debug(
            "Performance metric",
            operation=operation,
            duration_seconds=round(duration_seconds, 3),
            details=details or {}
        )


_loggers: Dict[str, MRFLogger] = {}


def get_logger(name: str, log_level: Optional[str] = None, **kwargs) -> MRFLogger:
    """
    Get or create the logger with a given name.

    The level defaults to MRF_LOG_LEVEL and the log directory to MRF_LOG_DIR.
    Later calls with the same name return the first instance unchanged.
    """
    if name not in _loggers:
        kwargs.setdefault('log_dir', os.environ.get(LOG_DIR_ENV) or None)
        _loggers[name] = MRFLogger(
            name,
            log_level=log_level or os.environ.get(LOG_LEVEL_ENV, 'INFO'),
            **kwargs
        )
    return _loggers[name]


def get_module_logger() -> MRFLogger:
    """Logger named after the calling module (mrf_validator.validation.csv_validator -> csv_validator)."""
    caller = inspect.stack(0)[1].frame.f_globals.get('__name__', 'unknown')
    return get_logger(caller.rsplit('.', 1)[-1])
