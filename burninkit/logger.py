"""
Logger Module

Centralized logging configuration for the burn-in kit.

Usage:
    from burninkit.logger import get_module_logger
    logger = get_module_logger(__name__)
    logger.info("Information message")
    logger.error("Error message")

Per-drive run log (append-only):
    from burninkit.logger import Logger
    Logger.attach_run_log('./burnin_logs/burnin-WDC_WD40EFRX_WD-1234.log')
"""

import logging
import sys
from typing import Optional, Dict
from pathlib import Path

DEFAULT_LOG_DIR = './burnin_logs'

_FORMAT = '[%(levelname)s %(asctime)s] [%(name)s] %(message)s'


class Logger:
    """
    Object-oriented logger wrapper with centralized configuration.

    This class provides:
    - Centralized logging configuration
    - Module-specific logger instances
    - Console, log.txt and log.err output
    - Append-only per-drive run log

    Example:
        >>> Logger.init_logging('./burnin_logs')
        >>> logger = Logger.get_logger(__name__)
        >>> logger.info("Information message")
    """

    _initialized = False
    _log_dir: Optional[Path] = None
    _loggers: Dict[str, logging.Logger] = {}
    _run_handler: Optional[logging.FileHandler] = None

    @classmethod
    def get_logger(cls, name: str = 'main') -> logging.Logger:
        """
        Get or create a logger instance for the specified name.

        Args:
            name: Logger name (typically __name__ for module-specific logging)

        Returns:
            logging.Logger: Configured logger instance
        """
        if not cls._initialized:
            cls.init_logging()

        if name not in cls._loggers:
            cls._loggers[name] = logging.getLogger(name)

        return cls._loggers[name]

    @classmethod
    def init_logging(cls, log_dir: Optional[str] = None) -> None:
        """
        Initialize logging configuration (idempotent - safe to call multiple times).

        Sets up:
        - Log directory creation
        - File handlers for INFO (log.txt) and ERROR (log.err) levels
        - Console handler for INFO level

        Calling again with a different ``log_dir`` moves the file handlers
        to the new directory.

        Args:
            log_dir: Directory for log files (default: ./burnin_logs)
        """
        target = Path(log_dir or cls._log_dir or DEFAULT_LOG_DIR)
        target.mkdir(parents=True, exist_ok=True)
        target_abs = target.resolve()

        formatter = logging.Formatter(_FORMAT)
        root_logger = logging.getLogger()

        # Drop our file handlers that point at a different directory
        for handler in root_logger.handlers[:]:
            if handler is cls._run_handler:
                continue
            if isinstance(handler, logging.FileHandler):
                handler_path = Path(handler.baseFilename).resolve()
                if handler_path.name in ('log.txt', 'log.err') and handler_path.parent != target_abs:
                    handler.close()
                    root_logger.removeHandler(handler)

        existing = {
            Path(h.baseFilename).name
            for h in root_logger.handlers
            if isinstance(h, logging.FileHandler) and h is not cls._run_handler
        }
        has_console_handler = any(
            isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
            for h in root_logger.handlers
        )

        if 'log.txt' not in existing:
            file_handler = logging.FileHandler(str(target / 'log.txt'), mode='a', encoding='utf-8')
            file_handler.setLevel(logging.INFO)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        if 'log.err' not in existing:
            err_handler = logging.FileHandler(str(target / 'log.err'), mode='a', encoding='utf-8')
            err_handler.setLevel(logging.ERROR)
            err_handler.setFormatter(formatter)
            root_logger.addHandler(err_handler)

        if not has_console_handler:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(logging.INFO)
            console_handler.setFormatter(formatter)
            root_logger.addHandler(console_handler)

        root_logger.setLevel(logging.DEBUG)
        cls._log_dir = target
        cls._initialized = True

    @classmethod
    def attach_run_log(cls, log_path: str) -> Path:
        """
        Route all log records to an append-only per-drive run log.

        Replaces a previously attached run log.

        Args:
            log_path: Path of the run log file

        Returns:
            Path: Path of the attached log file
        """
        if not cls._initialized:
            cls.init_logging()

        path = Path(log_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        cls.detach_run_log()

        handler = logging.FileHandler(str(path), mode='a', encoding='utf-8')
        handler.setLevel(logging.INFO)
        handler.setFormatter(logging.Formatter(_FORMAT))
        logging.getLogger().addHandler(handler)
        cls._run_handler = handler
        return path

    @classmethod
    def detach_run_log(cls) -> None:
        """Close and remove the per-drive run log handler, if any."""
        if cls._run_handler is not None:
            logging.getLogger().removeHandler(cls._run_handler)
            cls._run_handler.close()
            cls._run_handler = None


def get_module_logger(module_name: str = 'main') -> logging.Logger:
    """
    Get a logger instance for the specified module.

    Args:
        module_name: Module name (use __name__ for automatic module detection)

    Returns:
        logging.Logger: Configured logger instance

    Example:
        >>> from burninkit.logger import get_module_logger
        >>> logger = get_module_logger(__name__)
        >>> logger.info("Starting SMART short test...")
    """
    return Logger.get_logger(module_name)


def LogSection(title: str, logger: Optional[logging.Logger] = None) -> None:
    """
    Log a section header surrounded by separator lines.

    Args:
        title: Section title
        logger: Logger to write to (default: 'main')
    """
    logger = logger or Logger.get_logger('main')
    logger.info("")
    logger.info("=" * 60)
    logger.info(f"  {title}")
    logger.info("=" * 60)
    logger.info("")


def LogResult(passed: bool, message: str, logger: Optional[logging.Logger] = None) -> None:
    """
    Log a result line as pass or fail.

    Args:
        passed: True if the check passed, False if it failed
        message: Result message
        logger: Logger to write to (default: 'main')
    """
    logger = logger or Logger.get_logger('main')
    if passed:
        logger.info(f"[PASS] {message}")
    else:
        logger.error(f"[FAIL] {message}")
