"""
Rich-based logging system
"""
import os
import sys
import logging
from typing import Optional
from pathlib import Path

from rich.logging import RichHandler
from rich.console import Console
from rich.traceback import install as install_traceback

from .constants import DEFAULT_LOG_LEVEL, LOG_LEVEL_ENV


# Global console instances
_stdout_console = Console(file=sys.stdout, force_terminal=True)
_stderr_console = Console(file=sys.stderr, force_terminal=True)

# Install rich traceback handler
install_traceback(show_locals=False, width=120)

BANNER_PREFIX = "-----> "

# chef-solo only knows these names
_CHEF_LOG_LEVELS = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warn",
    logging.ERROR: "error",
}


def default_log_level() -> str:
    """Log level from CRUCIBLE_LOG, falling back to INFO"""
    return os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper()


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
    rich_tracebacks: bool = True,
) -> None:
    """
    Setup Rich logging system.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL),
            defaults to the CRUCIBLE_LOG environment variable
        log_file: Optional log file path
        rich_tracebacks: Enable rich tracebacks
    """
    log_level = getattr(logging, (level or default_log_level()).upper(), logging.INFO)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers
    root_logger.handlers.clear()

    # Create Rich handler for stderr
    rich_handler = RichHandler(
        console=_stderr_console,
        show_time=True,
        show_path=False,
        rich_tracebacks=rich_tracebacks,
        markup=False,
        show_level=True,
    )
    rich_handler.setLevel(log_level)
    root_logger.addHandler(rich_handler)

    # Add file handler if specified
    if log_file:
        root_logger.addHandler(_file_handler(log_file, log_level))


def _file_handler(log_file: Path, level: int) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_file, encoding='utf-8')
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))
    return file_handler


def get_logger(name: str) -> logging.Logger:
    """
    Get logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def get_stdout_console() -> Console:
    """Get stdout console for user-facing output"""
    return _stdout_console


def get_stderr_console() -> Console:
    """Get stderr console for errors and logs"""
    return _stderr_console


# ============================================================
# Instance Logging
# ============================================================

class InstanceLogger:
    """
    Line-oriented logger handed to drivers and uploaders.

    Wraps a standard logger and adds ``banner`` for stage headers and
    ``write`` for raw output streamed back from a remote command.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self._partial = ""

    @property
    def name(self) -> str:
        return self.logger.name

    def debug(self, msg: str) -> None:
        self.logger.debug(msg)

    def info(self, msg: str) -> None:
        self.logger.info(msg)

    def warning(self, msg: str) -> None:
        self.logger.warning(msg)

    def error(self, msg: str) -> None:
        self.logger.error(msg)

    def banner(self, msg: str) -> None:
        self.logger.info(f"{BANNER_PREFIX}{msg}")

    def write(self, data: str) -> None:
        """Log streamed data, one record per complete line"""
        buf = self._partial + data
        *lines, self._partial = buf.split("\n")
        for line in lines:
            self.logger.info(line.rstrip("\r"))

    def flush(self) -> None:
        """Emit any trailing partial line"""
        if self._partial:
            self.logger.info(self._partial.rstrip("\r"))
            self._partial = ""

    def chef_log_level(self) -> str:
        """Effective level translated to a chef-solo --log_level value"""
        level = self.logger.getEffectiveLevel()
        for threshold in sorted(_CHEF_LOG_LEVELS, reverse=True):
            if level >= threshold:
                return _CHEF_LOG_LEVELS[threshold]
        return "debug"


def get_instance_logger(
    instance_name: str,
    log_root: Optional[Path] = None,
) -> InstanceLogger:
    """
    Build the logger for one instance.

    Records propagate to the root (console) logger and, when ``log_root``
    is given, are also appended to ``<log_root>/<instance_name>.log``.
    """
    logger = logging.getLogger(f"crucible.instance.{instance_name}")
    if log_root is not None:
        log_file = (Path(log_root) / f"{instance_name}.log").resolve()
        attached = any(
            isinstance(h, logging.FileHandler) and Path(h.baseFilename) == log_file
            for h in logger.handlers
        )
        if not attached:
            logger.addHandler(_file_handler(log_file, logging.NOTSET))
    return InstanceLogger(logger)
