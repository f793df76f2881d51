"""
Logging configuration for txlens.

All library modules log under the ``txlens`` hierarchy (``txlens.core.analyzer``,
``txlens.providers.rpc``, ...). ``setup_logging`` is called once by the CLI;
library users can leave logging unconfigured or attach their own handlers.
Console output always goes to stderr: stdout is reserved for JSON reports.
"""

import logging
import sys
import time
from contextlib import contextmanager
from typing import Iterator, Optional, TextIO

from txlens.utils.colors import Colors

# Custom log level for very detailed tracing (per-frame and per-request output)
TRACE = 5
logging.addLevelName(TRACE, 'TRACE')

ROOT_LOGGER_NAME = 'txlens'

# Chatty dependencies that only get a console handler with --verbose
THIRD_PARTY_LOGGERS = ('web3', 'urllib3')


class ColoredFormatter(logging.Formatter):
    """
    Formatter that colors the level name and, when present, the component.

    The component is the logger name without the ``txlens.`` prefix, exposed
    to format strings as ``%(component)s``.
    """

    LEVEL_COLORS = {
        TRACE: Colors.DIM,
        logging.DEBUG: Colors.DIM,
        logging.INFO: Colors.BRIGHT_CYAN,
        logging.WARNING: Colors.BRIGHT_YELLOW,
        logging.ERROR: Colors.BRIGHT_RED,
        logging.CRITICAL: Colors.BOLD + Colors.BRIGHT_RED,
    }

    def __init__(self, fmt: str = None, datefmt: str = None, use_colors: bool = True):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        # Work on a copy so other handlers see the plain record
        record = logging.makeLogRecord(record.__dict__)
        name = record.name
        record.component = name[len(ROOT_LOGGER_NAME) + 1:] if name.startswith(ROOT_LOGGER_NAME + '.') else name
        if self.use_colors:
            color = self.LEVEL_COLORS.get(record.levelno, '')
            reset = Colors.RESET if color else ''
            record.levelname = f"{color}{record.levelname}{reset}"
            record.component = f"{Colors.DIM}{record.component}{Colors.RESET}"
        return super().format(record)


class TxlensLogger(logging.Logger):
    """Logger with a ``trace`` method for the TRACE level."""

    def trace(self, msg, *args, **kwargs):
        if self.isEnabledFor(TRACE):
            self._log(TRACE, msg, args, **kwargs)


logging.setLoggerClass(TxlensLogger)


def _console_handler(stream: TextIO, level: int, detailed: bool, use_colors: bool) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    supports_color = use_colors and hasattr(stream, 'isatty') and stream.isatty()
    # Component names only help once debug output from several modules interleaves
    fmt = '%(levelname)s [%(component)s] %(message)s' if detailed else '%(levelname)s: %(message)s'
    handler.setFormatter(ColoredFormatter(fmt=fmt, use_colors=supports_color))
    return handler


def setup_logging(
    level: int = logging.WARNING,
    quiet: bool = False,
    debug: bool = False,
    verbose: bool = False,
    log_file: Optional[str] = None,
    use_colors: bool = True,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Configure the ``txlens`` logger.

    Args:
        level: Console level when neither debug nor verbose is set
        quiet: Attach no console handler at all
        debug: Console level DEBUG
        verbose: Console level TRACE; web3 and urllib3 logs are shown too
        log_file: Also write everything from DEBUG up to this file
        use_colors: Color level names when the stream is a terminal
        stream: Console stream (stderr by default)

    Returns:
        The configured ``txlens`` logger
    """
    if verbose:
        effective_level = TRACE
    elif debug:
        effective_level = logging.DEBUG
    else:
        effective_level = level

    stream = stream or sys.stderr
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.handlers.clear()
    logger.propagate = False

    handlers = []
    if not quiet:
        handlers.append(_console_handler(stream, effective_level, debug or verbose, use_colors))

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        handlers.append(file_handler)

    # The file handler wants DEBUG even when the console is quieter
    logger.setLevel(min([effective_level] + [h.level for h in handlers]))
    for h in handlers:
        logger.addHandler(h)

    for name in THIRD_PARTY_LOGGERS:
        dep = logging.getLogger(name)
        dep.handlers.clear()
        if verbose and not quiet:
            dep.setLevel(logging.DEBUG)
            dep.addHandler(_console_handler(stream, logging.DEBUG, True, use_colors))
            dep.propagate = False
        else:
            dep.setLevel(logging.WARNING)
            dep.propagate = True

    return logger


def get_logger(name: str = None) -> logging.Logger:
    """
    Get the ``txlens`` logger or one of its children.

    Args:
        name: Dotted component name, e.g. ``'providers.rpc'``; None for the root

    Returns:
        Logger instance
    """
    if name:
        return logging.getLogger(f'{ROOT_LOGGER_NAME}.{name}')
    return logging.getLogger(ROOT_LOGGER_NAME)


@contextmanager
def log_duration(log: logging.Logger, stage: str, level: int = logging.DEBUG) -> Iterator[None]:
    """Log how long the wrapped block took, e.g. ``fetch took 812.4 ms``."""
    start = time.perf_counter()
    try:
        yield
    finally:
        if log.isEnabledFor(level):
            log.log(level, f"{stage} took {(time.perf_counter() - start) * 1000:.1f} ms")


# Global logger instance for convenient access
logger = get_logger()
