"""
Logging for phasewise.

Everything logs under the ``phasewise`` logger. The console shows WARNING and
above unless ``PHASEWISE_LOG_LEVEL`` or ``PHASEWISE_DEBUG`` says otherwise; the
file log under ``PHASEWISE_LOG_DIR`` always records DEBUG.
"""
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union

ROOT_LOGGER = 'phasewise'
LOG_FILE = 'phasewise.log'
DEFAULT_LOG_DIR = Path.home() / ".local" / "share" / "phasewise" / "logs"

FILE_FORMAT = '[%(asctime)s] %(levelname)-8s [%(name)s:%(funcName)s:%(lineno)d] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _debug_enabled() -> bool:
    return os.getenv('PHASEWISE_DEBUG', '').lower() in ('1', 'true', 'yes')


def _log_level() -> int:
    """Console level from the environment; unknown names fall back to WARNING."""
    if _debug_enabled():
        return logging.DEBUG
    name = os.getenv('PHASEWISE_LOG_LEVEL', '').upper()
    level = logging.getLevelName(name) if name else logging.WARNING
    return level if isinstance(level, int) else logging.WARNING


def _log_dir() -> Path:
    return Path(os.getenv('PHASEWISE_LOG_DIR', DEFAULT_LOG_DIR))


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    verbose = level <= logging.DEBUG
    handler.setFormatter(logging.Formatter(
        '%(levelname)-8s [%(name)s] %(message)s' if verbose else '%(levelname)s: %(message)s'
    ))
    handler.setLevel(level)
    handler.set_name('console')
    return handler


def _file_handler(log_dir: Path) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_dir / LOG_FILE, encoding='utf-8')
    handler.setFormatter(logging.Formatter(FILE_FORMAT, DATE_FORMAT))
    handler.setLevel(logging.DEBUG)
    handler.set_name('file')
    return handler


def setup_logging(level: Optional[int] = None, log_dir: Union[Path, str, None] = None) -> logging.Logger:
    """
    (Re)configure the ``phasewise`` logger.

    Args:
        level: Console level; read from the environment when None.
        log_dir: Directory of the file log; read from the environment when None.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_console_handler(_log_level() if level is None else level))

    log_dir = Path(log_dir) if log_dir is not None else _log_dir()
    try:
        logger.addHandler(_file_handler(log_dir))
    except OSError as e:
        # Read-only homes only lose the file log
        logger.warning(f"File logging disabled, cannot open {log_dir}: {e}")

    logger.propagate = False
    return logger


def set_console_level(level: int):
    """Change what reaches the terminal without touching the file log."""
    for handler in logging.getLogger(ROOT_LOGGER).handlers:
        if handler.get_name() == 'console':
            handler.setLevel(level)


setup_logging()


def get_logger(name: str = None):
    """Logger for a module, e.g. ``get_logger("graph")`` gives ``phasewise.graph``."""
    if name:
        return logging.getLogger(f'{ROOT_LOGGER}.{name}')
    return logging.getLogger(ROOT_LOGGER)
