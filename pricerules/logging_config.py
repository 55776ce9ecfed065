import logging
import sys
from typing import TextIO

from .config import settings

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s %(funcName)s():%(lineno)d - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# third party loggers that only matter when something breaks
QUIET_LOGGERS = ('bs4', 'asyncio')


class _LevelColorFormatter(logging.Formatter):
    _COLORS = {
        logging.DEBUG: '\033[36m',
        logging.INFO: '\033[32m',
        logging.WARNING: '\033[33m',
        logging.ERROR: '\033[31m',
        logging.CRITICAL: '\033[35m',
    }
    _RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        color = self._COLORS.get(record.levelno)
        if not color:
            return super().format(record)
        # copy: other handlers must see the plain level name
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{self._RESET}"
        return super().format(colored)


def setup_logging(level: int | str | None = None, stream: TextIO | None = None) -> None:
    """Console logging for rule checks; level names are colored on a terminal.

    level defaults to LOG_LEVEL from the environment, stream to stdout.
    """
    if level is None:
        level = settings.log_level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level {level!r}")
    if stream is None:
        stream = sys.stdout

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    formatter_cls = _LevelColorFormatter if stream.isatty() else logging.Formatter
    handler.setFormatter(formatter_cls(LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
