"""Logging setup.

One format for every module. Log lines go to stderr through tqdm so
they print above an active progress bar instead of tearing it; the host
list goes to stdout, so redirected output stays clean.
"""

import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

from tqdm import tqdm


LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

NOISY_LOGGERS = ('dns', 'asyncio')


class TqdmLoggingHandler(logging.StreamHandler):
    """StreamHandler that writes via tqdm.write()."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            tqdm.write(self.format(record), file=self.stream)
            self.flush()
        except Exception:
            self.handleError(record)


def setup_logging(log_file: Optional[Path] = None, level: int = logging.INFO,
                  quiet: Iterable[str] = NOISY_LOGGERS) -> logging.Logger:
    """Configure the root logger for a CLI run.

    Replaces any existing root handlers. `log_file` additionally gets
    every record at `level`; loggers named in `quiet` are held at WARNING.
    """
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = TqdmLoggingHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Module logger; pass __name__."""
    return logging.getLogger(name)
