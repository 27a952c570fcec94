import logging
import sys

from tqdm import tqdm


class _ColoredFormatter(logging.Formatter):
    _COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    _RESET = '\033[0m'
    _BOLD = '\033[1m'

    def format(self, record: logging.LogRecord) -> str:
        color = self._COLORS.get(record.levelname, '')
        levelname = record.levelname
        if color:
            record.levelname = f"{color}{self._BOLD}{levelname}{self._RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


class _TqdmHandler(logging.StreamHandler):
    """Writes through tqdm so log lines do not tear an active progress bar."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            tqdm.write(self.format(record), file=self.stream)
            self.flush()
        except Exception:  # noqa: BLE001
            self.handleError(record)


def setup_logging(level: int | str = logging.INFO, verbose: bool = False) -> None:
    """Console logging with colors; function names and line numbers only in verbose mode."""
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    if verbose:
        log_format = '%(asctime)s [%(levelname)s] %(name)s %(funcName)s():%(lineno)d - %(message)s'
    else:
        log_format = '%(asctime)s [%(levelname)s] %(message)s'
    date_format = '%Y-%m-%d %H:%M:%S'

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = _TqdmHandler(sys.stderr)
    handler.setLevel(level)

    formatter = (
        _ColoredFormatter(log_format, datefmt=date_format)
        if sys.stderr.isatty()
        else logging.Formatter(log_format, datefmt=date_format)
    )
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    for noisy in ('httpx', 'httpcore'):
        logging.getLogger(noisy).setLevel(logging.WARNING)
