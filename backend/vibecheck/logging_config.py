"""
Root logger setup for the Vibe Check Movies backend.

Session lifecycle messages (joins, submissions, synthesis) go to app.log;
failed completion calls, TMDB lookups and sweeps also land in error.log.
The console only carries warnings, such as missing API keys at startup.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

MAX_LOG_BYTES = 10 * 1024 * 1024
BACKUP_COUNT = 5

# Libraries that log every query or outbound request at INFO
NOISY_LOGGERS = (
    'sqlalchemy.engine',
    'sqlalchemy.pool',
    'sqlalchemy.dialects',
    'sqlalchemy.orm',
    'httpx',
    'httpcore',
    'uvicorn.access',
)


def _rotating_handler(path: Path, level: int, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=MAX_LOG_BYTES, backupCount=BACKUP_COUNT, encoding='utf-8')
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(log_dir: str = "./logs"):
    """
    Point the root logger at <log_dir>/app.log (INFO+) and <log_dir>/error.log (ERROR+)

    Called from the app's startup hook, so repeated app creation in tests
    replaces handlers rather than stacking them.
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)
    root_logger.handlers.clear()

    file_format = logging.Formatter(
        '[%(asctime)s] %(levelname)-8s [%(name)s:%(lineno)d] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_format = logging.Formatter(
        '[%(asctime)s] %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )

    app_log_file = log_path / "app.log"
    error_log_file = log_path / "error.log"
    root_logger.addHandler(_rotating_handler(app_log_file, logging.INFO, file_format))
    root_logger.addHandler(_rotating_handler(error_log_file, logging.ERROR, file_format))

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(console_format)
    root_logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging to {app_log_file} (errors also in {error_log_file})")
    return logger
