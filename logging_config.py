import logging
import os
from logging.handlers import RotatingFileHandler

from settings_service import DEFAULT_SETTINGS_PATH, _load_settings

LOGS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "logs")
LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(filename)s:%(lineno)d %(funcName)s()] %(message)s"


def configured_level(settings_path=DEFAULT_SETTINGS_PATH) -> int:
    """Level named by `[env] log_level` in settings.toml, INFO when unset.

    A missing settings file also means INFO, so modules can be imported
    from any working directory.
    """
    if not os.path.exists(settings_path):
        return logging.INFO
    name = _load_settings(settings_path).get("env", {}).get("log_level", "INFO")
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(
    name="docstore",
    log_file="docstore.log",
    level=None,
    max_bytes=5 * 1024 * 1024,
    backup_count=3,
    settings_path=DEFAULT_SETTINGS_PATH,
):
    """Attach a rotating file handler and a stream handler to a named logger.

    Log files land in the project's ./logs/ directory unless an absolute
    path is given (tests pass one under tmpdir). Without an explicit
    level the logger follows `[env] log_level`, which is what
    `docstore log-level` rewrites.

    Example usage:
    from logging_config import setup_logging
    logger = setup_logging(__name__, log_file="sql_store.log")
    """
    logger = logging.getLogger(name)
    if logger.hasHandlers():
        logger.handlers.clear()

    if os.path.isabs(log_file):
        log_path = log_file
    else:
        os.makedirs(LOGS_DIR, exist_ok=True)
        log_path = os.path.join(LOGS_DIR, os.path.basename(log_file))

    formatter = logging.Formatter(LOG_FORMAT)
    handlers = (
        RotatingFileHandler(log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"),
        logging.StreamHandler(),
    )
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(configured_level(settings_path) if level is None else level)
    return logger
