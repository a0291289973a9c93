import logging
import os
from pathlib import Path

LOG_DIR = Path(__file__).parent.parent / "logs"
LOG_FILE = LOG_DIR / "app.log"

LOG_MODE_ENV = "MSGSOURCE_LOG_MODE"
LOG_MODES = ("off", "info", "debug")

# Cache for log mode to avoid repeated config reads
_log_mode_cache = None

_log_format = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')


def _get_log_mode():
    """Get log mode from the environment, then from stored configuration."""
    global _log_mode_cache
    if _log_mode_cache is not None:
        return _log_mode_cache

    env_mode = os.environ.get(LOG_MODE_ENV, "").strip().lower()
    if env_mode in LOG_MODES:
        _log_mode_cache = env_mode
        return env_mode

    try:
        from msgsource.core import database as db
        # Reading config before the database exists would create it as a side effect
        if not db.get_db_file().exists():
            return 'off'
        from msgsource.config import load_config
        log_mode = load_config().get('log_mode', 'off')
        if log_mode not in LOG_MODES:
            log_mode = 'off'
        _log_mode_cache = log_mode
        return log_mode
    except Exception:
        # If config loading fails, default to 'off'
        return 'off'


def _levels_for(log_mode):
    """Return (logger_level, console_level) for a log mode."""
    if log_mode == 'debug':
        return logging.DEBUG, logging.DEBUG
    if log_mode == 'off':
        # Higher than CRITICAL disables everything
        return logging.CRITICAL + 1, logging.CRITICAL + 1
    return logging.INFO, logging.INFO


def _file_handler():
    LOG_DIR.mkdir(exist_ok=True)
    f_handler = logging.FileHandler(LOG_FILE, encoding='utf-8')
    f_handler.setLevel(logging.DEBUG)
    f_handler.setFormatter(_log_format)
    return f_handler


def _apply_mode(logger, log_mode):
    """Bring an already configured logger in line with ``log_mode``."""
    logger_level, console_level = _levels_for(log_mode)
    logger.setLevel(logger_level)

    has_file_handler = any(isinstance(h, logging.FileHandler) for h in logger.handlers)

    if log_mode != 'off' and not has_file_handler:
        logger.addHandler(_file_handler())
    elif log_mode == 'off' and has_file_handler:
        handlers_to_remove = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
        for handler in handlers_to_remove:
            handler.close()
            logger.removeHandler(handler)

    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
            handler.setLevel(console_level)


def _clear_log_mode_cache():
    """Clear the log mode cache and update all existing loggers (call this when config is updated)."""
    global _log_mode_cache
    _log_mode_cache = None

    log_mode = _get_log_mode()

    # Only our own loggers with handlers were created by get_logger
    for logger_name in list(logging.Logger.manager.loggerDict.keys()):
        logger = logging.getLogger(logger_name)
        if logger_name.startswith("msgsource") and logger.handlers:
            _apply_mode(logger, log_mode)


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)

    log_mode = _get_log_mode()

    # Prevent duplicate handlers if logger already configured
    if logger.handlers:
        _apply_mode(logger, log_mode)
        return logger

    logger_level, console_level = _levels_for(log_mode)
    logger.setLevel(logger_level)

    if log_mode != 'off':
        logger.addHandler(_file_handler())

    # Console handler stays attached so a later mode switch can re-enable it
    c_handler = logging.StreamHandler()
    c_handler.setLevel(console_level)
    c_handler.setFormatter(_log_format)
    logger.addHandler(c_handler)

    return logger
