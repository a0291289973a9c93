import json
from typing import Dict, Any

from msgsource.core import database as db
from msgsource.core.schema import initialize_database
from msgsource.logger import get_logger, _clear_log_mode_cache

logger = get_logger(__name__)

# Catalogue naming constants
DEFAULT_CATALOGUE = "messages"
CATALOGUE_SEPARATOR = "."
CACHE_KEY_SEPARATOR = ":"
LOCALE_SEPARATOR = "_"

# Default configuration
DEFAULT_CONFIG = {
    "default_catalogue": DEFAULT_CATALOGUE,
    "default_locale": "en",
    "author": "",
    "log_mode": "off"
}


def initialize_app():
    """
    Initialize the application.
    This function is called on first run or when performing a factory reset.
    It creates the database and default configuration in database.
    """
    logger.info("Initializing application...")

    initialize_database()
    logger.info("Database initialized")

    try:
        existing_config = db.get_app_config('config')
        if not existing_config:
            logger.info("No config in database, initializing default config")
            save_config(DEFAULT_CONFIG)
        else:
            logger.debug("Config already exists in database")
    except Exception as e:
        logger.error(f"Failed to check/initialize config in database: {e}")
        logger.warning("Application will use in-memory default configuration")

    logger.info("Application initialization complete")


def load_config() -> Dict[str, Any]:
    """Load the configuration from database, merged over the defaults."""
    config = DEFAULT_CONFIG.copy()
    try:
        config_json = db.get_app_config('config')
    except Exception as e:
        logger.error(f"Failed to load config from database: {e}")
        logger.warning("Using default configuration")
        return config

    if not config_json:
        logger.debug("No config in database, using defaults")
        return config

    try:
        stored = json.loads(config_json)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse config from database: {e}")
        logger.warning("Using default configuration")
        return config

    if isinstance(stored, dict):
        config.update(stored)
    logger.debug("Configuration loaded from database")
    return config


def save_config(config: Dict[str, Any]):
    """Save the configuration to database."""
    try:
        config_json = json.dumps(config, ensure_ascii=False)
        db.set_app_config('config', config_json)
        logger.info("Configuration saved to database")
        _clear_log_mode_cache()
    except Exception as e:
        logger.error(f"Failed to save config to database: {e}")
        raise


def factory_reset():
    """
    Perform a factory reset.
    WARNING: This will delete all catalogues and reset to defaults.
    """
    logger.warning("Performing factory reset...")

    db_file = db.get_db_file()
    if db_file.exists():
        db_file.unlink()
        logger.info("Database deleted")

    initialize_app()
    logger.info("Factory reset complete")
