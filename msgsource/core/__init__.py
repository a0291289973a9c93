"""
Core module - Database access

This module provides:
- database: Scoped connections and app config storage
- schema: Database initialization, migrations and catalogue provisioning
- repository: Catalogue and translation unit persistence
"""

from msgsource.core.database import (
    DB_FILE,
    get_db_file,
    get_connection,
    # App config operations
    get_app_config,
    set_app_config,
)

from msgsource.core.schema import (
    DB_VERSION,
    get_db_version,
    set_db_version,
    initialize_database,
    ensure_all_schemas,
    migrate_database,
    create_catalogue,
)

from msgsource.core.repository import CatalogueRepository, CatalogueStore
