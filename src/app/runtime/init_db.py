"""Database initialization script.

Usage: python -m src.app.runtime.init_db
"""

from src.app.core.services import DbManageService, DbSessionService
from src.app.runtime.context import get_config


def init_db(seed: bool = True) -> None:
    """Create the product table and, unless ``seed`` is false, load the default catalog."""
    database_service = DbSessionService(get_config())
    manage_service = DbManageService(database_service)
    manage_service.create_all()
    if seed:
        manage_service.seed_catalog()
    database_service.dispose()


if __name__ == "__main__":
    init_db()
