"""Core services exports."""

# Database Services
from .database.db_manage import DbManageService
from .database.db_session import DbSessionService

# Purchase Services
from .purchase import PurchaseService, SqlProductStore

__all__ = [
    # Database Services
    "DbManageService",
    "DbSessionService",
    # Purchase Services
    "PurchaseService",
    "SqlProductStore",
]
