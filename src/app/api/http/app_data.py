from dataclasses import dataclass

from src.app.core.services import DbSessionService, PurchaseService, SqlProductStore


@dataclass
class ApplicationDependencies:
    database_service: DbSessionService
    product_store: SqlProductStore
    purchase_service: PurchaseService
