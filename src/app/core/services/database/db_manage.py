"""Schema creation and catalog seeding."""

from decimal import Decimal

from loguru import logger
from sqlmodel import SQLModel

from src.app.core.services.database.db_session import DbSessionService
from src.app.entities.service.product import Product, ProductRepository, ProductTable

DEFAULT_CATALOG: tuple[Product, ...] = (
    Product(sku="120P90", name="Google TV", price=Decimal("49.99"), quantity=10),
    Product(sku="43N23P", name="Macbook Pro", price=Decimal("5399.99"), quantity=5),
    Product(sku="A304SD", name="Alexa Speaker", price=Decimal("109.50"), quantity=10),
    Product(sku="234234", name="Raspberry Pi", price=Decimal("30.00"), quantity=2),
)


class DbManageService:
    def __init__(self, database_service: DbSessionService):
        self._database_service = database_service

    def create_all(self) -> None:
        """Create all database tables."""
        SQLModel.metadata.create_all(
            self._database_service.engine, tables=[ProductTable.__table__]
        )
        logger.info("Database initialized with tables.")

    def seed_catalog(self, products: tuple[Product, ...] = DEFAULT_CATALOG) -> int:
        """Insert any of ``products`` whose SKU is not in the catalog yet.

        Returns:
            Number of products inserted.
        """
        inserted = 0
        with self._database_service.session_scope() as session:
            repository = ProductRepository(session)
            for product in products:
                if repository.get_by_sku(product.sku) is not None:
                    continue
                repository.create(product)
                inserted += 1

        logger.info("Seeded {} catalog products", inserted)
        return inserted
