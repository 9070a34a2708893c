"""Product catalog data access."""

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .entity import Product
from .table import ProductTable


class DuplicateSkuError(Exception):
    """Raised when inserting a product whose SKU already exists."""

    def __init__(self, sku: str) -> None:
        super().__init__(f"product with sku {sku} already exists")
        self.sku = sku


class ProductRepository:
    """Data-access layer for the product catalog."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def list_all(self) -> list[Product]:
        rows = self._session.exec(select(ProductTable).order_by(ProductTable.sku)).all()
        return [Product.model_validate(row, from_attributes=True) for row in rows]

    def get_by_sku(self, sku: str) -> Product | None:
        row = self._session.exec(
            select(ProductTable).where(ProductTable.sku == sku)
        ).first()
        if row is None:
            return None
        return Product.model_validate(row, from_attributes=True)

    def create(self, product: Product) -> Product:
        """Insert a product. The caller owns the commit.

        Raises:
            DuplicateSkuError: If the SKU is already in the catalog.
        """
        row = ProductTable(
            id=product.id,
            sku=product.sku,
            name=product.name,
            price=product.price,
            quantity=product.quantity,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )
        self._session.add(row)
        try:
            self._session.flush()
        except IntegrityError as exc:
            self._session.rollback()
            logger.warning("Rejected product insert for sku {}: {}", product.sku, exc.orig)
            raise DuplicateSkuError(product.sku) from exc
        self._session.refresh(row)
        return Product.model_validate(row, from_attributes=True)
