"""Product database table model."""

from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from src.app.entities.core._base import EntityTable


class ProductTable(EntityTable, table=True):
    """Database persistence model for products.

    Quantity can never go below zero; the check constraint backs up the
    guarded decrement issued by purchases.
    """

    __tablename__ = "product"
    __table_args__ = (
        sa.CheckConstraint("quantity >= 0", name="ck_product_quantity_non_negative"),
    )

    sku: str = Field(unique=True, index=True, nullable=False)
    name: str = Field(nullable=False)
    price: Decimal = Field(max_digits=12, decimal_places=2, nullable=False)
    quantity: int = Field(nullable=False)
