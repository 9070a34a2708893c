"""Entity: Product."""

from decimal import Decimal
from typing import Any

from pydantic import ConfigDict, Field, field_serializer

from src.app.entities.core._base import Entity


class Product(Entity):
    """A stocked catalog item identified by its SKU.

    ``quantity`` travels as ``qty`` on the wire; both names are accepted when
    validating.
    """

    model_config = ConfigDict(populate_by_name=True)

    sku: str = Field(min_length=1, description="Stock-keeping unit, unique per product")
    name: str = Field(description="Display name")
    price: Decimal = Field(ge=0, max_digits=12, decimal_places=2, description="Unit price")
    quantity: int = Field(ge=0, alias="qty", description="Units in stock")

    @field_serializer("price", when_used="json")
    def _price_as_number(self, price: Decimal) -> float:
        return float(price)

    def __eq__(self, other: Any) -> bool:
        """Compare products by business attributes, ignoring timestamps."""
        if not isinstance(other, Product):
            return False

        return (
            self.sku == other.sku
            and self.name == other.name
            and self.price == other.price
            and self.quantity == other.quantity
        )

    def __hash__(self) -> int:
        """Hash based on business attributes, ignoring timestamps."""
        return hash((self.sku, self.name, self.price, self.quantity))
