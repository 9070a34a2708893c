"""Purchase request and receipt models."""

from decimal import Decimal
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_serializer,
    field_validator,
)


class PurchaseLineItem(BaseModel):
    """One requested SKU and how many units of it to buy."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    sku: str = Field(min_length=1)
    quantity: int = Field(gt=0, alias="qty")


class PurchaseRequest(BaseModel):
    """Inbound purchase body.

    Both fields default to empty, and an explicit null reads as empty too, so
    that a missing user or item list is reported by the purchase service
    instead of failing validation here.
    """

    user_id: str = ""
    items: list[PurchaseLineItem] = Field(default_factory=list)

    @field_validator("user_id", "items", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return "" if info.field_name == "user_id" else []
        return value


class PurchaseReceipt(BaseModel):
    """Outcome of a committed purchase."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str
    items_purchased: list[PurchaseLineItem]
    total_price: Decimal

    @field_serializer("total_price", when_used="json")
    def _total_as_number(self, total: Decimal) -> float:
        return float(total)
