"""Entity package: Purchase."""

from .entity import PurchaseLineItem, PurchaseReceipt, PurchaseRequest

__all__ = ["PurchaseLineItem", "PurchaseReceipt", "PurchaseRequest"]
