"""Entities module with hybrid entity-centric structure.

Each entity has its own package containing:
- entity.py: Domain model with business logic
- table.py: Database persistence model (persisted entities only)
- repository.py: Data access layer (persisted entities only)
"""

from .service.product import DuplicateSkuError, Product, ProductRepository, ProductTable
from .service.purchase import PurchaseLineItem, PurchaseReceipt, PurchaseRequest

__all__ = [
    "DuplicateSkuError",
    "Product",
    "ProductRepository",
    "ProductTable",
    "PurchaseLineItem",
    "PurchaseReceipt",
    "PurchaseRequest",
]
