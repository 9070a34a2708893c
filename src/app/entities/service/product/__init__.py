"""Entity package: Product."""

from .entity import Product
from .repository import DuplicateSkuError, ProductRepository
from .table import ProductTable

__all__ = ["DuplicateSkuError", "Product", "ProductRepository", "ProductTable"]
