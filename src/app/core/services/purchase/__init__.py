"""Purchase transaction services."""

from .errors import (
    CommitFailedError,
    EmptyOrderError,
    ErrorCategory,
    InsufficientStockError,
    InvalidRequestError,
    MissingUserError,
    ProductNotFoundError,
    PurchaseError,
    PurchaseValidationError,
    StoreWriteFailedError,
    TransactionStartError,
)
from .product_store import (
    LockedProduct,
    ProductStore,
    ProductStoreError,
    ProductTransaction,
    SqlProductStore,
    SqlProductTransaction,
    StoreBeginError,
    StoreCommitError,
    StoreReadError,
    StoreWriteError,
)
from .purchase_service import PurchaseService

__all__ = [
    # Service
    "PurchaseService",
    # Store
    "LockedProduct",
    "ProductStore",
    "ProductTransaction",
    "SqlProductStore",
    "SqlProductTransaction",
    "ProductStoreError",
    "StoreBeginError",
    "StoreCommitError",
    "StoreReadError",
    "StoreWriteError",
    # Errors
    "ErrorCategory",
    "PurchaseError",
    "PurchaseValidationError",
    "MissingUserError",
    "EmptyOrderError",
    "InvalidRequestError",
    "ProductNotFoundError",
    "InsufficientStockError",
    "TransactionStartError",
    "StoreWriteFailedError",
    "CommitFailedError",
]
