"""Purchase failure taxonomy.

Every failure carries the caller-facing message and a category. The HTTP
layer maps categories to status codes; nothing else inspects them.
"""

from enum import StrEnum


class ErrorCategory(StrEnum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    BUSINESS = "business"
    INFRASTRUCTURE = "infrastructure"


class PurchaseError(Exception):
    """Base class for all purchase failures."""

    category: ErrorCategory = ErrorCategory.INFRASTRUCTURE

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PurchaseValidationError(PurchaseError):
    """The request was rejected before any store interaction."""

    category = ErrorCategory.VALIDATION


class MissingUserError(PurchaseValidationError):
    def __init__(self) -> None:
        super().__init__("user id required")


class EmptyOrderError(PurchaseValidationError):
    def __init__(self) -> None:
        super().__init__("no items provided")


class InvalidRequestError(PurchaseValidationError):
    def __init__(self) -> None:
        super().__init__("invalid JSON body")


class ProductNotFoundError(PurchaseError):
    """No product row for the SKU, or the locking read failed."""

    category = ErrorCategory.NOT_FOUND

    def __init__(self, sku: str) -> None:
        super().__init__(f"product not found or error scanning for sku: {sku}")
        self.sku = sku


class InsufficientStockError(PurchaseError):
    category = ErrorCategory.BUSINESS

    def __init__(self, sku: str) -> None:
        super().__init__(f"insufficient quantity for sku: {sku}")
        self.sku = sku


class TransactionStartError(PurchaseError):
    def __init__(self) -> None:
        super().__init__("could not start transaction")


class StoreWriteFailedError(PurchaseError):
    def __init__(self, sku: str) -> None:
        super().__init__(f"failed to update quantity for sku: {sku}")
        self.sku = sku


class CommitFailedError(PurchaseError):
    """The commit did not go through; the final store state is unknown."""

    def __init__(self) -> None:
        super().__init__("transaction commit failed")
