from collections.abc import Sequence
from decimal import Decimal

from loguru import logger

from src.app.core.services.purchase.errors import (
    CommitFailedError,
    EmptyOrderError,
    InsufficientStockError,
    MissingUserError,
    ProductNotFoundError,
    PurchaseError,
    StoreWriteFailedError,
    TransactionStartError,
)
from src.app.core.services.purchase.product_store import (
    ProductStore,
    ProductTransaction,
    StoreBeginError,
    StoreCommitError,
    StoreReadError,
    StoreWriteError,
)
from src.app.entities.service.purchase import PurchaseLineItem, PurchaseReceipt


class PurchaseService:
    """Buys a batch of line items as one all-or-nothing stock adjustment.

    Rows are locked one at a time in request order. Two purchases that lock
    the same SKUs in opposite orders can deadlock; the store's deadlock
    detector breaks the cycle and the losing purchase fails on its locking
    read.
    """

    def __init__(self, store: ProductStore) -> None:
        self._store = store

    def purchase(
        self, user_id: str, items: Sequence[PurchaseLineItem]
    ) -> PurchaseReceipt:
        """Decrement stock for every item and price the order, or change nothing.

        Args:
            user_id: Buyer identifier; must be non-empty.
            items: Line items in the order their rows should be locked.

        Returns:
            A receipt echoing ``items`` with the total at the locked prices.

        Raises:
            MissingUserError, EmptyOrderError: Before the store is touched.
            ProductNotFoundError, InsufficientStockError: Rolled back, store unchanged.
            TransactionStartError, StoreWriteFailedError: Store trouble, store unchanged.
            CommitFailedError: Outcome unknown; the caller must not assume either way.
        """
        if not user_id:
            raise MissingUserError()
        if not items:
            raise EmptyOrderError()

        log = logger.bind(user_id=user_id)
        log.info("purchase.start", item_count=len(items))

        try:
            total = self._execute(items)
        except CommitFailedError:
            log.exception("purchase.commit_failed")
            raise
        except PurchaseError as exc:
            log.bind(category=str(exc.category)).warning(
                "purchase.rejected: {}", exc.message
            )
            raise

        log.info("purchase.committed", item_count=len(items), total_price=str(total))
        return PurchaseReceipt(
            user_id=user_id, items_purchased=list(items), total_price=total
        )

    def _execute(self, items: Sequence[PurchaseLineItem]) -> Decimal:
        try:
            with self._store.transaction() as txn:
                total = Decimal("0")
                for item in items:
                    total += self._take_stock(txn, item)

                try:
                    txn.commit()
                except StoreCommitError as exc:
                    raise CommitFailedError() from exc
                return total
        except StoreBeginError as exc:
            raise TransactionStartError() from exc

    @staticmethod
    def _take_stock(txn: ProductTransaction, item: PurchaseLineItem) -> Decimal:
        """Lock one row, check it covers the item and decrement it. Returns the line total."""
        try:
            locked = txn.lock_for_update(item.sku)
        except StoreReadError as exc:
            raise ProductNotFoundError(item.sku) from exc

        if locked is None:
            raise ProductNotFoundError(item.sku)
        if locked.quantity < item.quantity:
            raise InsufficientStockError(item.sku)

        try:
            txn.decrement_quantity(item.sku, item.quantity)
        except StoreWriteError as exc:
            raise StoreWriteFailedError(item.sku) from exc

        return locked.price * item.quantity
