"""Transactional access to product stock.

A purchase talks to the store only through ``ProductStore.transaction()``,
which hands out a ``ProductTransaction`` and guarantees it is rolled back
and released unless it was committed, whatever way the block is left.
"""

from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from loguru import logger
from sqlalchemy import text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from src.app.entities.service.product import ProductTable


class ProductStoreError(Exception):
    """Base class for store-level failures (as opposed to business rules)."""


class StoreBeginError(ProductStoreError):
    pass


class StoreReadError(ProductStoreError):
    pass


class StoreWriteError(ProductStoreError):
    pass


class StoreCommitError(ProductStoreError):
    pass


@dataclass(frozen=True)
class LockedProduct:
    """Price and stock of a product row as seen under its row lock."""

    sku: str
    price: Decimal
    quantity: int


class ProductTransaction(Protocol):
    def lock_for_update(self, sku: str) -> LockedProduct | None:
        """Read a product row and hold an exclusive lock on it until the transaction ends."""
        ...

    def decrement_quantity(self, sku: str, amount: int) -> None:
        """Take ``amount`` units off the row's stock, never going below zero."""
        ...

    def commit(self) -> None: ...

    def rollback(self) -> None:
        """Best-effort; failures are logged, never raised."""
        ...


class ProductStore(Protocol):
    def transaction(self) -> AbstractContextManager[ProductTransaction]: ...


class SqlProductTransaction:
    """``ProductTransaction`` over a single SQLModel session."""

    def __init__(self, session: Session) -> None:
        self._session = session
        self.committed = False

    def lock_for_update(self, sku: str) -> LockedProduct | None:
        statement = (
            select(ProductTable.price, ProductTable.quantity)
            .where(ProductTable.sku == sku)
            .with_for_update()
        )
        try:
            row = self._session.exec(statement).first()
        except SQLAlchemyError as exc:
            raise StoreReadError(f"locking read failed for sku {sku}") from exc

        if row is None:
            return None
        price, quantity = row
        return LockedProduct(sku=sku, price=Decimal(price), quantity=quantity)

    def decrement_quantity(self, sku: str, amount: int) -> None:
        # The quantity guard keeps the write correct even if a caller skipped the lock
        statement = (
            update(ProductTable)
            .where(ProductTable.sku == sku, ProductTable.quantity >= amount)
            .values(quantity=ProductTable.quantity - amount)
        )
        try:
            result = self._session.connection().execute(statement)
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"quantity update failed for sku {sku}") from exc

        if result.rowcount != 1:
            raise StoreWriteError(
                f"quantity update for sku {sku} matched {result.rowcount} rows"
            )

    def commit(self) -> None:
        try:
            self._session.commit()
        except SQLAlchemyError as exc:
            raise StoreCommitError("commit failed") from exc
        self.committed = True

    def rollback(self) -> None:
        try:
            self._session.rollback()
        except SQLAlchemyError as exc:
            logger.warning("Rollback failed: {}", exc)


class SqlProductStore:
    """Product store backed by the ``product`` table.

    Args:
        session_factory: Returns a fresh session per transaction.
        lock_timeout_ms: Lock wait limit. Applied with ``SET LOCAL lock_timeout``
            on PostgreSQL and ``PRAGMA busy_timeout`` on SQLite.

    On SQLite every transaction starts with ``BEGIN IMMEDIATE``, so purchases
    serialize on the database write lock instead of on row locks.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        lock_timeout_ms: int | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._lock_timeout_ms = lock_timeout_ms

    def _begin(self, session: Session) -> None:
        connection = session.connection()
        dialect = connection.dialect.name

        if dialect == "postgresql" and self._lock_timeout_ms is not None:
            connection.execute(
                text(f"SET LOCAL lock_timeout = {int(self._lock_timeout_ms)}")
            )
        elif dialect == "sqlite":
            # SQLite ignores FOR UPDATE and pysqlite defers BEGIN to the first
            # write, so take the database write lock before the first read
            if self._lock_timeout_ms is not None:
                connection.exec_driver_sql(
                    f"PRAGMA busy_timeout = {int(self._lock_timeout_ms)}"
                )
            connection.exec_driver_sql("BEGIN IMMEDIATE")

    @contextmanager
    def transaction(self) -> Iterator[SqlProductTransaction]:
        session = self._session_factory()
        try:
            try:
                self._begin(session)
            except SQLAlchemyError as exc:
                raise StoreBeginError("could not begin transaction") from exc

            txn = SqlProductTransaction(session)
            try:
                yield txn
            finally:
                if not txn.committed:
                    txn.rollback()
        finally:
            session.close()
