"""Tests for SqlProductStore over an in-memory SQLite database."""

from decimal import Decimal
from unittest.mock import MagicMock, call, patch

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.engine import Engine

from src.app.core.services import DbSessionService, SqlProductStore
from src.app.core.services.purchase import (
    LockedProduct,
    StoreBeginError,
    StoreCommitError,
    StoreReadError,
    StoreWriteError,
)
from src.app.runtime.config.config_data import ConfigData
from tests.fixtures.core import all_stock, stock_of


def _operational_error() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("database is locked"))


class TestLockForUpdate:
    def test_returns_price_and_quantity(self, product_store: SqlProductStore):
        with product_store.transaction() as txn:
            locked = txn.lock_for_update("120P90")

        assert locked == LockedProduct(sku="120P90", price=Decimal("10.00"), quantity=5)

    def test_unknown_sku_returns_none(self, product_store: SqlProductStore):
        with product_store.transaction() as txn:
            assert txn.lock_for_update("UNKNOWN") is None

    def test_statement_requests_row_lock(self, product_store: SqlProductStore):
        with product_store.transaction() as txn:
            with patch.object(txn._session, "exec", wraps=txn._session.exec) as exec_spy:
                txn.lock_for_update("120P90")

        statement = exec_spy.call_args.args[0]
        assert statement._for_update_arg is not None

    def test_database_error_becomes_read_error(self, product_store: SqlProductStore):
        with product_store.transaction() as txn:
            with patch.object(txn._session, "exec", side_effect=_operational_error()):
                with pytest.raises(StoreReadError):
                    txn.lock_for_update("120P90")


class TestDecrementQuantity:
    def test_committed_decrement_is_visible(
        self, product_store: SqlProductStore, seeded_engine: Engine
    ):
        with product_store.transaction() as txn:
            txn.decrement_quantity("120P90", 2)
            txn.commit()

        assert stock_of(seeded_engine, "120P90") == 3

    def test_decrement_below_zero_is_refused(
        self, product_store: SqlProductStore, seeded_engine: Engine
    ):
        with product_store.transaction() as txn:
            with pytest.raises(StoreWriteError):
                txn.decrement_quantity("43N23P", 3)

        assert stock_of(seeded_engine, "43N23P") == 2

    def test_decrement_of_unknown_sku_is_refused(self, product_store: SqlProductStore):
        with product_store.transaction() as txn:
            with pytest.raises(StoreWriteError):
                txn.decrement_quantity("UNKNOWN", 1)


class TestTransactionScope:
    def test_uncommitted_changes_are_rolled_back(
        self, product_store: SqlProductStore, seeded_engine: Engine
    ):
        before = all_stock(seeded_engine)

        with product_store.transaction() as txn:
            txn.decrement_quantity("120P90", 2)
            txn.decrement_quantity("43N23P", 1)

        assert all_stock(seeded_engine) == before

    def test_rollback_on_exception(
        self, product_store: SqlProductStore, seeded_engine: Engine
    ):
        with pytest.raises(ValueError):
            with product_store.transaction() as txn:
                txn.decrement_quantity("120P90", 2)
                raise ValueError("caller failed")

        assert stock_of(seeded_engine, "120P90") == 5

    def test_rollback_on_interrupt(
        self, product_store: SqlProductStore, seeded_engine: Engine
    ):
        with pytest.raises(KeyboardInterrupt):
            with product_store.transaction() as txn:
                txn.decrement_quantity("120P90", 2)
                raise KeyboardInterrupt

        assert stock_of(seeded_engine, "120P90") == 5

    def test_session_is_closed_after_commit(self):
        session = MagicMock()
        store = SqlProductStore(lambda: session)

        with store.transaction() as txn:
            txn.commit()

        session.commit.assert_called_once()
        session.rollback.assert_not_called()
        session.close.assert_called_once()

    def test_begin_failure(self):
        session = MagicMock()
        session.connection.side_effect = _operational_error()
        store = SqlProductStore(lambda: session)

        with pytest.raises(StoreBeginError):
            with store.transaction():
                pass

        session.close.assert_called_once()

    def test_commit_failure(self):
        session = MagicMock()
        session.commit.side_effect = _operational_error()
        store = SqlProductStore(lambda: session)

        with pytest.raises(StoreCommitError):
            with store.transaction() as txn:
                txn.commit()

        session.rollback.assert_called_once()
        session.close.assert_called_once()

    def test_rollback_errors_are_ignored(self):
        session = MagicMock()
        session.rollback.side_effect = _operational_error()
        store = SqlProductStore(lambda: session)

        with pytest.raises(ValueError, match="original"):
            with store.transaction():
                raise ValueError("original")

        session.close.assert_called_once()


class TestLockTimeout:
    def test_lock_timeout_set_on_postgresql(self):
        session = MagicMock()
        session.connection.return_value.dialect.name = "postgresql"
        store = SqlProductStore(lambda: session, lock_timeout_ms=750)

        with store.transaction() as txn:
            txn.commit()

        statement = session.connection.return_value.execute.call_args.args[0]
        assert str(statement) == "SET LOCAL lock_timeout = 750"

    def test_sqlite_uses_busy_timeout_and_immediate_begin(self):
        session = MagicMock()
        connection = session.connection.return_value
        connection.dialect.name = "sqlite"
        store = SqlProductStore(lambda: session, lock_timeout_ms=750)

        with store.transaction() as txn:
            txn.commit()

        assert connection.exec_driver_sql.call_args_list == [
            call("PRAGMA busy_timeout = 750"),
            call("BEGIN IMMEDIATE"),
        ]
        connection.execute.assert_not_called()

    def test_sqlite_without_lock_timeout_only_begins(self):
        session = MagicMock()
        connection = session.connection.return_value
        connection.dialect.name = "sqlite"
        store = SqlProductStore(lambda: session)

        with store.transaction() as txn:
            txn.commit()

        connection.exec_driver_sql.assert_called_once_with("BEGIN IMMEDIATE")

    def test_sqlite_transaction_is_open_before_the_first_read(self, seeded_engine: Engine):
        store = SqlProductStore(
            DbSessionService(ConfigData(), engine=seeded_engine).get_session,
            lock_timeout_ms=750,
        )

        with store.transaction() as txn:
            dbapi_connection = txn._session.connection().connection.dbapi_connection
            assert dbapi_connection.in_transaction
            assert txn.lock_for_update("120P90") is not None

        assert not dbapi_connection.in_transaction

    def test_sqlite_busy_database_fails_to_begin(self):
        session = MagicMock()
        connection = session.connection.return_value
        connection.dialect.name = "sqlite"
        connection.exec_driver_sql.side_effect = _operational_error()
        store = SqlProductStore(lambda: session)

        with pytest.raises(StoreBeginError):
            with store.transaction():
                pass

        session.close.assert_called_once()

    def test_no_lock_timeout_by_default(self):
        session = MagicMock()
        session.connection.return_value.dialect.name = "postgresql"
        store = SqlProductStore(lambda: session)

        with store.transaction() as txn:
            txn.commit()

        session.connection.return_value.execute.assert_not_called()
