"""Service fixtures for testing."""

from collections.abc import Generator
from contextlib import contextmanager
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from src.app.core.services import DbSessionService, PurchaseService, SqlProductStore
from src.app.core.services.purchase import ProductTransaction
from src.app.runtime.config.config_data import ConfigData
from tests.fixtures.core import SCENARIO_PRODUCTS
from tests.fixtures.store import InMemoryProductStore


@pytest.fixture
def product_store(seeded_engine: Engine) -> SqlProductStore:
    return SqlProductStore(DbSessionService(ConfigData(), engine=seeded_engine).get_session)


@pytest.fixture
def purchase_service(product_store: SqlProductStore) -> PurchaseService:
    return PurchaseService(product_store)


@pytest.fixture
def memory_store() -> InMemoryProductStore:
    return InMemoryProductStore(
        {sku: (price, quantity) for sku, (_, price, quantity) in SCENARIO_PRODUCTS.items()}
    )


@pytest.fixture
def mock_txn() -> MagicMock:
    """Transaction double; configure ``lock_for_update`` per test."""
    return MagicMock(spec=ProductTransaction)


@pytest.fixture
def mock_store(mock_txn: MagicMock) -> MagicMock:
    """Store double that yields ``mock_txn`` and rolls it back when the block raises."""
    store = MagicMock()

    @contextmanager
    def transaction():
        try:
            yield mock_txn
        except BaseException:
            mock_txn.rollback()
            raise

    store.transaction.side_effect = transaction
    return store


@pytest.fixture
def client(seeded_engine: Engine) -> Generator[TestClient]:
    """Test client whose app talks to the seeded in-memory database."""
    from src.app.api.http.app import app, build_dependencies

    app.state.app_dependencies = build_dependencies(
        DbSessionService(ConfigData(), engine=seeded_engine)
    )
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
        app.state.app_dependencies = None
