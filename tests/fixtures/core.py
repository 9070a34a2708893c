from __future__ import annotations

from collections.abc import Generator
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import StaticPool
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine, select

from src.app.core.services import DbSessionService
from src.app.entities.service.product import ProductTable
from src.app.runtime.config.config_data import ConfigData

# Stock used by the purchase scenarios: two products, small quantities
SCENARIO_PRODUCTS: dict[str, tuple[str, Decimal, int]] = {
    "120P90": ("Google TV", Decimal("10.00"), 5),
    "43N23P": ("Macbook Pro", Decimal("20.00"), 2),
}


@pytest.fixture
def engine() -> Generator[Engine]:
    """Fresh in-memory database per test with the product table created."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine, tables=[ProductTable.__table__])
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session(engine: Engine) -> Generator[Session]:
    with Session(engine) as session:
        try:
            yield session
        finally:
            session.rollback()


@pytest.fixture
def database_service(engine: Engine) -> DbSessionService:
    return DbSessionService(ConfigData(), engine=engine)


@pytest.fixture
def seeded_engine(engine: Engine) -> Engine:
    """Engine whose product table holds ``SCENARIO_PRODUCTS``."""
    with Session(engine) as session:
        for sku, (name, price, quantity) in SCENARIO_PRODUCTS.items():
            session.add(ProductTable(sku=sku, name=name, price=price, quantity=quantity))
        session.commit()
    return engine


@pytest.fixture
def seeded_file_engine(tmp_path: Path) -> Generator[Engine]:
    """File-backed database holding ``SCENARIO_PRODUCTS``.

    Each pooled connection is separate, so concurrent transactions contend for
    the SQLite write lock the way separate processes would.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'checkout.db'}",
        connect_args={"check_same_thread": False, "timeout": 10},
    )
    SQLModel.metadata.create_all(engine, tables=[ProductTable.__table__])
    with Session(engine) as session:
        for sku, (name, price, quantity) in SCENARIO_PRODUCTS.items():
            session.add(ProductTable(sku=sku, name=name, price=price, quantity=quantity))
        session.commit()
    try:
        yield engine
    finally:
        engine.dispose()


def stock_of(engine: Engine, sku: str) -> int | None:
    """Committed quantity of ``sku``, read through a session of its own."""
    with Session(engine) as session:
        row = session.exec(select(ProductTable).where(ProductTable.sku == sku)).first()
        return None if row is None else row.quantity


def all_stock(engine: Engine) -> dict[str, int]:
    with Session(engine) as session:
        return {row.sku: row.quantity for row in session.exec(select(ProductTable)).all()}
