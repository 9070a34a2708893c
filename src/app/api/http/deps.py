"""FastAPI dependency implementations."""

from __future__ import annotations

from collections.abc import Iterator

from fastapi import Request
from sqlmodel import Session

from src.app.api.http.app_data import ApplicationDependencies
from src.app.core.services import DbSessionService, PurchaseService


def get_app_dependencies(request: Request) -> ApplicationDependencies:
    return request.app.state.app_dependencies


def get_database_service(request: Request) -> DbSessionService:
    """Get the database service instance."""
    return get_app_dependencies(request).database_service


def get_session(request: Request) -> Iterator[Session]:
    """Yield a request-scoped database session and close it afterwards."""
    session = get_database_service(request).get_session()
    try:
        yield session
    finally:
        session.close()


def get_purchase_service(request: Request) -> PurchaseService:
    """Get the purchase service instance."""
    return get_app_dependencies(request).purchase_service
