"""Product catalog routes: list and add."""

from fastapi import APIRouter, Depends, HTTPException, Request
from loguru import logger
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session
from starlette.concurrency import run_in_threadpool

from src.app.api.http.deps import get_session
from src.app.entities.service.product import (
    DuplicateSkuError,
    Product,
    ProductRepository,
)

router = APIRouter()


@router.get("", response_model=list[Product])
def list_products(session: Session = Depends(get_session)) -> list[Product]:
    """List every product in the catalog."""
    try:
        return ProductRepository(session).list_all()
    except SQLAlchemyError as exc:
        logger.exception("Failed to list products")
        raise HTTPException(status_code=400, detail="error with fetching products") from exc


def _insert_product(session: Session, product: Product) -> None:
    try:
        ProductRepository(session).create(product)
        session.commit()
    except (DuplicateSkuError, SQLAlchemyError) as exc:
        session.rollback()
        raise HTTPException(status_code=400, detail="unable to add new product") from exc


@router.post("")
async def add_product(request: Request, session: Session = Depends(get_session)) -> str:
    """Add a product. Fails if the SKU is already in the catalog."""
    try:
        product = Product.model_validate_json(await request.body())
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail="unable to marshal JSON") from exc

    await run_in_threadpool(_insert_product, session, product)
    logger.info("Added product {}", product.sku)
    return "product successfully added"
