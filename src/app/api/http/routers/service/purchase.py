"""Purchase route and the mapping of purchase failures onto HTTP responses."""

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool
from starlette.responses import JSONResponse

from src.app.api.http.deps import get_purchase_service
from src.app.core.services.purchase import (
    ErrorCategory,
    InvalidRequestError,
    PurchaseError,
    PurchaseService,
)
from src.app.entities.service.purchase import PurchaseReceipt, PurchaseRequest

router = APIRouter()

STATUS_BY_CATEGORY: dict[ErrorCategory, int] = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.NOT_FOUND: 400,
    ErrorCategory.BUSINESS: 400,
    ErrorCategory.INFRASTRUCTURE: 500,
}


async def purchase_error_handler(request: Request, exc: PurchaseError) -> JSONResponse:
    """Render a ``PurchaseError`` as ``{"error": message}``."""
    return JSONResponse(
        status_code=STATUS_BY_CATEGORY[exc.category],
        content={"error": exc.message},
    )


@router.post("", response_model=PurchaseReceipt)
async def purchase_items(
    request: Request,
    purchase_service: PurchaseService = Depends(get_purchase_service),
) -> PurchaseReceipt:
    """Buy every requested item or none of them.

    The body is decoded here rather than by FastAPI so that a malformed body
    gets the same ``{"error": ...}`` shape as every other purchase failure.
    """
    try:
        body = PurchaseRequest.model_validate_json(await request.body())
    except ValidationError as exc:
        raise InvalidRequestError() from exc

    # The transaction blocks on row locks; keep it off the event loop
    return await run_in_threadpool(purchase_service.purchase, body.user_id, body.items)
