"""HTTP surface for the quotation core (FastAPI).

Thin routes over the application handlers.  Domain errors are turned into
``{"error": <kind>, "message": <text>}`` bodies by a single handler.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from decimal import Decimal

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from qms.application.approve_quotation import ApproveQuotationHandler
from qms.application.cancel_quotation import CancelQuotationHandler
from qms.application.create_quotation import CreateQuotationHandler
from qms.application.dto import QuotationItemSpec
from qms.application.list_quotations import ListQuotationsHandler, QuotationFilters
from qms.application.show_quotation import ShowQuotationHandler
from qms.application.submit_quotation import SubmitQuotationHandler
from qms.domain.exceptions import (
    ConcurrentModificationError,
    DependencyTimeoutError,
    DependencyUnavailableError,
    DomainException,
    EntityNotFoundError,
    InsufficientStockError,
    InvalidStateError,
    ValidationError,
)
from qms.domain.ports.event_channel import EventPublisher
from qms.domain.ports.product_lookup import ProductLookup
from qms.domain.repository.inventory_store import InventoryStore
from qms.domain.repository.quotation_repository import QuotationRepository
from qms.infrastructure import bootstrap
from qms.infrastructure.logging_config import configure_logging

logger = logging.getLogger(__name__)

# Most specific first
_STATUS_BY_ERROR: list[tuple[type[DomainException], int]] = [
    (ValidationError, 400),
    (EntityNotFoundError, 404),
    (InvalidStateError, 409),
    (ConcurrentModificationError, 409),
    (InsufficientStockError, 409),
    (DependencyTimeoutError, 504),
    (DependencyUnavailableError, 503),
]


def status_for(exc: DomainException) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


# ── Dependencies (overridable in tests) ─────────────


def get_quotation_repo() -> QuotationRepository:
    return bootstrap.quotation_repository()


def get_product_lookup() -> ProductLookup:
    return bootstrap.product_lookup()


def get_publisher() -> EventPublisher:
    return bootstrap.event_channel()


def get_inventory_store() -> InventoryStore:
    return bootstrap.inventory_store()


# ── Request Models ──────────────────────────────────


class QuotationItemRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="productId")
    quantity: int


class CreateQuotationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    customer_id: str = Field(alias="customerId")
    items: list[QuotationItemRequest]


configure_logging(bootstrap.settings().log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    bootstrap.close_resources()


app = FastAPI(title="Quotation Service", lifespan=lifespan)


@app.exception_handler(DomainException)
async def domain_error_handler(request: Request, exc: DomainException) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content={"error": exc.kind, "message": str(exc)})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": ValidationError.kind, "message": str(exc.errors())},
    )


# ── Quotation Endpoints ─────────────────────────────


@app.post("/api/v1/quotations", status_code=201)
def create_quotation(
    req: CreateQuotationRequest,
    repo: QuotationRepository = Depends(get_quotation_repo),
    lookup: ProductLookup = Depends(get_product_lookup),
):
    handler = CreateQuotationHandler(repo, lookup)
    quotation_id = handler.handle(
        customer_id=req.customer_id,
        item_specs=[QuotationItemSpec(i.product_id, i.quantity) for i in req.items],
    )
    return {"quotationId": quotation_id}


@app.get("/api/v1/quotations")
def list_quotations(
    status: str | None = None,
    customer_id: str | None = Query(None, alias="customerId"),
    min_amount: Decimal | None = Query(None, alias="minAmount"),
    max_amount: Decimal | None = Query(None, alias="maxAmount"),
    limit: int | None = None,
    offset: int = 0,
    repo: QuotationRepository = Depends(get_quotation_repo),
):
    filters = QuotationFilters(
        status=status,
        customer_id=customer_id,
        min_amount=min_amount,
        max_amount=max_amount,
        limit=limit,
        offset=offset,
    )
    return ListQuotationsHandler(repo).handle(filters)


@app.get("/api/v1/quotations/{quotation_id}")
def show_quotation(
    quotation_id: str,
    repo: QuotationRepository = Depends(get_quotation_repo),
):
    return ShowQuotationHandler(repo).handle(quotation_id)


@app.post("/api/v1/quotations/{quotation_id}/submit")
def submit_quotation(
    quotation_id: str,
    repo: QuotationRepository = Depends(get_quotation_repo),
):
    SubmitQuotationHandler(repo).handle(quotation_id)
    return {"quotationId": quotation_id, "status": "PENDING"}


@app.post("/api/v1/quotations/{quotation_id}/approve")
def approve_quotation(
    quotation_id: str,
    repo: QuotationRepository = Depends(get_quotation_repo),
    lookup: ProductLookup = Depends(get_product_lookup),
    publisher: EventPublisher = Depends(get_publisher),
):
    event = ApproveQuotationHandler(repo, lookup, publisher).handle(quotation_id)
    return {
        "quotationId": quotation_id,
        "status": "SOLD",
        "totalAmount": str(event.total_amount),
    }


@app.post("/api/v1/quotations/{quotation_id}/cancel")
def cancel_quotation(
    quotation_id: str,
    repo: QuotationRepository = Depends(get_quotation_repo),
):
    CancelQuotationHandler(repo).handle(quotation_id)
    return {"quotationId": quotation_id, "status": "CANCELLED"}


# ── Product Endpoints (inventory side) ──────────────


def _product_body(product) -> dict:
    return {
        "id": product.id,
        "sku": product.sku,
        "name": product.name,
        "price": str(product.price.amount),
        "stock": product.stock,
    }


@app.get("/api/v1/products")
def list_products(
    ids: str | None = None,
    store: InventoryStore = Depends(get_inventory_store),
):
    """All products, or only those named in ``?ids=a,b`` (missing ids are skipped)."""
    if ids is None:
        return [_product_body(p) for p in store.list_products()]
    wanted = [i.strip() for i in ids.split(",") if i.strip()]
    found = (store.get_product(product_id) for product_id in dict.fromkeys(wanted))
    return [_product_body(p) for p in found if p is not None]


@app.get("/api/v1/products/{product_id}")
def get_product(
    product_id: str,
    store: InventoryStore = Depends(get_inventory_store),
):
    product = store.get_product(product_id)
    if product is None:
        raise EntityNotFoundError(f"Product '{product_id}' not found")
    return _product_body(product)


@app.get("/health")
def health():
    return {"status": "ok", "service": "quotation-service"}
