"""Store service exceptions and their JSON translation.

Every error leaves the API as ``{"error": str, "details"?: [str]}``.
"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from libs.common.logging import get_logger

logger = get_logger(__name__)

GENERIC_VALIDATION_MESSAGE = "Invalid request"
MAX_REPORTED_FIELDS = 5
HIDDEN_FIELD = "honeypot"


class StoreError(Exception):
    """Base class for errors that map to an HTTP response."""

    status_code = 500
    public_message = "Something went wrong"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[list[str]] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message or self.public_message
        self.details = details or []
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class CheckoutValidationError(StoreError):
    """Malformed or out-of-bounds client input (including honeypot trips)."""

    status_code = 400
    public_message = GENERIC_VALIDATION_MESSAGE


class GatewayError(StoreError):
    """Paystack was unreachable or rejected the request."""

    status_code = 502
    public_message = "Payment could not be processed. Please try again."


class OrderNotFoundError(StoreError):
    status_code = 404
    public_message = "Order not found"


class InventoryItemNotFoundError(StoreError):
    status_code = 404
    public_message = "Inventory item not found"


def format_validation_errors(
    errors: list[dict], prefix: Optional[str] = None
) -> list[str]:
    """
    ``field: message`` lines for the first few failing fields.

    Hidden anti-bot fields are never named.
    """
    details = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        if HIDDEN_FIELD in location:
            continue
        if prefix:
            location.insert(0, prefix)
        field = ".".join(location) or "body"
        details.append(f"{field}: {error.get('msg', 'invalid')}")
    return details[:MAX_REPORTED_FIELDS]


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    content: dict = {"error": exc.message}
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = format_validation_errors(exc.errors())
    logger.info(
        "Rejected invalid request body",
        extra={"extra_fields": {"details": details}},
    )
    content: dict = {"error": GENERIC_VALIDATION_MESSAGE}
    if details:
        content["details"] = details
    return JSONResponse(status_code=400, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
