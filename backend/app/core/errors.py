"""Domain errors and their HTTP mapping.

Route handlers raise ``HTTPException`` directly. Services that must stay
free of FastAPI raise ``POSError`` subclasses instead; ``register_exception_handlers``
turns them into JSON responses with a Vietnamese ``detail`` the front-end
shows as a toast.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm.exc import StaleDataError

logger = logging.getLogger(__name__)


class POSError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "pos_error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class TaxCalculationError(POSError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "invalid_tax_input"


class InsufficientStockError(POSError):
    status_code = status.HTTP_409_CONFLICT
    code = "insufficient_stock"


class LoyaltyError(POSError):
    code = "loyalty_error"


class ShiftConflictError(POSError):
    status_code = status.HTTP_409_CONFLICT
    code = "shift_conflict"


class OrderStateError(POSError):
    code = "invalid_order_state"


async def pos_error_handler(request: Request, exc: POSError) -> JSONResponse:
    logger.warning("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
    )


async def stale_data_handler(request: Request, exc: StaleDataError) -> JSONResponse:
    logger.warning("Version conflict on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "detail": "Dữ liệu đã được thay đổi bởi người khác, vui lòng tải lại",
            "code": "version_conflict",
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(POSError, pos_error_handler)
    app.add_exception_handler(StaleDataError, stale_data_handler)
