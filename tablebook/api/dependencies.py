import logging

from fastapi import HTTPException, status

from tablebook.domain.exceptions import (
    AmountMismatchError,
    CodeAllocationExhaustedError,
    GatewayError,
    GuestNotFoundError,
    InvalidArgumentError,
    InvalidStateTransitionError,
    NotFoundError,
    StoreUnavailableError,
    TablebookError,
)
from tablebook.infrastructure.db.session import SessionLocal
from tablebook.infrastructure.gateway.razorpay_gateway import RazorpayPaymentGateway
from tablebook.infrastructure.store import RecordStore

logger = logging.getLogger(__name__)

# First match wins, so subclasses go before their bases.
_STATUS_BY_ERROR: tuple[tuple[type[TablebookError], int], ...] = (
    (InvalidArgumentError, status.HTTP_400_BAD_REQUEST),
    (GuestNotFoundError, status.HTTP_400_BAD_REQUEST),
    (AmountMismatchError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidStateTransitionError, status.HTTP_409_CONFLICT),
    (GatewayError, status.HTTP_502_BAD_GATEWAY),
    (StoreUnavailableError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (CodeAllocationExhaustedError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def error_detail(code: str, message: str) -> dict[str, str]:
    return {"code": code, "message": message}


def to_http_exception(exc: TablebookError) -> HTTPException:
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, mapped_status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = mapped_status
            break

    if status_code >= 500:
        logger.error("Request failed. code=%s error=%s", exc.code, exc)
    return HTTPException(status_code=status_code, detail=error_detail(exc.code, str(exc)))


def get_store() -> RecordStore:
    return RecordStore(SessionLocal)


def get_gateway() -> RazorpayPaymentGateway:
    try:
        return RazorpayPaymentGateway.from_env()
    except GatewayError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_detail("GATEWAY_NOT_CONFIGURED", str(exc)),
        ) from exc
