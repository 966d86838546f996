import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from starlette.concurrency import run_in_threadpool

from tablebook.api.dependencies import error_detail, get_gateway, get_store, to_http_exception
from tablebook.api.schemas.responses import payment_response, ticket_response
from tablebook.api.schemas.schemas import PaymentResponse, TicketResponse, WebhookResponse
from tablebook.application.payment_reconciliation import PaymentReconciliationService
from tablebook.domain.codes import parse_record_id
from tablebook.domain.exceptions import TablebookError, TicketNotFoundError
from tablebook.infrastructure.gateway.razorpay_gateway import RazorpayPaymentGateway
from tablebook.infrastructure.store import RecordStore

router = APIRouter(tags=["payments"])
logger = logging.getLogger(__name__)


@router.get("/payments/{payment_id}", response_model=PaymentResponse)
def get_payment(payment_id: str, store: RecordStore = Depends(get_store)):
    try:
        return payment_response(store.get_payment(parse_record_id(payment_id, "payment id")))
    except TablebookError as exc:
        raise to_http_exception(exc) from exc


@router.get("/tickets/code/{code}", response_model=TicketResponse)
def get_ticket_by_code(code: str, store: RecordStore = Depends(get_store)):
    try:
        ticket = store.find_ticket_by_code(code)
        if ticket is None:
            raise TicketNotFoundError(code)
    except TablebookError as exc:
        raise to_http_exception(exc) from exc
    return ticket_response(ticket)


@router.get("/tickets/{ticket_id}", response_model=TicketResponse)
def get_ticket(ticket_id: str, store: RecordStore = Depends(get_store)):
    try:
        return ticket_response(store.get_ticket(parse_record_id(ticket_id, "ticket id")))
    except TablebookError as exc:
        raise to_http_exception(exc) from exc


@router.post("/payments/webhook", response_model=WebhookResponse)
async def razorpay_webhook(
    request: Request,
    x_razorpay_signature: str | None = Header(default=None),
    x_razorpay_event_id: str | None = Header(default=None),
    store: RecordStore = Depends(get_store),
    gateway: RazorpayPaymentGateway = Depends(get_gateway),
):
    # Signature is computed over the raw bytes, so read the body unparsed.
    body = (await request.body()).decode("utf-8")

    if not x_razorpay_signature:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_detail("MISSING_SIGNATURE", "X-Razorpay-Signature header is required."),
        )

    try:
        verified = await run_in_threadpool(gateway.verify_webhook, body, x_razorpay_signature)
        if not verified:
            logger.warning("Rejected webhook with invalid signature. event_id=%s", x_razorpay_event_id)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=error_detail("INVALID_SIGNATURE", "Webhook signature verification failed."),
            )
        payment = await run_in_threadpool(
            PaymentReconciliationService(store).apply_webhook,
            body,
            x_razorpay_event_id or "",
        )
    except TablebookError as exc:
        raise to_http_exception(exc) from exc

    if payment is None:
        return WebhookResponse(status="ignored")
    return WebhookResponse(
        status="processed",
        payment_id=payment.id,
        payment_status=payment.status.value,
    )
