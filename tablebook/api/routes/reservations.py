import logging

from fastapi import APIRouter, Depends, status

from tablebook.api.dependencies import get_gateway, get_store, to_http_exception
from tablebook.api.schemas.responses import (
    reservation_details_response,
    reservation_outcome_response,
    reservation_response,
    ticket_response,
)
from tablebook.api.schemas.schemas import (
    PaymentIntentRequest,
    PaymentIntentResponse,
    PaymentLinkRequest,
    ReservationCreate,
    ReservationDetailsListResponse,
    ReservationDetailsResponse,
    ReservationResponse,
    ReservationsResponse,
    ReservationUpdate,
    ReservationWithPaymentRequest,
    ReservationWithPaymentResponse,
    TicketLinkRequest,
    TicketResponse,
)
from tablebook.application.reservation_service import (
    PaymentIntentCommand,
    ReservationOrchestrator,
    ReservationWithPaymentCommand,
)
from tablebook.domain.codes import parse_record_id
from tablebook.domain.exceptions import InvalidArgumentError, TablebookError
from tablebook.domain.pricing import format_money, from_minor_units, to_money
from tablebook.infrastructure.gateway.razorpay_gateway import RazorpayPaymentGateway
from tablebook.infrastructure.store import RecordStore

router = APIRouter(tags=["reservations"])
logger = logging.getLogger(__name__)


# -----------------------------
# Orchestrated workflow
# -----------------------------
@router.post(
    "/reservations/with-payment",
    response_model=ReservationWithPaymentResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_reservation_with_payment(
    request: ReservationWithPaymentRequest,
    store: RecordStore = Depends(get_store),
):
    command = ReservationWithPaymentCommand(
        table_id=request.table_id,
        event_id=request.event_id,
        owner_user_id=request.owner_user_id,
        guest_phone_numbers=list(request.guest_phone_numbers),
        payment_amount=request.payment_amount,
        gateway_transaction_id=request.gateway_transaction_id,
        contact_name=request.contact_name,
        contact_email=request.contact_email,
        contact_phone=request.contact_phone,
        special_requests=request.special_requests,
    )
    try:
        outcome = ReservationOrchestrator(store).create_reservation_with_payment(command)
    except TablebookError as exc:
        raise to_http_exception(exc) from exc
    return reservation_outcome_response(outcome)


@router.post(
    "/reservations/payment-intent",
    response_model=PaymentIntentResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_payment_intent(
    request: PaymentIntentRequest,
    store: RecordStore = Depends(get_store),
    gateway: RazorpayPaymentGateway = Depends(get_gateway),
):
    command = PaymentIntentCommand(
        table_id=request.table_id,
        event_id=request.event_id,
        owner_user_id=request.owner_user_id,
        guest_phone_numbers=list(request.guest_phone_numbers),
    )
    orchestrator = ReservationOrchestrator(store, gateway=gateway)
    try:
        intent = orchestrator.create_payment_intent(command)
    except TablebookError as exc:
        raise to_http_exception(exc) from exc

    return PaymentIntentResponse(
        intent_id=intent.id,
        client_secret=intent.client_secret,
        amount=format_money(from_minor_units(intent.amount_minor_units)),
        amount_minor_units=intent.amount_minor_units,
        currency=intent.currency,
    )


# -----------------------------
# Direct edit
# -----------------------------
@router.get("/reservations", response_model=ReservationsResponse)
def list_reservations(store: RecordStore = Depends(get_store)):
    try:
        reservations = store.list_reservations()
    except TablebookError as exc:
        raise to_http_exception(exc) from exc
    return ReservationsResponse(
        reservations=[reservation_response(reservation) for reservation in reservations]
    )


@router.get("/reservations/code/{code}", response_model=ReservationDetailsResponse)
def get_reservation_by_code(code: str, store: RecordStore = Depends(get_store)):
    try:
        reservation, table, event = store.get_reservation_details_by_code(code)
    except TablebookError as exc:
        raise to_http_exception(exc) from exc
    return reservation_details_response(reservation, table, event)


@router.get("/reservations/{reservation_id}", response_model=ReservationResponse)
def get_reservation(reservation_id: str, store: RecordStore = Depends(get_store)):
    try:
        return reservation_response(
            store.get_reservation(parse_record_id(reservation_id, "reservation id"))
        )
    except TablebookError as exc:
        raise to_http_exception(exc) from exc


@router.put("/reservations/{reservation_id}", response_model=ReservationResponse)
def update_reservation(
    reservation_id: str,
    request: ReservationUpdate,
    store: RecordStore = Depends(get_store),
):
    changes = request.model_dump(exclude_unset=True, exclude_none=True)
    try:
        reservation_id = parse_record_id(reservation_id, "reservation id")
        reservation = store.update_reservation(reservation_id, changes)
    except TablebookError as exc:
        raise to_http_exception(exc) from exc

    logger.info("Reservation updated. reservation_id=%s fields=%s", reservation_id, sorted(changes))
    return reservation_response(reservation)


@router.delete("/reservations/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_reservation(reservation_id: str, store: RecordStore = Depends(get_store)):
    try:
        reservation_id = parse_record_id(reservation_id, "reservation id")
        store.delete_reservation(reservation_id)
    except TablebookError as exc:
        raise to_http_exception(exc) from exc
    logger.info("Reservation deleted. reservation_id=%s", reservation_id)


@router.get("/users/{user_id}/reservations", response_model=ReservationDetailsListResponse)
def list_user_reservations(user_id: str, store: RecordStore = Depends(get_store)):
    try:
        user_id = parse_record_id(user_id, "user id")
        details = store.list_reservation_details_by_user(user_id)
    except TablebookError as exc:
        raise to_http_exception(exc) from exc
    return ReservationDetailsListResponse(
        reservations=[
            reservation_details_response(reservation, table, event)
            for reservation, table, event in details
        ]
    )


@router.post(
    "/users/{user_id}/reservations",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_reservation(
    user_id: str,
    request: ReservationCreate,
    store: RecordStore = Depends(get_store),
):
    """Plain reservation without payment; amount_paid starts at zero."""
    try:
        user_id = parse_record_id(user_id, "user id")
        event_id = parse_record_id(request.event_id, "event id")
        store.get_user(user_id)
        table = store.get_table(parse_record_id(request.table_id, "table id"))
        if table.event_id != event_id:
            raise InvalidArgumentError(f"Table {table.id} does not belong to event {event_id}")
        reservation = store.create_reservation(
            table_id=table.id,
            user_id=user_id,
            event_id=event_id,
            num_people=request.num_people,
            contact_name=request.contact_name,
            contact_email=request.contact_email,
            contact_phone=request.contact_phone,
            special_requests=request.special_requests,
        )
    except TablebookError as exc:
        raise to_http_exception(exc) from exc

    logger.info(
        "Reservation created. reservation_id=%s code=%s",
        reservation.id,
        reservation.reservation_code,
    )
    return reservation_response(reservation)


# -----------------------------
# Links
# -----------------------------
@router.post("/reservations/{reservation_id}/payments", response_model=ReservationResponse)
def link_payment(
    reservation_id: str,
    request: PaymentLinkRequest,
    store: RecordStore = Depends(get_store),
):
    try:
        reservation_id = parse_record_id(reservation_id, "reservation id")
        payment_id = parse_record_id(request.payment_id, "payment id")
        store.link_payment(reservation_id, payment_id, to_money(request.amount))
        reservation = store.get_reservation(reservation_id)
    except TablebookError as exc:
        raise to_http_exception(exc) from exc

    logger.info(
        "Payment linked. reservation_id=%s payment_id=%s amount=%s",
        reservation_id,
        payment_id,
        request.amount,
    )
    return reservation_response(reservation)


@router.post(
    "/reservations/{reservation_id}/tickets",
    status_code=status.HTTP_204_NO_CONTENT,
)
def link_ticket(
    reservation_id: str,
    request: TicketLinkRequest,
    store: RecordStore = Depends(get_store),
):
    try:
        store.link_ticket(
            parse_record_id(reservation_id, "reservation id"),
            parse_record_id(request.ticket_id, "ticket id"),
        )
    except TablebookError as exc:
        raise to_http_exception(exc) from exc


@router.get("/reservations/{reservation_id}/tickets", response_model=list[TicketResponse])
def list_reservation_tickets(reservation_id: str, store: RecordStore = Depends(get_store)):
    try:
        reservation_id = parse_record_id(reservation_id, "reservation id")
        store.get_reservation(reservation_id)
        tickets = store.list_tickets(store.list_ticket_ids(reservation_id))
    except TablebookError as exc:
        raise to_http_exception(exc) from exc
    return [ticket_response(ticket) for ticket in tickets]


@router.delete(
    "/reservations/{reservation_id}/tickets/{ticket_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def unlink_ticket(
    reservation_id: str,
    ticket_id: str,
    store: RecordStore = Depends(get_store),
):
    try:
        store.unlink_ticket(
            parse_record_id(reservation_id, "reservation id"),
            parse_record_id(ticket_id, "ticket id"),
        )
    except TablebookError as exc:
        raise to_http_exception(exc) from exc
