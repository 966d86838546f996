from tablebook.api.schemas.schemas import (
    EventSummary,
    PaymentResponse,
    ReservationDetailsResponse,
    ReservationResponse,
    ReservationWithPaymentResponse,
    TableResponse,
    TableSummary,
    TicketResponse,
)
from tablebook.application.reservation_service import ReservationOutcome
from tablebook.domain.pricing import amount_remaining, format_money
from tablebook.infrastructure.db.models import (
    Event,
    Payment,
    Table,
    TableReservation,
    Ticket,
)


def _iso(value) -> str | None:
    return value.isoformat() if value is not None else None


def table_response(table: Table) -> TableResponse:
    return TableResponse(
        id=table.id,
        event_id=table.event_id,
        name=table.name,
        zone=table.zone,
        capacity=table.capacity,
        min_spend=format_money(table.min_spend),
        total_cost=format_money(table.total_cost),
        available=table.available,
        location_description=table.location_description,
        features=table.features,
    )


def _reservation_fields(reservation: TableReservation) -> dict:
    return {
        "id": reservation.id,
        "table_id": reservation.table_id,
        "user_id": reservation.user_id,
        "event_id": reservation.event_id,
        "status": reservation.status,
        "num_people": reservation.num_people,
        "total_amount": format_money(reservation.total_amount),
        "amount_paid": format_money(reservation.amount_paid),
        "amount_remaining": format_money(
            amount_remaining(reservation.total_amount, reservation.amount_paid)
        ),
        "contact_name": reservation.contact_name,
        "contact_email": reservation.contact_email,
        "contact_phone": reservation.contact_phone,
        "special_requests": reservation.special_requests,
        "reservation_code": reservation.reservation_code,
        "created_at": _iso(reservation.created_at),
    }


def reservation_response(reservation: TableReservation) -> ReservationResponse:
    return ReservationResponse(**_reservation_fields(reservation))


def reservation_outcome_response(outcome: ReservationOutcome) -> ReservationWithPaymentResponse:
    return ReservationWithPaymentResponse(
        **_reservation_fields(outcome.reservation),
        payment_id=outcome.payment_id,
        payment_status=outcome.payment_status.value,
        guest_user_ids=outcome.guest_user_ids,
        ticket_ids=outcome.ticket_ids,
    )


def reservation_details_response(
    reservation: TableReservation,
    table: Table | None,
    event: Event | None,
) -> ReservationDetailsResponse:
    fields = _reservation_fields(reservation)
    for key in ("table_id", "user_id", "event_id"):
        fields.pop(key)

    table_summary = None
    if table is not None:
        table_summary = TableSummary(
            id=table.id,
            name=table.name,
            zone=table.zone,
            capacity=table.capacity,
            min_spend=format_money(table.min_spend),
            location_description=table.location_description,
            features=table.features,
        )

    event_summary = None
    if event is not None:
        event_summary = EventSummary(
            id=event.id,
            title=event.title,
            venue=event.venue,
            date=event.date,
            image=event.image,
        )

    return ReservationDetailsResponse(**fields, table=table_summary, event=event_summary)


def ticket_response(ticket: Ticket) -> TicketResponse:
    return TicketResponse(
        id=ticket.id,
        event_id=ticket.event_id,
        user_id=ticket.user_id,
        ticket_code=ticket.ticket_code,
        ticket_type=ticket.ticket_type,
        price=format_money(ticket.price),
        status=ticket.status,
        purchase_date=_iso(ticket.purchase_date),
        qr_code=ticket.qr_code,
    )


def payment_response(payment: Payment) -> PaymentResponse:
    return PaymentResponse(
        id=payment.id,
        sender_id=payment.sender_id,
        receiver_id=payment.receiver_id,
        amount=format_money(payment.amount),
        status=payment.status.value,
        gateway_transaction_id=payment.gateway_transaction_id,
        participant_ids=list(payment.participant_ids or []),
        insert_date=_iso(payment.insert_date),
        update_date=_iso(payment.update_date),
    )
