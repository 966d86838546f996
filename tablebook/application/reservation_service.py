"""
Reservation-with-payment workflow.

The steps run strictly in order against the Record Store. Each store call
commits on its own, so a failure part-way leaves the earlier rows in place:
there is no wrapping transaction and no compensation. The one soft step is
marking the payment completed at the end; webhook reconciliation settles
it if that write fails.
"""

from dataclasses import dataclass, field
from decimal import Decimal
import logging
import os
from typing import Protocol

from tablebook.domain.codes import parse_record_id
from tablebook.domain.exceptions import (
    AmountMismatchError,
    GatewayError,
    GuestNotFoundError,
    InvalidArgumentError,
    TablebookError,
)
from tablebook.domain.pricing import reservation_total_amount, to_minor_units, to_money
from tablebook.domain.state_machine import PaymentStatus
from tablebook.infrastructure.db.models import Table, TableReservation
from tablebook.infrastructure.gateway.razorpay_gateway import PaymentIntent
from tablebook.infrastructure.store import RecordStore

logger = logging.getLogger(__name__)

SETTLEMENT_CURRENCY = os.getenv("SETTLEMENT_CURRENCY", "EUR")
TABLE_TICKET_TYPE = "table"
ACTIVE_TICKET_STATUS = "active"


class PaymentGateway(Protocol):
    def create_payment_intent(
        self,
        amount_minor_units: int,
        currency: str,
        metadata: dict[str, str],
    ) -> PaymentIntent: ...


@dataclass
class ReservationWithPaymentCommand:
    table_id: str
    event_id: str
    owner_user_id: str
    guest_phone_numbers: list[str]
    payment_amount: object
    gateway_transaction_id: str | None
    contact_name: str
    contact_email: str
    contact_phone: str
    special_requests: str | None = None


@dataclass
class PaymentIntentCommand:
    table_id: str
    event_id: str
    owner_user_id: str
    guest_phone_numbers: list[str] = field(default_factory=list)


@dataclass
class ReservationOutcome:
    reservation: TableReservation
    payment_id: str
    payment_status: PaymentStatus
    guest_user_ids: list[str]
    ticket_ids: list[str]


@dataclass
class _PricedParty:
    table_id: str
    event_id: str
    owner_user_id: str
    guest_ids: list[str]
    table: Table
    expected_amount: Decimal

    @property
    def num_people(self) -> int:
        return 1 + len(self.guest_ids)

    @property
    def participant_ids(self) -> list[str]:
        return [self.owner_user_id, *self.guest_ids]


class ReservationOrchestrator:
    """Coordinates guests, pricing, payment, reservation and tickets."""

    def __init__(
        self,
        store: RecordStore,
        gateway: PaymentGateway | None = None,
        settlement_currency: str = SETTLEMENT_CURRENCY,
    ):
        self.store = store
        self.gateway = gateway
        self.settlement_currency = settlement_currency

    def create_reservation_with_payment(
        self,
        command: ReservationWithPaymentCommand,
    ) -> ReservationOutcome:
        declared_amount = to_money(command.payment_amount)
        party = self._price_party(
            command.table_id,
            command.event_id,
            command.owner_user_id,
            command.guest_phone_numbers,
        )

        if declared_amount != party.expected_amount:
            logger.info(
                "Rejected reservation: amount mismatch. table_id=%s expected=%s declared=%s",
                party.table_id,
                party.expected_amount,
                declared_amount,
            )
            raise AmountMismatchError(expected=party.expected_amount, declared=declared_amount)

        payment = self.store.create_payment(
            sender_id=party.owner_user_id,
            receiver_id=party.owner_user_id,
            amount=declared_amount,
            participant_ids=party.participant_ids,
            gateway_transaction_id=command.gateway_transaction_id,
        )
        logger.info("Payment created. payment_id=%s amount=%s", payment.id, payment.amount)

        reservation = self.store.create_reservation(
            table_id=party.table_id,
            user_id=party.owner_user_id,
            event_id=party.event_id,
            num_people=party.num_people,
            contact_name=command.contact_name,
            contact_email=command.contact_email,
            contact_phone=command.contact_phone,
            special_requests=command.special_requests,
        )
        logger.info(
            "Reservation created. reservation_id=%s code=%s payment_id=%s",
            reservation.id,
            reservation.reservation_code,
            payment.id,
        )

        self.store.link_payment(reservation.id, payment.id, declared_amount)

        for guest_id in party.guest_ids:
            self.store.add_guest(reservation.id, guest_id)

        ticket_ids = []
        for user_id in party.participant_ids:
            ticket = self.store.create_ticket(
                event_id=party.event_id,
                user_id=user_id,
                ticket_type=TABLE_TICKET_TYPE,
                price=party.table.min_spend,
                status=ACTIVE_TICKET_STATUS,
            )
            ticket_ids.append(ticket.id)

        for ticket_id in ticket_ids:
            self.store.link_ticket(reservation.id, ticket_id)

        payment_status = self._complete_payment(payment.id)

        return ReservationOutcome(
            reservation=self.store.get_reservation(reservation.id),
            payment_id=payment.id,
            payment_status=payment_status,
            guest_user_ids=list(party.guest_ids),
            ticket_ids=ticket_ids,
        )

    def create_payment_intent(self, command: PaymentIntentCommand) -> PaymentIntent:
        party = self._price_party(
            command.table_id,
            command.event_id,
            command.owner_user_id,
            command.guest_phone_numbers,
        )

        if self.gateway is None:
            raise GatewayError("Payment gateway is not configured")

        intent = self.gateway.create_payment_intent(
            amount_minor_units=to_minor_units(party.expected_amount),
            currency=self.settlement_currency,
            metadata={
                "table_id": party.table_id,
                "event_id": party.event_id,
                "owner_user_id": party.owner_user_id,
                "guest_count": str(len(party.guest_ids)),
            },
        )
        logger.info(
            "Payment intent created. intent_id=%s table_id=%s amount=%s %s",
            intent.id,
            party.table_id,
            party.expected_amount,
            self.settlement_currency,
        )
        return intent

    def _price_party(
        self,
        table_id: str,
        event_id: str,
        owner_user_id: str,
        guest_phone_numbers: list[str],
    ) -> _PricedParty:
        table_id = parse_record_id(table_id, "table id")
        event_id = parse_record_id(event_id, "event id")
        owner_user_id = parse_record_id(owner_user_id, "owner user id")

        guest_ids = []
        for phone in guest_phone_numbers:
            guest = self.store.find_user_by_phone(phone)
            if guest is None:
                raise GuestNotFoundError(phone)
            if guest.id == owner_user_id:
                raise InvalidArgumentError(f"Owner cannot be listed as a guest: {phone}")
            if guest.id in guest_ids:
                raise InvalidArgumentError(f"Guest listed more than once: {phone}")
            guest_ids.append(guest.id)

        table = self.store.get_table(table_id)
        if table.event_id != event_id:
            raise InvalidArgumentError(
                f"Table {table_id} does not belong to event {event_id}"
            )
        expected_amount = reservation_total_amount(table.min_spend, 1 + len(guest_ids))

        return _PricedParty(
            table_id=table_id,
            event_id=event_id,
            owner_user_id=owner_user_id,
            guest_ids=guest_ids,
            table=table,
            expected_amount=expected_amount,
        )

    def _complete_payment(self, payment_id: str) -> PaymentStatus:
        try:
            payment = self.store.update_payment_status(payment_id, PaymentStatus.COMPLETED)
        except TablebookError as exc:
            logger.warning(
                "Could not mark payment completed; leaving it for reconciliation. "
                "payment_id=%s error=%s",
                payment_id,
                exc,
            )
            return PaymentStatus.PENDING
        return payment.status
