"""
Record Store: the persistence boundary used by the orchestrator and routes.

Every public method runs in its own short unit of work (one pooled session,
committed on return). A single call is atomic; a sequence of calls is not.
Any SQLAlchemy failure is rolled back and surfaced as StoreUnavailableError.
"""

import logging
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Iterator, Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from tablebook.domain.exceptions import (
    EventNotFoundError,
    PaymentNotFoundError,
    ReservationNotFoundError,
    StoreUnavailableError,
    TableNotFoundError,
    TicketNotFoundError,
    UserNotFoundError,
)
from tablebook.domain.state_machine import PaymentStateMachine, PaymentStatus
from tablebook.infrastructure.db.models import (
    Event,
    Payment,
    Table,
    TableReservation,
    TableReservationPayment,
    Ticket,
    User,
)
from tablebook.infrastructure.repositories.partial_update import PartialUpdate
from tablebook.infrastructure.repositories.payment_repository import PaymentRepository
from tablebook.infrastructure.repositories.reservation_repository import (
    RESERVATION_UPDATABLE_FIELDS,
    ReservationRepository,
)
from tablebook.infrastructure.repositories.table_repository import (
    TABLE_UPDATABLE_FIELDS,
    TableRepository,
)
from tablebook.infrastructure.repositories.ticket_repository import TicketRepository
from tablebook.infrastructure.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class RecordStore:

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _unit_of_work(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Record store operation failed.")
            raise StoreUnavailableError(str(exc)) from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # -----------------------------
    # Users & events
    # -----------------------------
    def get_user(self, user_id: str) -> User:
        with self._unit_of_work() as db:
            user = UserRepository(db).get_by_id(user_id)
        if not user:
            raise UserNotFoundError(user_id)
        return user

    def find_user_by_phone(self, phone_number: str) -> User | None:
        with self._unit_of_work() as db:
            return UserRepository(db).get_by_phone(phone_number)

    def find_user_by_email(self, email: str) -> User | None:
        with self._unit_of_work() as db:
            return UserRepository(db).get_by_email(email)

    def get_event(self, event_id: str) -> Event:
        with self._unit_of_work() as db:
            event = UserRepository(db).get_event(event_id)
        if not event:
            raise EventNotFoundError(event_id)
        return event

    # -----------------------------
    # Tables
    # -----------------------------
    def get_table(self, table_id: str) -> Table:
        with self._unit_of_work() as db:
            table = TableRepository(db).get_by_id(table_id)
        if not table:
            raise TableNotFoundError(table_id)
        return table

    def list_tables(self) -> list[Table]:
        with self._unit_of_work() as db:
            return TableRepository(db).list_all()

    def list_tables_by_event(self, event_id: str, available_only: bool = False) -> list[Table]:
        with self._unit_of_work() as db:
            return TableRepository(db).list_by_event(event_id, available_only=available_only)

    def create_table(
        self,
        event_id: str,
        name: str,
        capacity: int,
        min_spend: Decimal,
        zone: str | None = None,
        location_description: str | None = None,
        features: list[str] | None = None,
    ) -> Table:
        with self._unit_of_work() as db:
            if not UserRepository(db).get_event(event_id):
                raise EventNotFoundError(event_id)
            return TableRepository(db).create_table(
                event_id=event_id,
                name=name,
                capacity=capacity,
                min_spend=min_spend,
                zone=zone,
                location_description=location_description,
                features=features,
            )

    def update_table(self, table_id: str, changes: Mapping[str, Any]) -> Table:
        with self._unit_of_work() as db:
            repo = TableRepository(db)
            table = repo.get_by_id(table_id)
            if not table:
                raise TableNotFoundError(table_id)
            return repo.update_table(table, PartialUpdate(TABLE_UPDATABLE_FIELDS, changes))

    def delete_table(self, table_id: str) -> None:
        with self._unit_of_work() as db:
            deleted = TableRepository(db).delete_table(table_id)
        if not deleted:
            raise TableNotFoundError(table_id)

    # -----------------------------
    # Reservations
    # -----------------------------
    def get_reservation(self, reservation_id: str) -> TableReservation:
        with self._unit_of_work() as db:
            reservation = ReservationRepository(db).get_by_id(reservation_id)
        if not reservation:
            raise ReservationNotFoundError(reservation_id)
        return reservation

    def find_reservation_by_code(self, code: str) -> TableReservation | None:
        with self._unit_of_work() as db:
            return ReservationRepository(db).get_by_code(code)

    def get_reservation_details_by_code(
        self, code: str
    ) -> tuple[TableReservation, Table, Event]:
        with self._unit_of_work() as db:
            reservation = ReservationRepository(db).get_by_code(code)
            if not reservation:
                raise ReservationNotFoundError(code)
            table = TableRepository(db).get_by_id(reservation.table_id)
            if not table:
                raise TableNotFoundError(reservation.table_id)
            event = UserRepository(db).get_event(reservation.event_id)
            if not event:
                raise EventNotFoundError(reservation.event_id)
            return reservation, table, event

    def list_reservations(self) -> list[TableReservation]:
        with self._unit_of_work() as db:
            return ReservationRepository(db).list_all()

    def list_reservations_by_table(self, table_id: str) -> list[TableReservation]:
        with self._unit_of_work() as db:
            return ReservationRepository(db).list_by_table(table_id)

    def list_reservation_details_by_user(
        self, user_id: str
    ) -> list[tuple[TableReservation, Table | None, Event | None]]:
        with self._unit_of_work() as db:
            tables = TableRepository(db)
            users = UserRepository(db)
            return [
                (
                    reservation,
                    tables.get_by_id(reservation.table_id),
                    users.get_event(reservation.event_id),
                )
                for reservation in ReservationRepository(db).list_by_user(user_id)
            ]

    def create_reservation(
        self,
        table_id: str,
        user_id: str,
        event_id: str,
        num_people: int,
        contact_name: str,
        contact_email: str,
        contact_phone: str,
        special_requests: str | None = None,
    ) -> TableReservation:
        with self._unit_of_work() as db:
            table = TableRepository(db).get_by_id(table_id)
            if not table:
                raise TableNotFoundError(table_id)
            return ReservationRepository(db).create_reservation(
                table=table,
                user_id=user_id,
                event_id=event_id,
                num_people=num_people,
                contact_name=contact_name,
                contact_email=contact_email,
                contact_phone=contact_phone,
                special_requests=special_requests,
            )

    def update_reservation(
        self, reservation_id: str, changes: Mapping[str, Any]
    ) -> TableReservation:
        with self._unit_of_work() as db:
            repo = ReservationRepository(db)
            reservation = repo.get_by_id(reservation_id)
            if not reservation:
                raise ReservationNotFoundError(reservation_id)

            update = PartialUpdate(RESERVATION_UPDATABLE_FIELDS, changes)
            table = None
            if update.get("num_people") is not None:
                table = TableRepository(db).get_by_id(reservation.table_id)
                if not table:
                    raise TableNotFoundError(reservation.table_id)
            return repo.update_reservation(reservation, update, table=table)

    def delete_reservation(self, reservation_id: str) -> None:
        with self._unit_of_work() as db:
            deleted = ReservationRepository(db).delete_reservation(reservation_id)
        if not deleted:
            raise ReservationNotFoundError(reservation_id)

    # -----------------------------
    # Reservation links
    # -----------------------------
    def link_payment(self, reservation_id: str, payment_id: str, amount: Decimal) -> None:
        """Insert the junction row and add ``amount`` to amount_paid, atomically."""
        with self._unit_of_work() as db:
            reservations = ReservationRepository(db)
            if not reservations.get_by_id(reservation_id):
                raise ReservationNotFoundError(reservation_id)
            if not PaymentRepository(db).get_by_id(payment_id):
                raise PaymentNotFoundError(payment_id)
            reservations.link_payment(reservation_id, payment_id, amount)

    def list_payment_links(self, reservation_id: str) -> list[TableReservationPayment]:
        with self._unit_of_work() as db:
            return ReservationRepository(db).list_payment_links(reservation_id)

    def add_guest(self, reservation_id: str, user_id: str) -> None:
        with self._unit_of_work() as db:
            ReservationRepository(db).add_guest(reservation_id, user_id)

    def list_guest_ids(self, reservation_id: str) -> list[str]:
        with self._unit_of_work() as db:
            return ReservationRepository(db).list_guest_ids(reservation_id)

    def link_ticket(self, reservation_id: str, ticket_id: str) -> None:
        with self._unit_of_work() as db:
            reservations = ReservationRepository(db)
            if not reservations.get_by_id(reservation_id):
                raise ReservationNotFoundError(reservation_id)
            if not TicketRepository(db).get_by_id(ticket_id):
                raise TicketNotFoundError(ticket_id)
            reservations.link_ticket(reservation_id, ticket_id)

    def unlink_ticket(self, reservation_id: str, ticket_id: str) -> None:
        with self._unit_of_work() as db:
            removed = ReservationRepository(db).unlink_ticket(reservation_id, ticket_id)
        if not removed:
            raise TicketNotFoundError(ticket_id)

    def list_ticket_ids(self, reservation_id: str) -> list[str]:
        with self._unit_of_work() as db:
            return ReservationRepository(db).list_ticket_ids(reservation_id)

    # -----------------------------
    # Tickets
    # -----------------------------
    def create_ticket(
        self,
        event_id: str,
        user_id: str,
        ticket_type: str,
        price: Decimal,
        status: str = "active",
        qr_code: str | None = None,
    ) -> Ticket:
        with self._unit_of_work() as db:
            return TicketRepository(db).create_ticket(
                event_id=event_id,
                user_id=user_id,
                ticket_type=ticket_type,
                price=price,
                status=status,
                qr_code=qr_code,
            )

    def get_ticket(self, ticket_id: str) -> Ticket:
        with self._unit_of_work() as db:
            ticket = TicketRepository(db).get_by_id(ticket_id)
        if not ticket:
            raise TicketNotFoundError(ticket_id)
        return ticket

    def find_ticket_by_code(self, code: str) -> Ticket | None:
        with self._unit_of_work() as db:
            return TicketRepository(db).get_by_code(code)

    def list_tickets(self, ticket_ids: list[str]) -> list[Ticket]:
        with self._unit_of_work() as db:
            return TicketRepository(db).list_by_ids(ticket_ids)

    # -----------------------------
    # Payments
    # -----------------------------
    def create_payment(
        self,
        sender_id: str,
        receiver_id: str,
        amount: Decimal,
        participant_ids: list[str],
        gateway_transaction_id: str | None = None,
    ) -> Payment:
        with self._unit_of_work() as db:
            return PaymentRepository(db).create_payment(
                sender_id=sender_id,
                receiver_id=receiver_id,
                amount=amount,
                participant_ids=participant_ids,
                gateway_transaction_id=gateway_transaction_id,
            )

    def get_payment(self, payment_id: str) -> Payment:
        with self._unit_of_work() as db:
            payment = PaymentRepository(db).get_by_id(payment_id)
        if not payment:
            raise PaymentNotFoundError(payment_id)
        return payment

    def find_payment_by_gateway_id(self, gateway_transaction_id: str) -> Payment | None:
        with self._unit_of_work() as db:
            return PaymentRepository(db).get_by_gateway_id(gateway_transaction_id)

    def update_payment_status(self, payment_id: str, new_status: PaymentStatus) -> Payment:
        with self._unit_of_work() as db:
            repo = PaymentRepository(db)
            payment = repo.get_by_id(payment_id)
            if not payment:
                raise PaymentNotFoundError(payment_id)
            PaymentStateMachine.validate_transition(payment.status, new_status)
            repo.update_status(payment, new_status)
            db.flush()
            db.refresh(payment)
            return payment

    def settle_payment_from_webhook(
        self,
        provider: str,
        event_id: str,
        event_type: str,
        payment_id: str,
        payload_hash: str,
        new_status: PaymentStatus,
    ) -> tuple[Payment, bool] | None:
        """
        Records the delivery and applies ``new_status`` in one unit of work,
        so a failed status write leaves the delivery unrecorded for the retry.

        Returns None when the delivery was already recorded, otherwise the
        payment and whether its status changed. A payment that cannot move to
        ``new_status`` is left as it is.
        """
        with self._unit_of_work() as db:
            repo = PaymentRepository(db)
            if repo.get_webhook_event(provider, event_id):
                return None

            payment = repo.get_by_id(payment_id)
            if not payment:
                raise PaymentNotFoundError(payment_id)

            changed = PaymentStateMachine.can_transition(payment.status, new_status)
            if changed:
                repo.update_status(payment, new_status)
            repo.add_webhook_event(
                provider=provider,
                event_id=event_id,
                event_type=event_type,
                payment_id=payment.id,
                payload_hash=payload_hash,
            )
            db.flush()
            db.refresh(payment)
            return payment, changed
