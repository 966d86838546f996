# tablebook/infrastructure/repositories/reservation_repository.py

from decimal import Decimal

from sqlalchemy.orm import Session
from sqlalchemy import delete, select, update

from tablebook.domain.codes import RESERVATION_CODE_PREFIX, allocate_unique_code
from tablebook.domain.pricing import reservation_total_amount
from tablebook.infrastructure.db.models import (
    Table,
    TableReservation,
    TableReservationGuest,
    TableReservationPayment,
    TableReservationTicket,
)
from tablebook.infrastructure.repositories.partial_update import PartialUpdate

RESERVATION_UPDATABLE_FIELDS = (
    "status",
    "num_people",
    "contact_name",
    "contact_email",
    "contact_phone",
    "special_requests",
)


class ReservationRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, reservation_id: str) -> TableReservation | None:
        stmt = select(TableReservation).where(TableReservation.id == reservation_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_code(self, code: str) -> TableReservation | None:
        stmt = select(TableReservation).where(TableReservation.reservation_code == code)
        return self.db.execute(stmt).scalar_one_or_none()

    def code_exists(self, code: str) -> bool:
        return self.get_by_code(code) is not None

    def list_all(self) -> list[TableReservation]:
        stmt = select(TableReservation).order_by(TableReservation.created_at.desc())
        return list(self.db.execute(stmt).scalars().all())

    def list_by_user(self, user_id: str) -> list[TableReservation]:
        stmt = (
            select(TableReservation)
            .where(TableReservation.user_id == user_id)
            .order_by(TableReservation.created_at.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_by_table(self, table_id: str) -> list[TableReservation]:
        stmt = (
            select(TableReservation)
            .where(TableReservation.table_id == table_id)
            .order_by(TableReservation.created_at.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def create_reservation(
        self,
        table: Table,
        user_id: str,
        event_id: str,
        num_people: int,
        contact_name: str,
        contact_email: str,
        contact_phone: str,
        special_requests: str | None = None,
    ) -> TableReservation:
        reservation = TableReservation(
            table_id=table.id,
            user_id=user_id,
            event_id=event_id,
            status="pending",
            num_people=num_people,
            total_amount=reservation_total_amount(table.min_spend, num_people),
            amount_paid=Decimal("0.00"),
            contact_name=contact_name,
            contact_email=contact_email,
            contact_phone=contact_phone,
            special_requests=special_requests,
            reservation_code=allocate_unique_code(
                RESERVATION_CODE_PREFIX,
                self.code_exists,
            ),
        )
        self.db.add(reservation)
        self.db.flush()
        self.db.refresh(reservation)
        return reservation

    def update_reservation(
        self,
        reservation: TableReservation,
        changes: PartialUpdate,
        table: Table | None = None,
    ) -> TableReservation:
        if changes.is_empty():
            return reservation

        values = changes.as_dict()
        new_num_people = changes.get("num_people")
        if new_num_people is not None and new_num_people != reservation.num_people:
            values["total_amount"] = reservation_total_amount(table.min_spend, new_num_people)

        statement = PartialUpdate(RESERVATION_UPDATABLE_FIELDS + ("total_amount",), values)
        self.db.execute(statement.to_statement(TableReservation, reservation.id))
        self.db.flush()
        self.db.refresh(reservation)
        return reservation

    def delete_reservation(self, reservation_id: str) -> bool:
        for junction in (
            TableReservationGuest,
            TableReservationPayment,
            TableReservationTicket,
        ):
            self.db.execute(delete(junction).where(junction.reservation_id == reservation_id))
        result = self.db.execute(
            delete(TableReservation).where(TableReservation.id == reservation_id)
        )
        return result.rowcount > 0

    # -----------------------------
    # Payments
    # -----------------------------
    def link_payment(self, reservation_id: str, payment_id: str, amount: Decimal) -> None:
        self.db.add(
            TableReservationPayment(
                reservation_id=reservation_id,
                payment_id=payment_id,
                amount=amount,
            )
        )
        self.db.execute(
            update(TableReservation)
            .where(TableReservation.id == reservation_id)
            .values(amount_paid=TableReservation.amount_paid + amount)
        )
        self.db.flush()

    def list_payment_links(self, reservation_id: str) -> list[TableReservationPayment]:
        stmt = (
            select(TableReservationPayment)
            .where(TableReservationPayment.reservation_id == reservation_id)
            .order_by(TableReservationPayment.created_at)
        )
        return list(self.db.execute(stmt).scalars().all())

    # -----------------------------
    # Guests
    # -----------------------------
    def add_guest(self, reservation_id: str, user_id: str) -> None:
        self.db.add(TableReservationGuest(reservation_id=reservation_id, user_id=user_id))
        self.db.flush()

    def list_guest_ids(self, reservation_id: str) -> list[str]:
        stmt = (
            select(TableReservationGuest.user_id)
            .where(TableReservationGuest.reservation_id == reservation_id)
            .order_by(TableReservationGuest.created_at, TableReservationGuest.id)
        )
        return list(self.db.execute(stmt).scalars().all())

    # -----------------------------
    # Tickets
    # -----------------------------
    def link_ticket(self, reservation_id: str, ticket_id: str) -> None:
        self.db.add(TableReservationTicket(reservation_id=reservation_id, ticket_id=ticket_id))
        self.db.flush()

    def unlink_ticket(self, reservation_id: str, ticket_id: str) -> bool:
        result = self.db.execute(
            delete(TableReservationTicket)
            .where(TableReservationTicket.reservation_id == reservation_id)
            .where(TableReservationTicket.ticket_id == ticket_id)
        )
        return result.rowcount > 0

    def list_ticket_ids(self, reservation_id: str) -> list[str]:
        stmt = (
            select(TableReservationTicket.ticket_id)
            .where(TableReservationTicket.reservation_id == reservation_id)
            .order_by(TableReservationTicket.created_at, TableReservationTicket.id)
        )
        return list(self.db.execute(stmt).scalars().all())
