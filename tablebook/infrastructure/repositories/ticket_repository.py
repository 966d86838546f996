# tablebook/infrastructure/repositories/ticket_repository.py

from decimal import Decimal

from sqlalchemy.orm import Session
from sqlalchemy import select

from tablebook.domain.codes import TICKET_CODE_PREFIX, allocate_unique_code
from tablebook.infrastructure.db.models import Ticket


class TicketRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, ticket_id: str) -> Ticket | None:
        stmt = select(Ticket).where(Ticket.id == ticket_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_code(self, code: str) -> Ticket | None:
        stmt = select(Ticket).where(Ticket.ticket_code == code)
        return self.db.execute(stmt).scalar_one_or_none()

    def code_exists(self, code: str) -> bool:
        return self.get_by_code(code) is not None

    def list_by_ids(self, ticket_ids: list[str]) -> list[Ticket]:
        if not ticket_ids:
            return []
        stmt = select(Ticket).where(Ticket.id.in_(ticket_ids))
        by_id = {ticket.id: ticket for ticket in self.db.execute(stmt).scalars()}
        # Same order as the ids asked for.
        return [by_id[ticket_id] for ticket_id in ticket_ids if ticket_id in by_id]

    def create_ticket(
        self,
        event_id: str,
        user_id: str,
        ticket_type: str,
        price: Decimal,
        status: str = "active",
        qr_code: str | None = None,
    ) -> Ticket:
        ticket = Ticket(
            event_id=event_id,
            user_id=user_id,
            ticket_code=allocate_unique_code(TICKET_CODE_PREFIX, self.code_exists),
            ticket_type=ticket_type,
            price=price,
            status=status,
            qr_code=qr_code,
        )
        self.db.add(ticket)
        self.db.flush()
        self.db.refresh(ticket)
        return ticket
