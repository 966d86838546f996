# tablebook/infrastructure/repositories/table_repository.py

from decimal import Decimal

from sqlalchemy.orm import Session
from sqlalchemy import delete, select

from tablebook.domain.pricing import table_total_cost
from tablebook.infrastructure.db.models import Table
from tablebook.infrastructure.repositories.partial_update import PartialUpdate

TABLE_UPDATABLE_FIELDS = (
    "name",
    "zone",
    "capacity",
    "min_spend",
    "available",
    "location_description",
    "features",
)


class TableRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, table_id: str) -> Table | None:
        stmt = select(Table).where(Table.id == table_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def list_all(self) -> list[Table]:
        stmt = select(Table).order_by(Table.created_at.desc())
        return list(self.db.execute(stmt).scalars().all())

    def list_by_event(self, event_id: str, available_only: bool = False) -> list[Table]:
        stmt = select(Table).where(Table.event_id == event_id)
        if available_only:
            stmt = stmt.where(Table.available.is_(True))
        stmt = stmt.order_by(Table.name)
        return list(self.db.execute(stmt).scalars().all())

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
        table = Table(
            event_id=event_id,
            name=name,
            zone=zone,
            capacity=capacity,
            min_spend=min_spend,
            total_cost=table_total_cost(min_spend, capacity),
            available=True,
            location_description=location_description,
            features=features,
        )
        self.db.add(table)
        self.db.flush()
        self.db.refresh(table)
        return table

    def update_table(self, table: Table, changes: PartialUpdate) -> Table:
        if changes.is_empty():
            return table

        values = changes.as_dict()
        if changes.has("capacity") or changes.has("min_spend"):
            values["total_cost"] = table_total_cost(
                changes.get("min_spend", table.min_spend),
                changes.get("capacity", table.capacity),
            )

        statement = PartialUpdate(TABLE_UPDATABLE_FIELDS + ("total_cost",), values)
        self.db.execute(statement.to_statement(Table, table.id))
        self.db.flush()
        self.db.refresh(table)
        return table

    def delete_table(self, table_id: str) -> bool:
        result = self.db.execute(delete(Table).where(Table.id == table_id))
        return result.rowcount > 0
