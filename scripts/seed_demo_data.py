from decimal import Decimal

from sqlalchemy import select

from tablebook.domain.pricing import table_total_cost
from tablebook.infrastructure.db.models import Base, Event, Table, User
from tablebook.infrastructure.db.session import engine, get_db_session


def seed_users(db) -> None:
    users = [
        {"email": "marta@example.com", "name": "Marta Soler", "phone_number": "+34611000001"},
        {"email": "jordi@example.com", "name": "Jordi Puig", "phone_number": "+34611000002"},
        {"email": "lucia@example.com", "name": "Lucia Ferrer", "phone_number": "+34611000003"},
    ]

    for item in users:
        existing = db.execute(
            select(User).where(User.email == item["email"])
        ).scalar_one_or_none()
        if existing:
            existing.name = item["name"]
            existing.phone_number = item["phone_number"]
            continue
        db.add(User(**item))


def seed_event_tables(db) -> None:
    event_defs = [
        {
            "title": "Summer Closing Party",
            "venue": "Sala Apolo, Barcelona",
            "date": "2026-08-30T23:00",
            "image": "",
            "tables": [
                {"name": "VIP 1", "zone": "vip", "capacity": 10, "min_spend": "50.00"},
                {"name": "VIP 2", "zone": "vip", "capacity": 8, "min_spend": "60.00"},
                {"name": "Booth A", "zone": "main floor", "capacity": 6, "min_spend": "35.00"},
            ],
        },
        {
            "title": "New Year Gala",
            "venue": "Razzmatazz, Barcelona",
            "date": "2026-12-31T22:00",
            "image": "",
            "tables": [
                {"name": "Stage Left", "zone": "stage", "capacity": 12, "min_spend": "80.00"},
                {"name": "Terrace 3", "zone": "terrace", "capacity": 4, "min_spend": "45.00"},
            ],
        },
    ]

    for item in event_defs:
        event = db.execute(
            select(Event).where(Event.title == item["title"])
        ).scalar_one_or_none()
        if event is None:
            event = Event(title=item["title"])
            db.add(event)
        event.venue = item["venue"]
        event.date = item["date"]
        event.image = item["image"]
        db.flush()

        for table_def in item["tables"]:
            min_spend = Decimal(table_def["min_spend"])
            table = db.execute(
                select(Table)
                .where(Table.event_id == event.id)
                .where(Table.name == table_def["name"])
            ).scalar_one_or_none()
            if table is None:
                table = Table(event_id=event.id, name=table_def["name"])
                db.add(table)
            table.zone = table_def["zone"]
            table.capacity = table_def["capacity"]
            table.min_spend = min_spend
            table.total_cost = table_total_cost(min_spend, table_def["capacity"])
            table.available = True


def main() -> None:
    Base.metadata.create_all(bind=engine)
    with get_db_session() as db:
        seed_users(db)
        seed_event_tables(db)
    print("Seed complete: 3 users, 2 events, 5 tables added.")


if __name__ == "__main__":
    main()
