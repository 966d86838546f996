from decimal import Decimal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -----------------------------
# Tables
# -----------------------------
class TableCreate(CamelModel):
    event_id: str
    name: str
    zone: str | None = None
    capacity: int = Field(gt=0)
    min_spend: Decimal = Field(ge=0)
    location_description: str | None = None
    features: list[str] | None = None


class TableUpdate(CamelModel):
    name: str | None = None
    zone: str | None = None
    capacity: int | None = Field(default=None, gt=0)
    min_spend: Decimal | None = Field(default=None, ge=0)
    available: bool | None = None
    location_description: str | None = None
    features: list[str] | None = None


class TableResponse(CamelModel):
    id: str
    event_id: str
    name: str
    zone: str | None = None
    capacity: int
    min_spend: str
    total_cost: str
    available: bool
    location_description: str | None = None
    features: list[str] | None = None


class TablesResponse(CamelModel):
    tables: list[TableResponse]


# -----------------------------
# Reservations
# -----------------------------
class ReservationWithPaymentRequest(CamelModel):
    table_id: str
    event_id: str
    owner_user_id: str
    guest_phone_numbers: list[str] = Field(default_factory=list)
    payment_amount: Decimal
    gateway_transaction_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "gatewayTransactionId",
            "gateway_transaction_id",
            "stripePaymentIntentId",
        ),
    )
    contact_name: str
    contact_email: str
    contact_phone: str
    special_requests: str | None = None


class PaymentIntentRequest(CamelModel):
    table_id: str
    event_id: str
    owner_user_id: str
    guest_phone_numbers: list[str] = Field(default_factory=list)


class PaymentIntentResponse(CamelModel):
    intent_id: str
    client_secret: str
    amount: str
    amount_minor_units: int
    currency: str


class ReservationCreate(CamelModel):
    table_id: str
    event_id: str
    num_people: int = Field(gt=0)
    contact_name: str
    contact_email: str
    contact_phone: str
    special_requests: str | None = None


class ReservationUpdate(CamelModel):
    status: str | None = None
    num_people: int | None = Field(default=None, gt=0)
    contact_name: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    special_requests: str | None = None


class ReservationResponse(CamelModel):
    id: str
    table_id: str
    user_id: str
    event_id: str
    status: str
    num_people: int
    total_amount: str
    amount_paid: str
    amount_remaining: str
    contact_name: str
    contact_email: str
    contact_phone: str
    special_requests: str | None = None
    reservation_code: str
    created_at: str


class ReservationWithPaymentResponse(ReservationResponse):
    payment_id: str
    payment_status: str
    guest_user_ids: list[str]
    ticket_ids: list[str]


class ReservationsResponse(CamelModel):
    reservations: list[ReservationResponse]


class TableSummary(CamelModel):
    id: str
    name: str
    zone: str | None = None
    capacity: int
    min_spend: str
    location_description: str | None = None
    features: list[str] | None = None


class EventSummary(CamelModel):
    id: str
    title: str
    venue: str
    date: str
    image: str


class ReservationDetailsResponse(CamelModel):
    id: str
    reservation_code: str
    status: str
    num_people: int
    total_amount: str
    amount_paid: str
    amount_remaining: str
    contact_name: str
    contact_email: str
    contact_phone: str
    special_requests: str | None = None
    created_at: str
    table: TableSummary | None = None
    event: EventSummary | None = None


class ReservationDetailsListResponse(CamelModel):
    reservations: list[ReservationDetailsResponse]


class PaymentLinkRequest(CamelModel):
    payment_id: str
    amount: Decimal = Field(gt=0)


class TicketLinkRequest(CamelModel):
    ticket_id: str


# -----------------------------
# Tickets & payments
# -----------------------------
class TicketResponse(CamelModel):
    id: str
    event_id: str
    user_id: str
    ticket_code: str
    ticket_type: str
    price: str
    status: str
    purchase_date: str
    qr_code: str | None = None


class PaymentResponse(CamelModel):
    id: str
    sender_id: str
    receiver_id: str
    amount: str
    status: str
    gateway_transaction_id: str | None = None
    participant_ids: list[str]
    insert_date: str
    update_date: str | None = None


class WebhookResponse(CamelModel):
    status: str
    payment_id: str | None = None
    payment_status: str | None = None
