# tablebook/infrastructure/repositories/payment_repository.py

from decimal import Decimal

from sqlalchemy.orm import Session
from sqlalchemy import select

from tablebook.domain.state_machine import PaymentStatus
from tablebook.infrastructure.db.models import Payment, PaymentWebhookEvent


class PaymentRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, payment_id: str) -> Payment | None:
        stmt = select(Payment).where(Payment.id == payment_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_gateway_id(self, gateway_transaction_id: str) -> Payment | None:
        stmt = (
            select(Payment)
            .where(Payment.gateway_transaction_id == gateway_transaction_id)
            .order_by(Payment.insert_date.desc())
            .limit(1)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def create_payment(
        self,
        sender_id: str,
        receiver_id: str,
        amount: Decimal,
        participant_ids: list[str],
        gateway_transaction_id: str | None = None,
    ) -> Payment:
        payment = Payment(
            sender_id=sender_id,
            receiver_id=receiver_id,
            amount=amount,
            status=PaymentStatus.PENDING,
            participant_ids=list(participant_ids),
            gateway_transaction_id=gateway_transaction_id,
        )
        self.db.add(payment)
        self.db.flush()
        self.db.refresh(payment)
        return payment

    def update_status(
        self,
        payment: Payment,
        new_status: PaymentStatus,
    ) -> None:

        payment.status = new_status

    def get_webhook_event(self, provider: str, event_id: str) -> PaymentWebhookEvent | None:
        stmt = (
            select(PaymentWebhookEvent)
            .where(PaymentWebhookEvent.provider == provider)
            .where(PaymentWebhookEvent.event_id == event_id)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def add_webhook_event(
        self,
        provider: str,
        event_id: str,
        event_type: str,
        payment_id: str | None,
        payload_hash: str,
    ) -> PaymentWebhookEvent:
        event = PaymentWebhookEvent(
            provider=provider,
            event_id=event_id,
            event_type=event_type,
            payment_id=payment_id,
            payload_hash=payload_hash,
        )
        self.db.add(event)
        self.db.flush()
        return event
