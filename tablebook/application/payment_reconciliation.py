import hashlib
import json
import logging

from tablebook.domain.exceptions import (
    InvalidArgumentError,
    PaymentNotFoundError,
)
from tablebook.domain.state_machine import PaymentStatus
from tablebook.infrastructure.db.models import Payment
from tablebook.infrastructure.store import RecordStore

logger = logging.getLogger(__name__)

PROVIDER = "RAZORPAY"

_STATUS_BY_EVENT = {
    "payment.captured": PaymentStatus.COMPLETED,
    "order.paid": PaymentStatus.COMPLETED,
    "payment.failed": PaymentStatus.FAILED,
}


def _hash_payload(body: str) -> str:
    return hashlib.sha256(body.encode("utf-8")).hexdigest()


def _order_id(payload: dict) -> str | None:
    entities = payload.get("payload", {})
    for key in ("payment", "order"):
        entity = entities.get(key, {}).get("entity", {})
        order_id = entity.get("order_id") if key == "payment" else entity.get("id")
        if order_id:
            return order_id
    return None


class PaymentReconciliationService:
    """Applies gateway webhook deliveries to stored payments."""

    def __init__(self, store: RecordStore):
        self.store = store

    def apply_webhook(self, body: str, event_id: str) -> Payment | None:
        """
        Returns the affected payment, or None when the delivery was ignored
        (duplicate or an event type that does not settle a payment).
        """
        try:
            payload = json.loads(body)
        except json.JSONDecodeError as exc:
            raise InvalidArgumentError("Webhook body is not valid JSON") from exc

        event_type = payload.get("event", "")
        new_status = _STATUS_BY_EVENT.get(event_type)
        if new_status is None:
            logger.info("Ignoring webhook event type %s", event_type)
            return None

        order_id = _order_id(payload)
        if not order_id:
            raise InvalidArgumentError("Webhook payload carries no order id")

        payment = self.store.find_payment_by_gateway_id(order_id)
        if payment is None:
            raise PaymentNotFoundError(order_id)

        payload_hash = _hash_payload(body)
        settled = self.store.settle_payment_from_webhook(
            provider=PROVIDER,
            event_id=event_id or payload_hash,
            event_type=event_type,
            payment_id=payment.id,
            payload_hash=payload_hash,
            new_status=new_status,
        )
        if settled is None:
            logger.info("Duplicate webhook delivery ignored. event_id=%s", event_id)
            return None

        payment, changed = settled
        if not changed:
            logger.warning(
                "Webhook did not change payment. payment_id=%s event=%s status=%s",
                payment.id,
                event_type,
                payment.status.value,
            )
            return payment

        logger.info(
            "Payment reconciled from webhook. payment_id=%s status=%s",
            payment.id,
            payment.status.value,
        )
        return payment
