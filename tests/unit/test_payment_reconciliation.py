import json
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from tablebook.application.payment_reconciliation import PaymentReconciliationService
from tablebook.domain.exceptions import (
    InvalidArgumentError,
    PaymentNotFoundError,
    StoreUnavailableError,
)
from tablebook.domain.state_machine import PaymentStatus
from tablebook.infrastructure.repositories.payment_repository import PaymentRepository


def _payment(store, owner, order_id="order_abc"):
    return store.create_payment(
        sender_id=owner.id,
        receiver_id=owner.id,
        amount=Decimal("100.00"),
        participant_ids=[owner.id],
        gateway_transaction_id=order_id,
    )


def _captured(order_id="order_abc", event="payment.captured"):
    return json.dumps(
        {
            "event": event,
            "payload": {"payment": {"entity": {"id": "pay_1", "order_id": order_id}}},
        }
    )


def test_captured_payment_is_completed(store, owner):
    payment = _payment(store, owner)

    result = PaymentReconciliationService(store).apply_webhook(_captured(), "evt_1")

    assert result.id == payment.id
    assert store.get_payment(payment.id).status == PaymentStatus.COMPLETED


def test_failed_event_marks_payment_failed(store, owner):
    payment = _payment(store, owner)

    PaymentReconciliationService(store).apply_webhook(
        _captured(event="payment.failed"), "evt_2"
    )

    assert store.get_payment(payment.id).status == PaymentStatus.FAILED


def test_order_paid_uses_order_entity(store, owner):
    payment = _payment(store, owner, order_id="order_xyz")
    body = json.dumps(
        {"event": "order.paid", "payload": {"order": {"entity": {"id": "order_xyz"}}}}
    )

    PaymentReconciliationService(store).apply_webhook(body, "evt_3")

    assert store.get_payment(payment.id).status == PaymentStatus.COMPLETED


def test_duplicate_delivery_is_ignored(store, owner):
    _payment(store, owner)
    service = PaymentReconciliationService(store)

    assert service.apply_webhook(_captured(), "evt_4") is not None
    assert service.apply_webhook(_captured(), "evt_4") is None


def test_redelivery_completes_payment_after_failed_status_write(store, owner, monkeypatch):
    payment = _payment(store, owner)
    original_update = PaymentRepository.update_status
    calls = []

    def flaky_update(self, payment, new_status):
        calls.append(new_status)
        if len(calls) == 1:
            raise OperationalError("UPDATE payments", {}, Exception("connection lost"))
        return original_update(self, payment, new_status)

    monkeypatch.setattr(PaymentRepository, "update_status", flaky_update)
    service = PaymentReconciliationService(store)

    with pytest.raises(StoreUnavailableError):
        service.apply_webhook(_captured(), "evt_retry")
    assert store.get_payment(payment.id).status == PaymentStatus.PENDING

    result = service.apply_webhook(_captured(), "evt_retry")

    assert result is not None
    assert result.status == PaymentStatus.COMPLETED
    assert store.get_payment(payment.id).status == PaymentStatus.COMPLETED
    assert len(calls) == 2


def test_terminal_payment_is_left_alone(store, owner):
    payment = _payment(store, owner)
    store.update_payment_status(payment.id, PaymentStatus.COMPLETED)

    result = PaymentReconciliationService(store).apply_webhook(
        _captured(event="payment.failed"), "evt_5"
    )

    assert result.status == PaymentStatus.COMPLETED


def test_unrelated_event_is_ignored(store):
    body = json.dumps({"event": "refund.created", "payload": {}})

    assert PaymentReconciliationService(store).apply_webhook(body, "evt_6") is None


def test_unknown_order(store):
    with pytest.raises(PaymentNotFoundError):
        PaymentReconciliationService(store).apply_webhook(_captured("order_missing"), "evt_7")


def test_invalid_json(store):
    with pytest.raises(InvalidArgumentError):
        PaymentReconciliationService(store).apply_webhook("not json", "evt_8")
