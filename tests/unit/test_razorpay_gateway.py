from types import SimpleNamespace

import pytest
import razorpay
import requests

from tablebook.domain.exceptions import GatewayError
from tablebook.infrastructure.gateway.razorpay_gateway import RazorpayPaymentGateway


class FakeOrderApi:

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def create(self, data, **options):
        self.calls.append((data, options))
        if self.error:
            raise self.error
        return self.response


class FakeUtility:

    def __init__(self, valid: bool):
        self.valid = valid

    def verify_webhook_signature(self, body, signature, secret):
        if not self.valid:
            raise razorpay.errors.SignatureVerificationError("bad signature")
        return True


def _gateway(order_api=None, valid_signature=True, webhook_secret="whsec"):
    client = SimpleNamespace(order=order_api or FakeOrderApi(), utility=FakeUtility(valid_signature))
    return RazorpayPaymentGateway(
        client=client,
        key_id="rzp_test_key",
        webhook_secret=webhook_secret,
        timeout=2.5,
    )


def test_create_payment_intent_sends_amount_and_timeout():
    orders = FakeOrderApi(response={"id": "order_123", "amount": 10000, "currency": "EUR"})
    gateway = _gateway(orders)

    intent = gateway.create_payment_intent(10000, "EUR", {"table_id": "t-1", "guest_count": "1"})

    data, options = orders.calls[0]
    assert data["amount"] == 10000
    assert data["currency"] == "EUR"
    assert data["notes"] == {"table_id": "t-1", "guest_count": "1"}
    assert options == {"timeout": 2.5}
    assert intent.id == "order_123"
    assert intent.client_secret == "rzp_test_key"


def test_gateway_timeout_becomes_gateway_error():
    gateway = _gateway(FakeOrderApi(error=requests.exceptions.Timeout("slow")))

    with pytest.raises(GatewayError):
        gateway.create_payment_intent(500, "EUR", {})


def test_gateway_rejection_becomes_gateway_error():
    gateway = _gateway(FakeOrderApi(error=razorpay.errors.BadRequestError("invalid currency")))

    with pytest.raises(GatewayError):
        gateway.create_payment_intent(500, "XXX", {})


def test_non_positive_amount_is_not_sent():
    orders = FakeOrderApi(response={"id": "order_1"})
    gateway = _gateway(orders)

    with pytest.raises(GatewayError):
        gateway.create_payment_intent(0, "EUR", {})
    assert orders.calls == []


def test_verify_webhook():
    assert _gateway(valid_signature=True).verify_webhook("{}", "sig") is True
    assert _gateway(valid_signature=False).verify_webhook("{}", "sig") is False


def test_verify_webhook_requires_secret():
    with pytest.raises(GatewayError):
        _gateway(webhook_secret=None).verify_webhook("{}", "sig")


def test_from_env_requires_keys(monkeypatch):
    monkeypatch.delenv("RAZORPAY_KEY_ID", raising=False)
    monkeypatch.delenv("RAZORPAY_KEY_SECRET", raising=False)

    with pytest.raises(GatewayError):
        RazorpayPaymentGateway.from_env()
