# tablebook/infrastructure/gateway/razorpay_gateway.py

from dataclasses import dataclass
import logging
import os

import razorpay
import requests

from tablebook.domain.exceptions import GatewayError

logger = logging.getLogger(__name__)

GATEWAY_TIMEOUT_SECONDS = float(os.getenv("GATEWAY_TIMEOUT_SECONDS", "10"))


@dataclass(frozen=True)
class PaymentIntent:
    """
    A gateway-side order awaiting completion by the client.

    Razorpay checkout is opened with the public key id and the order id, so
    the key id is what the client receives as ``client_secret``.
    """

    id: str
    client_secret: str
    amount_minor_units: int
    currency: str


class RazorpayPaymentGateway:

    def __init__(
        self,
        client: razorpay.Client,
        key_id: str,
        webhook_secret: str | None = None,
        timeout: float = GATEWAY_TIMEOUT_SECONDS,
    ):
        self.client = client
        self.key_id = key_id
        self.webhook_secret = webhook_secret
        self.timeout = timeout

    @classmethod
    def from_env(cls) -> "RazorpayPaymentGateway":
        key_id = os.getenv("RAZORPAY_KEY_ID")
        key_secret = os.getenv("RAZORPAY_KEY_SECRET")
        if not key_id or not key_secret:
            raise GatewayError(
                "Razorpay keys not configured. Set RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET."
            )
        return cls(
            client=razorpay.Client(auth=(key_id, key_secret)),
            key_id=key_id,
            webhook_secret=os.getenv("RAZORPAY_WEBHOOK_SECRET"),
        )

    def create_payment_intent(
        self,
        amount_minor_units: int,
        currency: str,
        metadata: dict[str, str],
    ) -> PaymentIntent:
        if amount_minor_units <= 0:
            raise GatewayError(f"Payment amount must be positive, got {amount_minor_units}")

        payload = {
            "amount": amount_minor_units,
            "currency": currency,
            "receipt": metadata.get("table_id", ""),
            "notes": {key: str(value) for key, value in metadata.items()},
        }

        try:
            order = self.client.order.create(data=payload, timeout=self.timeout)
        except requests.exceptions.Timeout as exc:
            logger.warning("Razorpay order creation timed out after %.1fs", self.timeout)
            raise GatewayError("Payment gateway timed out") from exc
        except (
            razorpay.errors.BadRequestError,
            razorpay.errors.GatewayError,
            razorpay.errors.ServerError,
            requests.exceptions.RequestException,
        ) as exc:
            logger.warning("Razorpay order creation failed: %s", exc)
            raise GatewayError(f"Payment gateway rejected the request: {exc}") from exc

        order_id = order.get("id")
        if not order_id:
            raise GatewayError("Payment gateway returned an order without id")

        logger.info(
            "Razorpay order created. order_id=%s amount=%s currency=%s",
            order_id,
            amount_minor_units,
            currency,
        )
        return PaymentIntent(
            id=order_id,
            client_secret=self.key_id,
            amount_minor_units=order.get("amount", amount_minor_units),
            currency=order.get("currency", currency),
        )

    def verify_webhook(self, body: str, signature: str) -> bool:
        if not self.webhook_secret:
            raise GatewayError("Razorpay webhook secret not configured. Set RAZORPAY_WEBHOOK_SECRET.")
        try:
            self.client.utility.verify_webhook_signature(body, signature, self.webhook_secret)
        except razorpay.errors.SignatureVerificationError:
            return False
        return True
