"""Configurable fake payment gateway for development and testing.

This adapter simulates PayMongo without any external calls. It can be
configured at runtime to succeed or fail, making it useful for:
- Manual API testing via /api/payment/gateway/configure
- Automated tests with predictable outcomes
- Development without real gateway credentials

Webhook signatures are checked with the same HMAC scheme as the real
gateway, keyed with the configured webhook secret.
"""

from uuid import uuid4

from bookstore.payments.gateway.port import (
    ChargeResult,
    GatewayError,
    IntentResult,
    PaymentGateway,
    RefundResult,
    SourceResult,
    signature_matches,
)

FAKE_WEBHOOK_SECRET = "whsk_fake_bookstore"


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, webhook_secret: str | None = None) -> None:
        self.webhook_secret = webhook_secret or FAKE_WEBHOOK_SECRET
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.intent_outcome: str = "succeeded"
        self.intents: dict[str, IntentResult] = {}
        self.calls: list[dict] = []

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "Card declined",
        intent_outcome: str = "succeeded",
    ) -> None:
        """Configure gateway behavior at runtime.

        ``should_succeed=False`` makes every call raise GatewayError.
        ``intent_outcome`` is the status intents report when polled.
        """
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.intent_outcome = intent_outcome

    def set_intent_status(self, intent_id: str, status: str) -> None:
        current = self.intents[intent_id]
        self.intents[intent_id] = IntentResult(
            intent_id=intent_id,
            status=status,
            client_key=current.client_key,
            next_action={"type": "redirect", "redirect": {"url": "https://fake.test/3ds"}}
            if status in ("awaiting_next_action", "requires_action")
            else None,
            payment_id=f"pay_fake_{uuid4().hex[:12]}" if status == "succeeded" else None,
            last_error=self.failure_reason if status == "awaiting_payment_method" else None,
        )

    def _check(self) -> None:
        if not self.should_succeed:
            raise GatewayError(self.failure_reason, status_code=400)

    def create_payment_intent(self, amount, currency, payment_method, description, metadata) -> IntentResult:
        self.calls.append(
            {
                "method": "create_payment_intent",
                "amount": amount,
                "currency": currency,
                "payment_method": payment_method,
                "metadata": metadata,
            }
        )
        self._check()

        intent_id = f"pi_fake_{uuid4().hex[:12]}"
        result = IntentResult(
            intent_id=intent_id,
            status="awaiting_payment_method",
            client_key=f"{intent_id}_client_{uuid4().hex[:8]}",
        )
        self.intents[intent_id] = result
        return result

    def create_source(self, amount, currency, source_type, success_url, failed_url, description, metadata):
        self.calls.append(
            {
                "method": "create_source",
                "amount": amount,
                "currency": currency,
                "source_type": source_type,
                "success_url": success_url,
                "failed_url": failed_url,
                "metadata": metadata,
            }
        )
        self._check()

        source_id = f"src_fake_{uuid4().hex[:12]}"
        return SourceResult(
            source_id=source_id,
            status="pending",
            checkout_url=f"https://fake.test/sources/{source_id}/authorize",
        )

    def retrieve_payment_intent(self, intent_id: str) -> IntentResult:
        self.calls.append({"method": "retrieve_payment_intent", "intent_id": intent_id})
        self._check()

        if intent_id not in self.intents:
            raise GatewayError(f"No such payment_intent: {intent_id}", status_code=404)
        if self.intents[intent_id].status == "awaiting_payment_method":
            self.set_intent_status(intent_id, self.intent_outcome)
        return self.intents[intent_id]

    def create_payment_from_source(self, source_id, amount, currency, description) -> ChargeResult:
        self.calls.append(
            {
                "method": "create_payment_from_source",
                "source_id": source_id,
                "amount": amount,
                "currency": currency,
            }
        )
        self._check()
        return ChargeResult(payment_id=f"pay_fake_{uuid4().hex[:12]}", status="pending")

    def create_refund(self, payment_id, amount, reason) -> RefundResult:
        self.calls.append(
            {
                "method": "create_refund",
                "payment_id": payment_id,
                "amount": amount,
                "reason": reason,
            }
        )
        self._check()
        return RefundResult(refund_id=f"ref_fake_{uuid4().hex[:12]}", status="pending")

    def verify_webhook_signature(self, payload: bytes, signature: str | None) -> bool:
        return signature_matches(self.webhook_secret, payload, signature)
