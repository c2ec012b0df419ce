"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement, so
PayMongoGateway (production) and FakeGateway (dev/test) can be swapped
without touching domain or application code.

Amounts cross this boundary in pesos; adapters convert to the gateway's
minor unit themselves.
"""

import hashlib
import hmac
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field


class GatewayError(Exception):
    """The gateway rejected a request or could not be reached."""

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


@dataclass(frozen=True)
class IntentResult:
    """State of a payment intent (card, PayPal and similar methods)."""

    intent_id: str
    status: str
    client_key: str | None = None
    next_action: dict | None = None
    payment_id: str | None = None
    last_error: str | None = None


@dataclass(frozen=True)
class SourceResult:
    """A redirect-based source (GCash, Maya) awaiting customer authorisation."""

    source_id: str
    status: str
    checkout_url: str | None = None


@dataclass(frozen=True)
class ChargeResult:
    """A payment created from a chargeable source."""

    payment_id: str
    status: str


@dataclass(frozen=True)
class RefundResult:
    refund_id: str
    status: str


@dataclass(frozen=True)
class WebhookEvent:
    """A verified, decoded gateway callback."""

    event_type: str
    resource_id: str | None
    attributes: dict = field(default_factory=dict)

    @property
    def metadata(self) -> dict:
        return self.attributes.get("metadata") or {}


def parse_signature_header(header: str | None) -> dict:
    """Split ``t=...,te=...,li=...`` into its parts."""
    parts = {}
    for chunk in (header or "").split(","):
        key, sep, value = chunk.strip().partition("=")
        if sep:
            parts[key] = value
    return parts


def compute_signature(secret: str, timestamp: str, payload: bytes) -> str:
    message = timestamp.encode("utf-8") + b"." + payload
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


WEBHOOK_TOLERANCE_SECONDS = 300


def signature_matches(
    secret: str | None,
    payload: bytes,
    header: str | None,
    tolerance: int = WEBHOOK_TOLERANCE_SECONDS,
    now: float | None = None,
) -> bool:
    """Check a webhook signature header against the raw request body.

    The gateway signs ``"<t>.<body>"`` and sends the digest as ``te`` (test
    mode) or ``li`` (live mode). Signatures whose ``t`` is more than
    ``tolerance`` seconds away from ``now`` are refused, so a captured
    delivery cannot be replayed later.
    """
    if not secret or not header:
        return False
    parts = parse_signature_header(header)
    timestamp = parts.get("t")
    if not timestamp:
        return False
    try:
        signed_at = int(timestamp)
    except ValueError:
        return False
    if abs((time.time() if now is None else now) - signed_at) > tolerance:
        return False
    expected = compute_signature(secret, timestamp, payload)
    return any(hmac.compare_digest(expected, parts[key]) for key in ("te", "li") if parts.get(key))


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_payment_intent(
        self,
        amount: float,
        currency: str,
        payment_method: str,
        description: str,
        metadata: dict,
    ) -> IntentResult:
        """Open a payment intent restricted to the gateway methods for ``payment_method``."""
        ...

    @abstractmethod
    def create_source(
        self,
        amount: float,
        currency: str,
        source_type: str,
        success_url: str,
        failed_url: str,
        description: str,
        metadata: dict,
    ) -> SourceResult:
        """Create a redirect source (``gcash`` or ``paymaya``)."""
        ...

    @abstractmethod
    def retrieve_payment_intent(self, intent_id: str) -> IntentResult:
        ...

    @abstractmethod
    def create_payment_from_source(
        self,
        source_id: str,
        amount: float,
        currency: str,
        description: str,
    ) -> ChargeResult:
        """Charge a source once the customer has authorised it."""
        ...

    @abstractmethod
    def create_refund(self, payment_id: str, amount: float, reason: str) -> RefundResult:
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: bytes, signature: str | None) -> bool:
        """Verify that a webhook payload is authentically from the gateway."""
        ...
