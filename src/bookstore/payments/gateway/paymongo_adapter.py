"""PayMongo payment gateway adapter.

Talks to the PayMongo REST API with HTTP basic auth (secret key as the
username, empty password). Request and response bodies follow JSON:API
(``{"data": {"attributes": {...}}}``) and amounts are sent in centavos.
"""

import httpx
import structlog

from bookstore.payments.gateway.port import (
    ChargeResult,
    GatewayError,
    IntentResult,
    PaymentGateway,
    RefundResult,
    SourceResult,
    signature_matches,
)

logger = structlog.get_logger(__name__)

# Order payment methods mapped to PayMongo's payment_method_allowed values
_METHOD_MAP = {
    "credit_card": ["card"],
    "paypal": ["paypal"],
    "gcash": ["gcash"],
    "maya": ["paymaya"],
    "bank_transfer": ["billease"],
    "stripe": ["card"],
}

_DEFAULT_TIMEOUT = 30.0


def to_centavos(amount: float) -> int:
    return int(round(amount * 100))


def gateway_methods(payment_method: str) -> list[str]:
    return _METHOD_MAP.get(payment_method, ["card"])


def _first_error(response: httpx.Response) -> str:
    try:
        errors = response.json().get("errors") or []
    except ValueError:
        errors = []
    if errors:
        return errors[0].get("detail") or errors[0].get("code") or response.text
    return response.text or f"HTTP {response.status_code}"


def _intent_from(data: dict) -> IntentResult:
    attributes = data.get("attributes", {})
    payments = attributes.get("payments") or []
    last_error = attributes.get("last_payment_error") or {}
    return IntentResult(
        intent_id=data["id"],
        status=attributes.get("status", "unknown"),
        client_key=attributes.get("client_key"),
        next_action=attributes.get("next_action"),
        payment_id=payments[0]["id"] if payments else None,
        last_error=last_error.get("failed_message") if isinstance(last_error, dict) else None,
    )


class PayMongoGateway(PaymentGateway):
    def __init__(
        self,
        secret_key: str,
        webhook_secret: str | None = None,
        base_url: str = "https://api.paymongo.com/v1",
        transport: httpx.BaseTransport | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self.webhook_secret = webhook_secret
        self._client = httpx.Client(
            base_url=base_url,
            auth=(secret_key, ""),
            headers={"Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, attributes: dict | None = None) -> dict:
        body = {"data": {"attributes": attributes}} if attributes is not None else None
        try:
            response = self._client.request(method, path, json=body)
        except httpx.HTTPError as exc:
            logger.error("PayMongo request failed", path=path, error=str(exc))
            raise GatewayError(f"Payment gateway unreachable: {exc}") from exc

        if response.is_error:
            detail = _first_error(response)
            logger.error("PayMongo rejected request", path=path, status=response.status_code, detail=detail)
            raise GatewayError(detail, status_code=response.status_code)
        return response.json()["data"]

    def create_payment_intent(self, amount, currency, payment_method, description, metadata) -> IntentResult:
        data = self._request(
            "POST",
            "/payment_intents",
            {
                "amount": to_centavos(amount),
                "payment_method_allowed": gateway_methods(payment_method),
                "payment_method_options": {"card": {"request_three_d_secure": "automatic"}},
                "currency": currency.upper(),
                "description": description,
                "statement_descriptor": "BOOKSTORE ORDER",
                "metadata": metadata,
            },
        )
        return _intent_from(data)

    def create_source(self, amount, currency, source_type, success_url, failed_url, description, metadata):
        data = self._request(
            "POST",
            "/sources",
            {
                "amount": to_centavos(amount),
                "redirect": {"success": success_url, "failed": failed_url},
                "type": source_type,
                "currency": currency.upper(),
                "description": description,
                "metadata": metadata,
            },
        )
        attributes = data.get("attributes", {})
        return SourceResult(
            source_id=data["id"],
            status=attributes.get("status", "pending"),
            checkout_url=(attributes.get("redirect") or {}).get("checkout_url"),
        )

    def retrieve_payment_intent(self, intent_id: str) -> IntentResult:
        return _intent_from(self._request("GET", f"/payment_intents/{intent_id}"))

    def create_payment_from_source(self, source_id, amount, currency, description) -> ChargeResult:
        data = self._request(
            "POST",
            "/payments",
            {
                "amount": to_centavos(amount),
                "source": {"id": source_id, "type": "source"},
                "currency": currency.upper(),
                "description": description,
            },
        )
        return ChargeResult(payment_id=data["id"], status=data.get("attributes", {}).get("status", "pending"))

    def create_refund(self, payment_id, amount, reason) -> RefundResult:
        data = self._request(
            "POST",
            "/refunds",
            {
                "amount": to_centavos(amount),
                "payment_id": payment_id,
                "reason": reason,
            },
        )
        return RefundResult(refund_id=data["id"], status=data.get("attributes", {}).get("status", "pending"))

    def verify_webhook_signature(self, payload: bytes, signature: str | None) -> bool:
        return signature_matches(self.webhook_secret, payload, signature)
