"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- PayMongoGateway when PAYMONGO_SECRET_KEY is configured
- FakeGateway otherwise (development and testing)
"""

from bookstore.payments.gateway.fake_adapter import FakeGateway
from bookstore.payments.gateway.paymongo_adapter import PayMongoGateway
from bookstore.payments.gateway.port import GatewayError, PaymentGateway
from bookstore.utils.settings import paymongo_base_url, paymongo_secret_key, paymongo_webhook_secret

_current_gateway: PaymentGateway | None = None


def _default_gateway() -> PaymentGateway:
    secret_key = paymongo_secret_key()
    if secret_key:
        return PayMongoGateway(
            secret_key=secret_key,
            webhook_secret=paymongo_webhook_secret(),
            base_url=paymongo_base_url(),
        )
    return FakeGateway(webhook_secret=paymongo_webhook_secret())


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway, building the default on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _default_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None


__all__ = [
    "FakeGateway",
    "GatewayError",
    "PayMongoGateway",
    "PaymentGateway",
    "get_gateway",
    "reset_gateway",
    "set_gateway",
]
