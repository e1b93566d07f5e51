"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing (PAYMENT_GATEWAY=fake)
- HttpGateway against the real provider (PAYMENT_GATEWAY=http)
"""

from checkout.config import get_settings
from checkout.payments.gateway.fake_adapter import FakeGateway
from checkout.payments.gateway.http_adapter import HttpGateway
from checkout.payments.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def _build_gateway() -> PaymentGateway:
    settings = get_settings()
    if settings.gateway == "http":
        return HttpGateway(
            base_url=settings.gateway_url,
            key_id=settings.gateway_key_id,
            key_secret=settings.gateway_key_secret,
            timeout=settings.gateway_timeout,
        )
    return FakeGateway()


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway, built from settings on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _build_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to the configured gateway."""
    global _current_gateway
    _current_gateway = None
