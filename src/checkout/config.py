"""Checkout settings loaded from the environment.

Fees, gateway credentials and the webhook secret are supplied through
environment variables, never flags. Settings are read once and cached;
tests swap them with set_settings() / reset_settings().
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class CheckoutSettings:
    handling_fee: float = 20.0
    base_delivery_fee: float = 50.0
    currency: str = "INR"
    gateway: str = "fake"  # fake | http
    gateway_url: str = "https://api.razorpay.com/v1"
    gateway_key_id: str = ""
    gateway_key_secret: str = ""
    gateway_timeout: float = 10.0
    webhook_secret: str = ""
    abandoned_order_hours: int = 24

    @classmethod
    def from_env(cls) -> "CheckoutSettings":
        return cls(
            handling_fee=float(os.getenv("HANDLING_FEE", "20.0")),
            base_delivery_fee=float(os.getenv("BASE_DELIVERY_FEE", "50.0")),
            currency=os.getenv("CHECKOUT_CURRENCY", "INR"),
            gateway=os.getenv("PAYMENT_GATEWAY", "fake").lower(),
            gateway_url=os.getenv("PAYMENT_GATEWAY_URL", "https://api.razorpay.com/v1"),
            gateway_key_id=os.getenv("PAYMENT_GATEWAY_KEY_ID", ""),
            gateway_key_secret=os.getenv("PAYMENT_GATEWAY_KEY_SECRET", ""),
            gateway_timeout=float(os.getenv("PAYMENT_GATEWAY_TIMEOUT", "10")),
            webhook_secret=os.getenv("PAYMENT_WEBHOOK_SECRET", ""),
            abandoned_order_hours=int(os.getenv("ABANDONED_ORDER_HOURS", "24")),
        )


_current_settings: CheckoutSettings | None = None


def get_settings() -> CheckoutSettings:
    """Return the active settings, loading them from the environment on first use."""
    global _current_settings
    if _current_settings is None:
        _current_settings = CheckoutSettings.from_env()
    return _current_settings


def set_settings(settings: CheckoutSettings) -> None:
    """Override the active settings (useful for tests)."""
    global _current_settings
    _current_settings = settings


def reset_settings() -> None:
    """Drop cached settings so the next access re-reads the environment."""
    global _current_settings
    _current_settings = None
