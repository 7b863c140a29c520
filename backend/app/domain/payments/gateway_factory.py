"""
Payment gateway factory.

Provides get_payment_gateway() / set_payment_gateway() to swap implementations:
- FakeGateway for development and testing
- StripeGateway for production (``PAYMENT_GATEWAY=stripe``)
"""

from typing import Optional

from backend.app.core.config import settings
from backend.app.domain.payments.fake_gateway import FakeGateway
from backend.app.domain.payments.gateway_port import PaymentGateway
from backend.app.domain.payments.stripe_gateway import StripeGateway

_current_gateway: Optional[PaymentGateway] = None


def build_gateway() -> PaymentGateway:
    if settings.payment_gateway == "stripe":
        return StripeGateway(api_key=settings.stripe_secret_key)
    return FakeGateway()


def get_payment_gateway() -> PaymentGateway:
    """Return the current payment gateway. FastAPI dependency."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = build_gateway()
    return _current_gateway


def set_payment_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_payment_gateway() -> None:
    """Reset to the configured gateway."""
    global _current_gateway
    _current_gateway = None
