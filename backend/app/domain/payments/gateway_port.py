"""
Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement.
This enables swapping between FakeGateway (dev/test) and StripeGateway
(production) without changing any domain or application code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass(frozen=True)
class CheckoutSession:
    """A hosted checkout page created by the gateway."""

    session_id: str
    url: str


@dataclass(frozen=True)
class GatewaySession:
    """Gateway view of a checkout session."""

    session_id: str
    payment_intent_id: Optional[str]
    payment_status: str  # "paid", "unpaid", "no_payment_required"
    amount_total: int  # Minor currency units
    currency: str
    customer_email: Optional[str]
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid"


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    async def create_checkout_session(
        self,
        amount_minor_units: int,
        currency: str,
        product_label: str,
        buyer_email: str,
        metadata: Dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        """Create a hosted checkout session for a single line item."""
        ...

    @abstractmethod
    async def retrieve_session(self, session_id: str) -> GatewaySession:
        """Fetch the current state of a checkout session."""
        ...
