"""
In-memory fake payment gateway for development and testing.

Sessions start ``unpaid``; ``complete_payment`` simulates the buyer
finishing checkout, the way Stripe test mode does with a test card.
"""

from typing import Dict, Optional
from uuid import uuid4

from backend.app.core.exceptions import PaymentGatewayError
from backend.app.domain.payments.gateway_port import CheckoutSession, GatewaySession, PaymentGateway


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.sessions: Dict[str, GatewaySession] = {}
        self.should_fail: bool = False
        self.calls: list[dict] = []

    def configure(self, should_fail: bool) -> None:
        """Make every following call raise PaymentGatewayError."""
        self.should_fail = should_fail

    def _check_available(self) -> None:
        if self.should_fail:
            raise PaymentGatewayError("Fake gateway unavailable")

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
        self.calls.append({
            "method": "create_checkout_session",
            "amount_minor_units": amount_minor_units,
            "currency": currency,
            "product_label": product_label,
            "buyer_email": buyer_email,
            "metadata": dict(metadata),
            "success_url": success_url,
            "cancel_url": cancel_url,
        })
        self._check_available()

        session_id = f"cs_test_{uuid4().hex[:24]}"
        self.sessions[session_id] = GatewaySession(
            session_id=session_id,
            payment_intent_id=None,
            payment_status="unpaid",
            amount_total=amount_minor_units,
            currency=currency,
            customer_email=buyer_email,
            metadata=dict(metadata),
        )
        return CheckoutSession(
            session_id=session_id,
            url=f"https://checkout.fake.local/pay/{session_id}",
        )

    def complete_payment(self, session_id: str, payment_intent_id: Optional[str] = None) -> GatewaySession:
        """Mark a session as paid, as if the buyer completed checkout."""
        session = self.sessions[session_id]
        paid = GatewaySession(
            session_id=session.session_id,
            payment_intent_id=payment_intent_id or f"pi_{uuid4().hex[:24]}",
            payment_status="paid",
            amount_total=session.amount_total,
            currency=session.currency,
            customer_email=session.customer_email,
            metadata=session.metadata,
        )
        self.sessions[session_id] = paid
        return paid

    async def retrieve_session(self, session_id: str) -> GatewaySession:
        self.calls.append({"method": "retrieve_session", "session_id": session_id})
        self._check_available()

        session = self.sessions.get(session_id)
        if session is None:
            raise PaymentGatewayError(f"No such checkout session: {session_id}")
        return session
