"""
Stripe payment gateway adapter.

Uses Stripe Checkout Sessions. The stripe SDK is synchronous, so calls
run in a worker thread to keep the event loop free.
"""

import asyncio
import logging
from typing import Dict

import stripe

from backend.app.core.exceptions import PaymentGatewayError
from backend.app.domain.payments.gateway_port import CheckoutSession, GatewaySession, PaymentGateway

logger = logging.getLogger("parcel_delivery.payments")


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    def __init__(self, api_key: str) -> None:
        if not api_key:
            raise ValueError("Stripe secret key is not configured")
        self.api_key = api_key

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
        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.create,
                api_key=self.api_key,
                mode="payment",
                line_items=[
                    {
                        "price_data": {
                            "currency": currency,
                            "unit_amount": amount_minor_units,
                            "product_data": {"name": product_label},
                        },
                        "quantity": 1,
                    }
                ],
                customer_email=buyer_email,
                metadata=metadata,
                success_url=success_url,
                cancel_url=cancel_url,
            )
        except stripe.StripeError as e:
            logger.warning("Stripe checkout session creation failed: %s", e)
            raise PaymentGatewayError(f"Could not create checkout session: {e.user_message or e}") from e

        return CheckoutSession(session_id=session.id, url=session.url)

    async def retrieve_session(self, session_id: str) -> GatewaySession:
        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.retrieve,
                session_id,
                api_key=self.api_key,
            )
        except stripe.StripeError as e:
            logger.warning("Stripe session retrieval failed for %s: %s", session_id, e)
            raise PaymentGatewayError(f"Could not retrieve checkout session: {e.user_message or e}") from e

        customer_email = session.customer_email
        if not customer_email and session.customer_details:
            customer_email = session.customer_details.email

        return GatewaySession(
            session_id=session.id,
            payment_intent_id=session.payment_intent,
            payment_status=session.payment_status,
            amount_total=session.amount_total or 0,
            currency=session.currency,
            customer_email=customer_email,
            metadata={key: str(value) for key, value in (session.metadata or {}).items()},
        )
