"""
Payment API Endpoints.

Checkout session creation, payment confirmation and payment history.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.dependencies import get_current_principal, get_entity_lock
from backend.app.core.identity import Principal
from backend.app.db.session import get_db
from backend.app.domain.payments.gateway_factory import get_payment_gateway
from backend.app.domain.payments.gateway_port import PaymentGateway
from backend.app.domain.payments.payment_service import PaymentService
from backend.app.schemas.parcel import ParcelResponse
from backend.app.schemas.payment import (
    CheckoutSessionCreate, CheckoutSessionResponse, PaymentReceiptResponse, ReconciliationResponse
)
from backend.app.services.entity_lock import EntityLock

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/checkout-session", response_model=CheckoutSessionResponse)
async def create_checkout_session(
    checkout: CheckoutSessionCreate,
    gateway: PaymentGateway = Depends(get_payment_gateway),
    db: AsyncSession = Depends(get_db)
):
    """Create a gateway checkout page for a parcel and return its URL."""
    session = await PaymentService.create_checkout_session(db, gateway, checkout)
    return CheckoutSessionResponse(url=session.url)


@router.patch("/success", response_model=ReconciliationResponse)
async def confirm_payment(
    session_id: str = Query(..., min_length=1, description="Gateway checkout session ID"),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    locks: EntityLock = Depends(get_entity_lock),
    db: AsyncSession = Depends(get_db)
):
    """
    Confirm a checkout session after the buyer returns from the gateway.

    Safe to call repeatedly: a session is applied once, later calls
    report ``already_processed`` with the recorded tracking id. Holds the
    session lock, and the parcel lock while the payment is applied.
    """
    async with locks.hold("checkout-session", session_id):
        result = await PaymentService.reconcile(db, gateway, session_id, locks)

    return ReconciliationResponse(
        success=result.success,
        already_processed=result.already_processed,
        message=result.message,
        tracking_id=result.tracking_id,
        transaction_id=result.transaction_id,
        parcel=ParcelResponse.model_validate(result.parcel) if result.parcel else None,
        payment=PaymentReceiptResponse.model_validate(result.receipt) if result.receipt else None,
    )


@router.get("", response_model=List[PaymentReceiptResponse])
async def list_payments(
    email: Optional[str] = Query(None, description="Must be the caller's own email"),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """The caller's payment history, newest first."""
    receipts = await PaymentService.list_history(db, principal, email)
    return [PaymentReceiptResponse.model_validate(r) for r in receipts]
