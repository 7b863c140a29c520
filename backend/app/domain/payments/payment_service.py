"""
Payment Service (Domain Logic).

Starts gateway checkouts for parcels and reconciles completed checkout
sessions. Reconciliation must be idempotent: the gateway's browser
redirect and webhook can both deliver the same session.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.core.exceptions import (
    InvalidTransitionError,
    PaymentGatewayError,
    ResourceNotFoundError,
)
from backend.app.core.guards import ensure_same_email
from backend.app.core.identity import Principal
from backend.app.core.reliability import CircuitOpenError, gateway_circuit_breaker
from backend.app.domain.lifecycle.parcel_lifecycle import ParcelLifecycleService, allocate_tracking_id
from backend.app.domain.payments.gateway_port import CheckoutSession, GatewaySession, PaymentGateway
from backend.app.models.parcel import Parcel
from backend.app.models.parcel_enums import DeliveryStatus, PaymentStatus
from backend.app.models.payment_receipt import PaymentReceipt
from backend.app.schemas.payment import CheckoutSessionCreate
from backend.app.services.entity_lock import EntityLock
from backend.app.services.tracking_log import append_tracking_log

logger = logging.getLogger("parcel_delivery.payments")

CHECKOUT_SESSION_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"


@dataclass
class ReconciliationResult:
    success: bool
    already_processed: bool = False
    message: Optional[str] = None
    tracking_id: Optional[str] = None
    transaction_id: Optional[str] = None
    parcel: Optional[Parcel] = None
    receipt: Optional[PaymentReceipt] = None


async def call_gateway(func: Callable, *args, **kwargs) -> Any:
    """Run a gateway call through the shared circuit breaker."""
    try:
        return await gateway_circuit_breaker.call(func, *args, **kwargs)
    except CircuitOpenError as e:
        raise PaymentGatewayError("Payment gateway temporarily unavailable", status_code=503) from e


def to_major_units(amount_minor_units: int) -> float:
    return amount_minor_units / 100


def to_minor_units(amount: float) -> int:
    return int(round(amount * 100))


async def _find_receipt(db: AsyncSession, transaction_id: str) -> Optional[PaymentReceipt]:
    result = await db.execute(
        select(PaymentReceipt).where(PaymentReceipt.transaction_id == transaction_id)
    )
    return result.scalar_one_or_none()


def _already_processed(receipt: PaymentReceipt) -> ReconciliationResult:
    return ReconciliationResult(
        success=True,
        already_processed=True,
        message="already exist",
        tracking_id=receipt.tracking_id,
        transaction_id=receipt.transaction_id,
        receipt=receipt,
    )


def _parcel_id_from(session: GatewaySession) -> int:
    raw = session.metadata.get("parcel_id")
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ResourceNotFoundError("Parcel", raw)


class PaymentService:

    @staticmethod
    async def create_checkout_session(
        db: AsyncSession,
        gateway: PaymentGateway,
        checkout: CheckoutSessionCreate
    ) -> CheckoutSession:
        """
        Create a hosted checkout page for an unpaid parcel.

        Raises:
            ResourceNotFoundError: parcel does not exist
            InvalidTransitionError: parcel is already paid
            PaymentGatewayError: gateway call failed
        """
        parcel = await ParcelLifecycleService.get(db, checkout.parcel_id)
        if parcel.payment_status == PaymentStatus.PAID:
            raise InvalidTransitionError(parcel.delivery_status, DeliveryStatus.PARCEL_PAID.value)

        site = settings.site_domain.rstrip("/")
        session = await call_gateway(
            gateway.create_checkout_session,
            amount_minor_units=to_minor_units(checkout.cost),
            currency=settings.payment_currency,
            product_label=f"Please pay for: {checkout.parcel_name}",
            buyer_email=checkout.sender_email,
            metadata={
                "parcel_id": str(checkout.parcel_id),
                "parcel_name": checkout.parcel_name,
            },
            success_url=f"{site}/dashboard/payment-success?session_id={CHECKOUT_SESSION_PLACEHOLDER}",
            cancel_url=f"{site}/dashboard/payment-cancelled",
        )

        logger.info("Checkout session %s created for parcel %s", session.session_id, parcel.id)
        return session

    @staticmethod
    async def reconcile(
        db: AsyncSession,
        gateway: PaymentGateway,
        session_id: str,
        locks: EntityLock
    ) -> ReconciliationResult:
        """
        Apply a completed checkout session exactly once.

        Flow:
        1. Retrieve the session from the gateway
        2. Idempotency Check (existing receipt for the transaction)
        3. Unpaid session -> failure result, nothing written
        4. Under the parcel lock, mark the parcel paid and insert the
           receipt in one transaction. A parcel still at
           ``parcel_created`` moves to ``parcel_paid`` and gets a
           ``pending_pickup`` tracking entry; a parcel already further
           along keeps its delivery status.

        A collected payment is always recorded, whatever the delivery
        status.

        Raises:
            PaymentGatewayError: gateway call failed
            ResourceNotFoundError: session metadata points at no parcel
            EntityLockedError: the parcel is being updated by another request
        """
        session = await call_gateway(gateway.retrieve_session, session_id)
        transaction_id = session.payment_intent_id or session.session_id

        # 2. Idempotency Check
        existing = await _find_receipt(db, transaction_id)
        if existing:
            logger.info("Session %s already reconciled", session_id, extra={"transaction_id": transaction_id})
            return _already_processed(existing)

        # 3. Payment not completed
        if not session.is_paid:
            logger.info("Session %s not paid (%s)", session_id, session.payment_status)
            return ReconciliationResult(success=False, message="payment not completed")

        # 4. Apply
        parcel_id = _parcel_id_from(session)
        async with locks.hold("parcel", parcel_id):
            try:
                parcel = await ParcelLifecycleService.get(db, parcel_id)

                # Parcels booked before tracking ids existed get one now
                tracking_id = parcel.tracking_id or await allocate_tracking_id(db)
                awaiting_payment = parcel.delivery_status in (None, DeliveryStatus.PARCEL_CREATED.value)

                parcel.payment_status = PaymentStatus.PAID
                parcel.tracking_id = tracking_id
                if awaiting_payment:
                    parcel.delivery_status = DeliveryStatus.PARCEL_PAID.value

                receipt = PaymentReceipt(
                    transaction_id=transaction_id,
                    parcel_id=parcel.id,
                    parcel_name=session.metadata.get("parcel_name"),
                    tracking_id=tracking_id,
                    amount=to_major_units(session.amount_total),
                    currency=session.currency,
                    customer_email=session.customer_email,
                    payment_status=session.payment_status,
                )
                db.add(receipt)
                await db.flush()

                if awaiting_payment:
                    await append_tracking_log(db, tracking_id, DeliveryStatus.PENDING_PICKUP.value)
                await db.commit()
            except IntegrityError:
                # A concurrent delivery of the same session won the insert
                await db.rollback()
                existing = await _find_receipt(db, transaction_id)
                if existing is None:
                    raise
                logger.info("Session %s reconciled concurrently", session_id, extra={"transaction_id": transaction_id})
                return _already_processed(existing)
            except Exception:
                await db.rollback()
                raise

        await db.refresh(parcel)
        await db.refresh(receipt)
        logger.info(
            "Payment %s applied to parcel %s (%s)", transaction_id, parcel.id, parcel.delivery_status,
            extra={"tracking_id": tracking_id}
        )
        return ReconciliationResult(
            success=True,
            tracking_id=tracking_id,
            transaction_id=transaction_id,
            parcel=parcel,
            receipt=receipt,
        )

    @staticmethod
    async def list_history(
        db: AsyncSession,
        principal: Principal,
        email: Optional[str]
    ) -> List[PaymentReceipt]:
        """
        The caller's own receipts, newest first.

        Raises:
            InsufficientPermissionsError: ``email`` is not the caller's
        """
        ensure_same_email(principal, email)

        result = await db.execute(
            select(PaymentReceipt)
            .where(PaymentReceipt.customer_email == email)
            .order_by(PaymentReceipt.paid_at.desc(), PaymentReceipt.id.desc())
        )
        return list(result.scalars().all())
