"""
Parcel Lifecycle Service (Domain Logic).

Owns a parcel's tracking id, delivery status and payment status, and
drives every delivery status change. Each mutating operation is one
transaction: the parcel update, any rider availability change, and the
tracking log entry are committed together or not at all.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import (
    InvalidTransitionError,
    ResourceNotFoundError,
    RiderUnavailableError,
    TrackingIdGenerationError,
)
from backend.app.domain.lifecycle import tracking_id as tracking_ids
from backend.app.domain.lifecycle.state_machine import transition
from backend.app.models.parcel import Parcel
from backend.app.models.parcel_enums import DeliveryStatus, PaymentStatus
from backend.app.models.rider import Rider
from backend.app.models.rider_enums import RiderStatus, RiderWorkStatus
from backend.app.schemas.parcel import ParcelCreate
from backend.app.services import rider_availability
from backend.app.services.tracking_log import append_tracking_log

logger = logging.getLogger("parcel_delivery.lifecycle")

MAX_TRACKING_ID_ATTEMPTS = 5

# Statuses with a dedicated operation; set_status refuses them
RESERVED_STATUSES = frozenset({
    DeliveryStatus.PARCEL_CREATED.value,
    DeliveryStatus.PARCEL_PAID.value,
    DeliveryStatus.DRIVER_ASSIGNED.value,
})


@dataclass
class RiderAssignmentResult:
    parcel: Parcel
    rider: Rider
    previous_work_status: Optional[RiderWorkStatus]


async def allocate_tracking_id(db: AsyncSession) -> str:
    """Mint a tracking id that no parcel uses yet."""
    for _ in range(MAX_TRACKING_ID_ATTEMPTS):
        candidate = tracking_ids.generate_tracking_id()
        result = await db.execute(select(Parcel.id).where(Parcel.tracking_id == candidate))
        if result.scalar_one_or_none() is None:
            return candidate
        logger.warning("Tracking id collision on %s, retrying", candidate)

    raise TrackingIdGenerationError("Could not allocate a unique tracking id")


class ParcelLifecycleService:

    @staticmethod
    async def get(db: AsyncSession, parcel_id: int) -> Parcel:
        parcel = await db.get(Parcel, parcel_id)
        if not parcel:
            raise ResourceNotFoundError("Parcel", parcel_id)
        return parcel

    @staticmethod
    async def create(db: AsyncSession, parcel_data: ParcelCreate) -> Parcel:
        """
        Book a new parcel.

        Flow:
        1. Allocate a unique tracking id
        2. Persist the parcel as ``parcel_created`` / ``unpaid``
        3. Append the ``parcel_created`` tracking entry
        4. Commit both in one transaction
        """
        try:
            tracking_id = await allocate_tracking_id(db)

            parcel = Parcel(
                **parcel_data.model_dump(),
                tracking_id=tracking_id,
                delivery_status=DeliveryStatus.PARCEL_CREATED.value,
                payment_status=PaymentStatus.UNPAID,
            )
            db.add(parcel)
            await db.flush()

            await append_tracking_log(db, tracking_id, DeliveryStatus.PARCEL_CREATED.value)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await db.refresh(parcel)
        logger.info("Parcel %s created", parcel.id, extra={"tracking_id": tracking_id})
        return parcel

    @staticmethod
    async def assign_rider(
        db: AsyncSession,
        parcel_id: int,
        rider_id: int,
        rider_name: Optional[str] = None,
        rider_email: Optional[str] = None
    ) -> RiderAssignmentResult:
        """
        Hand a parcel to a rider.

        Sets the parcel to ``driver_assigned``, marks the rider
        ``in_delivery`` and appends a ``driver_assigned`` entry under the
        parcel's existing tracking id.

        Raises:
            ResourceNotFoundError: parcel or rider does not exist
            InvalidTransitionError: parcel is not waiting for a rider
            RiderUnavailableError: rider is not approved or is already delivering
        """
        try:
            parcel = await ParcelLifecycleService.get(db, parcel_id)

            rider = await db.get(Rider, rider_id)
            if not rider:
                raise ResourceNotFoundError("Rider", rider_id)

            new_status = transition(parcel.delivery_status, DeliveryStatus.DRIVER_ASSIGNED.value)
            previous_work_status = rider.work_status

            if rider.status != RiderStatus.APPROVED or previous_work_status == RiderWorkStatus.IN_DELIVERY:
                raise RiderUnavailableError(
                    rider.id,
                    rider.status.value,
                    previous_work_status.value if previous_work_status else None,
                )

            parcel.delivery_status = new_status
            parcel.rider_id = rider.id
            parcel.rider_name = rider_name or rider.name
            parcel.rider_email = rider_email or rider.email

            await rider_availability.mark_in_delivery(db, rider.id)
            await append_tracking_log(db, parcel.tracking_id, new_status)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await db.refresh(parcel)
        await db.refresh(rider)
        logger.info(
            "Rider %s assigned to parcel %s", rider.id, parcel.id,
            extra={"tracking_id": parcel.tracking_id}
        )
        return RiderAssignmentResult(parcel=parcel, rider=rider, previous_work_status=previous_work_status)

    @staticmethod
    async def set_status(
        db: AsyncSession,
        parcel_id: int,
        new_status: str,
        rider_id: Optional[int] = None
    ) -> Parcel:
        """
        Advance a parcel to any status other than creation, payment and assignment.

        ``parcel_delivered`` frees the rider (``rider_id`` or the assigned
        rider). Moving ``driver_assigned`` back to ``pending_pickup`` means
        the rider declined, so the rider is freed and unlinked.

        Raises:
            ResourceNotFoundError: parcel, or the rider to free, does not exist
            InvalidTransitionError: the move is not allowed
        """
        try:
            parcel = await ParcelLifecycleService.get(db, parcel_id)
            current = parcel.delivery_status
            target = transition(current, new_status)

            if target in RESERVED_STATUSES:
                raise InvalidTransitionError(current, target)

            if target == DeliveryStatus.PARCEL_DELIVERED.value:
                release_id = rider_id or parcel.rider_id
                if release_id and not await rider_availability.mark_available(db, release_id):
                    raise ResourceNotFoundError("Rider", release_id)

            elif target == DeliveryStatus.PENDING_PICKUP.value and parcel.rider_id:
                await rider_availability.mark_available(db, parcel.rider_id)
                parcel.rider_id = None
                parcel.rider_name = None
                parcel.rider_email = None

            parcel.delivery_status = target
            await append_tracking_log(db, parcel.tracking_id, target)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await db.refresh(parcel)
        logger.info(
            "Parcel %s moved %s -> %s", parcel.id, current, target,
            extra={"tracking_id": parcel.tracking_id}
        )
        return parcel

    @staticmethod
    async def delete(db: AsyncSession, parcel_id: int) -> Parcel:
        """
        Remove a parcel record.

        Tracking history and payment receipts are kept.
        """
        parcel = await ParcelLifecycleService.get(db, parcel_id)
        await db.delete(parcel)
        await db.commit()

        logger.info("Parcel %s deleted", parcel_id, extra={"tracking_id": parcel.tracking_id})
        return parcel

    @staticmethod
    async def list_by_filter(
        db: AsyncSession,
        sender_email: Optional[str] = None,
        delivery_status: Optional[str] = None
    ) -> List[Parcel]:
        """Parcels newest first; omitted filters match everything."""
        query = select(Parcel)

        if sender_email:
            query = query.where(Parcel.sender_email == sender_email)

        if delivery_status:
            query = query.where(Parcel.delivery_status == delivery_status)

        query = query.order_by(Parcel.created_at.desc(), Parcel.id.desc())
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def list_for_rider(
        db: AsyncSession,
        rider_email: Optional[str] = None,
        delivery_status: Optional[str] = None
    ) -> List[Parcel]:
        """
        A rider's workload.

        Without ``delivery_status`` delivered parcels are hidden (active
        jobs). ``parcel_delivered`` switches to the delivered history; any
        other status filters on that status.
        """
        query = select(Parcel)

        if rider_email:
            query = query.where(Parcel.rider_email == rider_email)

        if delivery_status:
            query = query.where(Parcel.delivery_status == delivery_status)
        else:
            query = query.where(Parcel.delivery_status != DeliveryStatus.PARCEL_DELIVERED.value)

        query = query.order_by(Parcel.created_at.desc(), Parcel.id.desc())
        result = await db.execute(query)
        return list(result.scalars().all())
