"""
Parcel API Endpoints.

Booking, rider assignment, delivery status updates and parcel listings.
Mutations on a parcel hold its entity lock, and the rider lock when the
rider's availability can change, so concurrent writes to the same parcel
or rider are serialized.
"""

from contextlib import AsyncExitStack
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.dependencies import get_current_principal, get_entity_lock
from backend.app.core.exceptions import InsufficientPermissionsError
from backend.app.core.guards import is_admin
from backend.app.core.identity import Principal
from backend.app.db.session import get_db
from backend.app.domain.lifecycle.parcel_lifecycle import ParcelLifecycleService
from backend.app.schemas.parcel import (
    ParcelCreate, ParcelResponse, RiderAssignment, RiderAssignmentResponse, StatusUpdate
)
from backend.app.schemas.rider import RiderResponse
from backend.app.services.audit import log_event, AuditAction
from backend.app.services.entity_lock import EntityLock

router = APIRouter(prefix="/parcels", tags=["Parcels"])


@router.get("", response_model=List[ParcelResponse])
async def list_parcels(
    email: Optional[str] = Query(None, description="Sender email"),
    delivery_status: Optional[str] = Query(None, description="Exact delivery status"),
    db: AsyncSession = Depends(get_db)
):
    """List parcels newest first, optionally by sender and status."""
    parcels = await ParcelLifecycleService.list_by_filter(db, sender_email=email, delivery_status=delivery_status)
    return [ParcelResponse.model_validate(p) for p in parcels]


@router.get("/rider", response_model=List[ParcelResponse])
async def list_rider_parcels(
    rider_email: Optional[str] = Query(None, description="Assigned rider email"),
    delivery_status: Optional[str] = Query(None, description="parcel_delivered for delivery history"),
    db: AsyncSession = Depends(get_db)
):
    """
    A rider's parcels.

    Active jobs by default; ``delivery_status=parcel_delivered`` lists
    completed deliveries instead.
    """
    parcels = await ParcelLifecycleService.list_for_rider(db, rider_email=rider_email, delivery_status=delivery_status)
    return [ParcelResponse.model_validate(p) for p in parcels]


@router.get("/{parcel_id}", response_model=ParcelResponse)
async def get_parcel(
    parcel_id: int = Path(..., description="Parcel ID"),
    db: AsyncSession = Depends(get_db)
):
    parcel = await ParcelLifecycleService.get(db, parcel_id)
    return ParcelResponse.model_validate(parcel)


@router.post("", response_model=ParcelResponse, status_code=status.HTTP_201_CREATED)
async def create_parcel(
    parcel_data: ParcelCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Book a new parcel.

    The parcel gets its tracking id here and starts as ``parcel_created``.
    """
    parcel = await ParcelLifecycleService.create(db, parcel_data)
    return ParcelResponse.model_validate(parcel)


@router.patch("/{parcel_id}/assign", response_model=RiderAssignmentResponse)
async def assign_rider(
    parcel_id: int = Path(..., description="Parcel ID"),
    assignment: RiderAssignment = ...,
    locks: EntityLock = Depends(get_entity_lock),
    db: AsyncSession = Depends(get_db)
):
    """
    Assign a rider to a parcel waiting for pickup.

    Validates:
    - Parcel and rider exist
    - Parcel is ``parcel_paid`` or ``pending_pickup``

    The rider becomes ``in_delivery``.
    """
    async with locks.hold("parcel", parcel_id), locks.hold("rider", assignment.rider_id):
        result = await ParcelLifecycleService.assign_rider(
            db,
            parcel_id=parcel_id,
            rider_id=assignment.rider_id,
            rider_name=assignment.rider_name,
            rider_email=assignment.rider_email,
        )

    return RiderAssignmentResponse(
        parcel_id=result.parcel.id,
        tracking_id=result.parcel.tracking_id,
        delivery_status=result.parcel.delivery_status,
        previous_work_status=result.previous_work_status.value if result.previous_work_status else None,
        rider=RiderResponse.model_validate(result.rider)
    )


@router.patch("/{parcel_id}/status", response_model=ParcelResponse)
async def update_parcel_status(
    parcel_id: int = Path(..., description="Parcel ID"),
    update: StatusUpdate = ...,
    locks: EntityLock = Depends(get_entity_lock),
    db: AsyncSession = Depends(get_db)
):
    """
    Advance a parcel's delivery status.

    ``parcel_delivered`` frees the rider. Custom in-transit stages are
    accepted between ``driver_assigned`` and ``parcel_delivered``.
    The rider lock is held as well when the parcel has a rider or the
    request names one.
    """
    async with AsyncExitStack() as held:
        await held.enter_async_context(locks.hold("parcel", parcel_id))

        current = await ParcelLifecycleService.get(db, parcel_id)
        rider_id = update.rider_id or current.rider_id
        if rider_id:
            await held.enter_async_context(locks.hold("rider", rider_id))

        parcel = await ParcelLifecycleService.set_status(
            db,
            parcel_id=parcel_id,
            new_status=update.delivery_status,
            rider_id=update.rider_id,
        )

    return ParcelResponse.model_validate(parcel)


@router.delete("/{parcel_id}")
async def delete_parcel(
    parcel_id: int = Path(..., description="Parcel ID"),
    principal: Principal = Depends(get_current_principal),
    locks: EntityLock = Depends(get_entity_lock),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a parcel (its sender or an admin).

    Tracking history and payment receipts are kept.
    """
    async with locks.hold("parcel", parcel_id):
        parcel = await ParcelLifecycleService.get(db, parcel_id)
        if parcel.sender_email != principal.email and not await is_admin(db, principal):
            raise InsufficientPermissionsError()

        await ParcelLifecycleService.delete(db, parcel_id)

    await log_event(
        db=db,
        action=AuditAction.PARCEL_DELETED,
        actor_email=principal.email,
        target_type="parcel",
        target_id=parcel_id,
        metadata={"tracking_id": parcel.tracking_id, "delivery_status": parcel.delivery_status}
    )

    return {"deleted_count": 1, "parcel_id": parcel_id}
