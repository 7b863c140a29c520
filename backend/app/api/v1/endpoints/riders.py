"""
Rider API Endpoints.

Rider applications, admin review and the rider directory used when
picking someone for a parcel.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.dependencies import get_entity_lock
from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.core.guards import require_admin
from backend.app.core.identity import Principal
from backend.app.db.session import get_db
from backend.app.models.enums import UserRole
from backend.app.models.rider import Rider
from backend.app.models.rider_enums import RiderStatus, RiderWorkStatus
from backend.app.models.user import User
from backend.app.schemas.rider import RiderApplication, RiderResponse, RiderStatusUpdate
from backend.app.services import rider_availability
from backend.app.services.audit import log_event, AuditAction
from backend.app.services.entity_lock import EntityLock

router = APIRouter(prefix="/riders", tags=["Riders"])


@router.post("", response_model=RiderResponse, status_code=status.HTTP_201_CREATED)
async def apply_as_rider(
    application: RiderApplication,
    db: AsyncSession = Depends(get_db)
):
    """Submit a rider application. It waits as ``pending`` for admin review."""
    rider = Rider(**application.model_dump(), status=RiderStatus.PENDING)
    db.add(rider)
    await db.commit()
    await db.refresh(rider)

    return RiderResponse.model_validate(rider)


@router.get("", response_model=List[RiderResponse])
async def list_riders(
    rider_status: Optional[RiderStatus] = Query(None, alias="status"),
    district: Optional[str] = Query(None),
    work_status: Optional[RiderWorkStatus] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """
    List riders, newest applications first.

    ``status=approved&district=X&work_status=available`` gives the riders
    that can take a parcel in district X.
    """
    query = select(Rider)

    if rider_status:
        query = query.where(Rider.status == rider_status)

    if district:
        query = query.where(Rider.district == district)

    if work_status:
        query = query.where(Rider.work_status == work_status)

    query = query.order_by(Rider.created_at.desc(), Rider.id.desc())
    result = await db.execute(query)
    return [RiderResponse.model_validate(r) for r in result.scalars().all()]


@router.patch("/{rider_id}", response_model=RiderResponse)
async def review_rider(
    rider_id: int = Path(..., description="Rider ID"),
    decision: RiderStatusUpdate = ...,
    admin: Principal = Depends(require_admin),
    locks: EntityLock = Depends(get_entity_lock),
    db: AsyncSession = Depends(get_db)
):
    """
    Approve or reject a rider application (admin-only).

    Any decision resets the rider to ``available``. Approval also gives
    the matching user account the ``rider`` role, in the same transaction.
    """
    async with locks.hold("rider", rider_id):
        try:
            rider = await db.get(Rider, rider_id)
            if not rider:
                raise ResourceNotFoundError("Rider", rider_id)

            previous_status = rider.status
            rider.status = decision.status

            await rider_availability.mark_available(db, rider.id)

            promoted = None
            if decision.status == RiderStatus.APPROVED:
                email = decision.email or rider.email
                result = await db.execute(select(User).where(User.email == email))
                user = result.scalar_one_or_none()
                if user and user.role != UserRole.ADMIN:
                    user.role = UserRole.RIDER
                    promoted = user.email

            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await db.refresh(rider)

    action = {
        RiderStatus.APPROVED: AuditAction.RIDER_APPROVED,
        RiderStatus.REJECTED: AuditAction.RIDER_REJECTED,
    }.get(decision.status, AuditAction.RIDER_STATUS_CHANGED)

    await log_event(
        db=db,
        action=action,
        actor_email=admin.email,
        target_type="rider",
        target_id=rider.id,
        metadata={
            "from": previous_status.value,
            "to": decision.status.value,
            "promoted_user": promoted,
        }
    )

    return RiderResponse.model_validate(rider)
