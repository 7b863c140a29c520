"""
Rider availability service.

Sole writer of ``Rider.work_status``. Updates only flush; the caller's
transaction commits them together with the parcel change that caused them.
"""

import logging

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.models.rider import Rider
from backend.app.models.rider_enums import RiderWorkStatus

logger = logging.getLogger("parcel_delivery.riders")


async def _set_work_status(db: AsyncSession, rider_id: int, work_status: RiderWorkStatus) -> bool:
    result = await db.execute(
        update(Rider)
        .where(Rider.id == rider_id)
        .values(work_status=work_status)
        .execution_options(synchronize_session="fetch")
    )
    await db.flush()

    found = result.rowcount > 0
    if not found:
        logger.warning("Rider %s not found, work status unchanged", rider_id)
    return found


async def mark_in_delivery(db: AsyncSession, rider_id: int) -> bool:
    """
    Mark a rider as carrying a parcel.

    Returns:
        True if the rider exists, False otherwise
    """
    return await _set_work_status(db, rider_id, RiderWorkStatus.IN_DELIVERY)


async def mark_available(db: AsyncSession, rider_id: int) -> bool:
    """
    Mark a rider as free for new assignments.

    Returns:
        True if the rider exists, False otherwise
    """
    return await _set_work_status(db, rider_id, RiderWorkStatus.AVAILABLE)
