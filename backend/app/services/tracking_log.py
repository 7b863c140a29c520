"""
Tracking log service.

Append-only store of delivery status changes per tracking id.
Appends only flush; the caller's transaction decides when they become
visible, so a log entry is committed together with the status change it
describes.
"""

import logging
import re
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.models.tracking_log import TrackingLog

logger = logging.getLogger("parcel_delivery.tracking")

_SEPARATORS = re.compile(r"[_\-]+")


def describe_status(status: str) -> str:
    """Human readable form of a status token: ``driver_assigned`` -> ``driver assigned``."""
    return _SEPARATORS.sub(" ", status).strip()


async def append_tracking_log(
    db: AsyncSession,
    tracking_id: Optional[str],
    status: str
) -> Optional[TrackingLog]:
    """
    Append one tracking entry.

    Args:
        db: Database session (caller commits)
        tracking_id: Public tracking code of the parcel
        status: Delivery status token being recorded

    Returns:
        The new TrackingLog, or None when ``tracking_id`` is empty and
        nothing was written
    """
    if not tracking_id:
        logger.warning("Skipping tracking log without tracking id", extra={"status": status})
        return None

    entry = TrackingLog(
        tracking_id=tracking_id,
        status=status,
        details=describe_status(status)
    )
    db.add(entry)
    await db.flush()

    return entry


async def list_tracking_logs(db: AsyncSession, tracking_id: str) -> List[TrackingLog]:
    """
    All entries for a tracking id in insertion order.

    Returns an empty list when the tracking id is unknown.
    """
    result = await db.execute(
        select(TrackingLog)
        .where(TrackingLog.tracking_id == tracking_id)
        .order_by(TrackingLog.id)
    )
    return list(result.scalars().all())
