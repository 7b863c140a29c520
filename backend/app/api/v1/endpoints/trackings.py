"""
Tracking API Endpoints.

Public lookup of a shipment's status history by tracking id.
"""

from typing import List

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.session import get_db
from backend.app.schemas.parcel import TrackingLogResponse
from backend.app.services.tracking_log import list_tracking_logs

router = APIRouter(prefix="/trackings", tags=["Tracking"])


@router.get("/{tracking_id}/logs", response_model=List[TrackingLogResponse])
async def get_tracking_logs(
    tracking_id: str = Path(..., description="Tracking ID, e.g. ZS-20250101-1A2B3C4D"),
    db: AsyncSession = Depends(get_db)
):
    """Status history in the order it happened; empty for unknown ids."""
    logs = await list_tracking_logs(db, tracking_id)
    return [TrackingLogResponse.model_validate(entry) for entry in logs]
