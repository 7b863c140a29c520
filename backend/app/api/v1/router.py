"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from backend.app.api.v1.endpoints import parcels, payments, riders, trackings, users

router = APIRouter()

# Accounts and roles
router.include_router(users.router)

# Rider applications and directory
router.include_router(riders.router)

# Parcel lifecycle
router.include_router(parcels.router)
router.include_router(trackings.router)

# Checkout and reconciliation
router.include_router(payments.router)
