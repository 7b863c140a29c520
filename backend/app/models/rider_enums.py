"""
Rider Status Enumerations.
"""

import enum


class RiderStatus(str, enum.Enum):
    """
    Rider application status.

    Status flow:
        PENDING → APPROVED / REJECTED
    """
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RiderWorkStatus(str, enum.Enum):
    """Rider availability for new assignments."""
    AVAILABLE = "available"  # Free to take a parcel
    IN_DELIVERY = "in_delivery"  # Currently carrying a parcel
