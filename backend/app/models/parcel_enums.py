"""
Parcel and payment status enumerations.
"""

import enum


class DeliveryStatus(str, enum.Enum):
    """
    Known delivery status vocabulary.

    Status flow:
        parcel_created → parcel_paid / pending_pickup → driver_assigned
        → rider_arriving / parcel_picked_up / in_transit / <custom> → parcel_delivered

    The parcel column is string-typed, so in-transit stages outside this
    vocabulary are accepted as custom tokens.
    """
    PARCEL_CREATED = "parcel_created"
    PARCEL_PAID = "parcel_paid"
    PENDING_PICKUP = "pending_pickup"
    DRIVER_ASSIGNED = "driver_assigned"
    RIDER_ARRIVING = "rider_arriving"
    PARCEL_PICKED_UP = "parcel_picked_up"
    IN_TRANSIT = "in_transit"
    PARCEL_DELIVERED = "parcel_delivered"


class PaymentStatus(str, enum.Enum):
    """Parcel payment status."""
    UNPAID = "unpaid"
    PAID = "paid"
