"""
Parcel delivery status state machine.

Statuses are string tokens. The known vocabulary lives in
``DeliveryStatus``; any other well-formed token is a custom in-transit
stage that sits between ``driver_assigned`` and ``parcel_delivered``.
"""

import re
from typing import Dict, FrozenSet, Optional

from backend.app.core.exceptions import InvalidTransitionError
from backend.app.models.parcel_enums import DeliveryStatus

STATUS_TOKEN = re.compile(r"^[a-z][a-z0-9_-]{0,63}$")

# Stages a rider moves through while carrying the parcel
IN_TRANSIT_STATUSES: FrozenSet[str] = frozenset({
    DeliveryStatus.RIDER_ARRIVING.value,
    DeliveryStatus.PARCEL_PICKED_UP.value,
    DeliveryStatus.IN_TRANSIT.value,
})

KNOWN_STATUSES: FrozenSet[str] = frozenset(status.value for status in DeliveryStatus)

# Legal successors for every known status. Custom tokens behave like
# IN_TRANSIT_STATUSES (see _successors).
TRANSITIONS: Dict[str, FrozenSet[str]] = {
    DeliveryStatus.PARCEL_CREATED.value: frozenset({
        DeliveryStatus.PARCEL_PAID.value,
        DeliveryStatus.PENDING_PICKUP.value,
    }),
    DeliveryStatus.PARCEL_PAID.value: frozenset({
        DeliveryStatus.PENDING_PICKUP.value,
        DeliveryStatus.DRIVER_ASSIGNED.value,
    }),
    DeliveryStatus.PENDING_PICKUP.value: frozenset({
        DeliveryStatus.DRIVER_ASSIGNED.value,
    }),
    DeliveryStatus.DRIVER_ASSIGNED.value: frozenset({
        # Rider declined the job: back to the pickup queue
        DeliveryStatus.PENDING_PICKUP.value,
        DeliveryStatus.PARCEL_DELIVERED.value,
    }) | IN_TRANSIT_STATUSES,
    DeliveryStatus.PARCEL_DELIVERED.value: frozenset(),
}


def is_custom_status(status: str) -> bool:
    """True for a well-formed token outside the known vocabulary."""
    return status not in KNOWN_STATUSES and bool(STATUS_TOKEN.match(status))


def normalize_status(status: str) -> str:
    """
    Canonical token for a client supplied status.

    Lower-cases, trims and maps ``-`` to ``_`` for known statuses, so the
    legacy ``pending-pickup`` spelling is accepted.
    """
    token = status.strip().lower()
    underscored = token.replace("-", "_")
    if underscored in KNOWN_STATUSES:
        return underscored
    return token


def _successors(current: str) -> FrozenSet[str]:
    if current in TRANSITIONS:
        return TRANSITIONS[current]
    # Known in-transit stage or custom token
    return (IN_TRANSIT_STATUSES - {current}) | {DeliveryStatus.PARCEL_DELIVERED.value}


def can_transition(current: Optional[str], target: str) -> bool:
    """
    Whether a parcel in ``current`` may move to ``target``.

    A parcel without a status is treated as freshly created.
    """
    current = normalize_status(current or DeliveryStatus.PARCEL_CREATED.value)

    if not STATUS_TOKEN.match(target):
        return False

    successors = _successors(current)
    if target in successors:
        return True

    # Open vocabulary: custom stages are legal wherever in-transit stages are
    if is_custom_status(target) and target != current:
        return bool(successors & IN_TRANSIT_STATUSES)

    return False


def transition(current: Optional[str], target: str) -> str:
    """
    Validate a move and return the normalized target status.

    Raises:
        InvalidTransitionError: the move is not in the transition table
    """
    target = normalize_status(target)
    if not can_transition(current, target):
        raise InvalidTransitionError(current, target)
    return target
