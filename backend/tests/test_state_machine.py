"""
Delivery Status State Machine Tests.
"""

import pytest

from backend.app.core.exceptions import InvalidTransitionError
from backend.app.domain.lifecycle.state_machine import (
    can_transition, is_custom_status, normalize_status, transition
)


@pytest.mark.parametrize("current,target", [
    ("parcel_created", "parcel_paid"),
    ("parcel_created", "pending_pickup"),
    ("parcel_paid", "driver_assigned"),
    ("pending_pickup", "driver_assigned"),
    ("driver_assigned", "rider_arriving"),
    ("driver_assigned", "pending_pickup"),
    ("rider_arriving", "parcel_picked_up"),
    ("parcel_picked_up", "in_transit"),
    ("in_transit", "parcel_delivered"),
    ("driver_assigned", "parcel_delivered"),
])
def test_allowed_transitions(current, target):
    assert can_transition(current, target)


@pytest.mark.parametrize("current,target", [
    ("parcel_created", "driver_assigned"),
    ("parcel_created", "parcel_delivered"),
    ("pending_pickup", "parcel_delivered"),
    ("parcel_delivered", "in_transit"),
    ("parcel_delivered", "pending_pickup"),
    ("in_transit", "in_transit"),
    ("in_transit", "driver_assigned"),
])
def test_rejected_transitions(current, target):
    assert not can_transition(current, target)


def test_missing_status_counts_as_created():
    assert can_transition(None, "parcel_paid")
    assert not can_transition(None, "parcel_delivered")


def test_custom_in_transit_stage():
    assert is_custom_status("at_sorting_hub")
    assert not is_custom_status("in_transit")

    assert can_transition("driver_assigned", "at_sorting_hub")
    assert can_transition("at_sorting_hub", "parcel_delivered")
    assert can_transition("at_sorting_hub", "out-for-delivery")
    # Not before a rider has the parcel
    assert not can_transition("pending_pickup", "at_sorting_hub")


def test_malformed_status_rejected():
    assert not can_transition("driver_assigned", "In Transit!")
    with pytest.raises(InvalidTransitionError):
        transition("driver_assigned", "")


def test_legacy_hyphenated_spelling():
    assert normalize_status("pending-pickup") == "pending_pickup"
    assert transition("parcel_created", "Pending-Pickup") == "pending_pickup"


def test_transition_error_details():
    with pytest.raises(InvalidTransitionError) as exc_info:
        transition("parcel_delivered", "in_transit")

    assert exc_info.value.status_code == 409
    assert exc_info.value.details == {
        "current_status": "parcel_delivered",
        "requested_status": "in_transit",
    }
