"""
Parcel Lifecycle Tests.

Booking, payment, rider assignment, delivery and tracking history.
"""

import pytest
from sqlalchemy import select

from backend.app.domain.lifecycle import parcel_lifecycle
from backend.app.models.rider import Rider
from backend.app.models.rider_enums import RiderStatus, RiderWorkStatus
from backend.app.models.tracking_log import TrackingLog
from backend.tests.factories import SENDER_EMAIL, auth_headers, parcel_payload, pay_for


async def tracking_statuses(client, tracking_id):
    response = await client.get(f"/v1/trackings/{tracking_id}/logs")
    assert response.status_code == 200
    return [entry["status"] for entry in response.json()]


async def assign(client, parcel_id, rider_id):
    return await client.patch(f"/v1/parcels/{parcel_id}/assign", json={"rider_id": rider_id})


async def set_status(client, parcel_id, delivery_status, **extra):
    return await client.patch(
        f"/v1/parcels/{parcel_id}/status",
        json={"delivery_status": delivery_status, **extra}
    )


@pytest.mark.asyncio
async def test_create_parcel(client, created_parcel):
    """A new parcel gets a tracking id and one creation log entry."""
    assert created_parcel["delivery_status"] == "parcel_created"
    assert created_parcel["payment_status"] == "unpaid"
    assert created_parcel["tracking_id"].startswith("ZS-")

    response = await client.get(f"/v1/trackings/{created_parcel['tracking_id']}/logs")
    logs = response.json()
    assert len(logs) == 1
    assert logs[0]["status"] == "parcel_created"
    assert logs[0]["details"] == "parcel created"


@pytest.mark.asyncio
async def test_create_parcel_validation(client):
    response = await client.post("/v1/parcels", json=parcel_payload(cost=0))
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"

    response = await client.post("/v1/parcels", json=parcel_payload(sender_email="not-an-email"))
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_tracking_id_collision_retries(client, mocker):
    first = await client.post("/v1/parcels", json=parcel_payload())
    taken = first.json()["tracking_id"]

    mocker.patch.object(
        parcel_lifecycle.tracking_ids, "generate_tracking_id",
        side_effect=[taken, "ZS-20250101-AAAAAAAA"]
    )
    response = await client.post("/v1/parcels", json=parcel_payload())

    assert response.status_code == 201
    assert response.json()["tracking_id"] == "ZS-20250101-AAAAAAAA"


@pytest.mark.asyncio
async def test_tracking_id_exhausted(client, mocker):
    first = await client.post("/v1/parcels", json=parcel_payload())
    taken = first.json()["tracking_id"]

    mocker.patch.object(parcel_lifecycle.tracking_ids, "generate_tracking_id", return_value=taken)
    response = await client.post("/v1/parcels", json=parcel_payload())

    assert response.status_code == 500
    assert response.json()["error_code"] == "ERR_TRACKING_001"

    response = await client.get("/v1/parcels")
    assert len(response.json()) == 1


@pytest.mark.asyncio
async def test_full_delivery_flow(client, fake_gateway, created_parcel, approved_rider, db_session):
    """Paid parcel is assigned, carried and delivered; the rider is free again."""
    parcel_id = created_parcel["id"]
    tracking_id = created_parcel["tracking_id"]

    await pay_for(client, fake_gateway, created_parcel)

    response = await assign(client, parcel_id, approved_rider.id)
    assert response.status_code == 200
    body = response.json()
    assert body["delivery_status"] == "driver_assigned"
    assert body["previous_work_status"] == "available"
    assert body["rider"]["work_status"] == "in_delivery"

    for stage in ("rider_arriving", "parcel_picked_up", "in_transit"):
        response = await set_status(client, parcel_id, stage)
        assert response.status_code == 200
        assert response.json()["delivery_status"] == stage

    response = await set_status(client, parcel_id, "parcel_delivered")
    assert response.status_code == 200
    assert response.json()["delivery_status"] == "parcel_delivered"

    rider = await db_session.get(Rider, approved_rider.id)
    await db_session.refresh(rider)
    assert rider.work_status == RiderWorkStatus.AVAILABLE

    assert await tracking_statuses(client, tracking_id) == [
        "parcel_created",
        "pending_pickup",
        "driver_assigned",
        "rider_arriving",
        "parcel_picked_up",
        "in_transit",
        "parcel_delivered",
    ]


@pytest.mark.asyncio
async def test_assign_unknown_rider(client, created_parcel):
    await set_status(client, created_parcel["id"], "pending_pickup")

    response = await assign(client, created_parcel["id"], 999)
    assert response.status_code == 404
    assert response.json()["error_kind"] == "NotFound"


@pytest.mark.asyncio
async def test_assign_from_created_rejected(client, created_parcel, approved_rider, db_session):
    response = await assign(client, created_parcel["id"], approved_rider.id)

    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_STATE_001"

    # Nothing written
    rider = await db_session.get(Rider, approved_rider.id)
    assert rider.work_status == RiderWorkStatus.AVAILABLE
    assert await tracking_statuses(client, created_parcel["tracking_id"]) == ["parcel_created"]


@pytest.mark.asyncio
async def test_invalid_transition_writes_nothing(client, created_parcel):
    response = await set_status(client, created_parcel["id"], "parcel_delivered")

    assert response.status_code == 409
    assert response.json()["error_kind"] == "InvalidTransition"

    response = await client.get(f"/v1/parcels/{created_parcel['id']}")
    assert response.json()["delivery_status"] == "parcel_created"
    assert await tracking_statuses(client, created_parcel["tracking_id"]) == ["parcel_created"]


@pytest.mark.asyncio
async def test_reserved_statuses_need_their_operation(client, created_parcel):
    response = await set_status(client, created_parcel["id"], "parcel_paid")
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_rider_declines_job(client, fake_gateway, created_parcel, approved_rider, db_session):
    """driver_assigned back to pending_pickup frees and unlinks the rider."""
    await pay_for(client, fake_gateway, created_parcel)
    await assign(client, created_parcel["id"], approved_rider.id)

    response = await set_status(client, created_parcel["id"], "pending_pickup")
    assert response.status_code == 200
    body = response.json()
    assert body["rider_id"] is None
    assert body["rider_email"] is None

    rider = await db_session.get(Rider, approved_rider.id)
    await db_session.refresh(rider)
    assert rider.work_status == RiderWorkStatus.AVAILABLE


@pytest.mark.asyncio
async def test_custom_stage_is_logged(client, fake_gateway, created_parcel, approved_rider):
    await pay_for(client, fake_gateway, created_parcel)
    await assign(client, created_parcel["id"], approved_rider.id)

    response = await set_status(client, created_parcel["id"], "at-sorting-hub")
    assert response.status_code == 200

    response = await client.get(f"/v1/trackings/{created_parcel['tracking_id']}/logs")
    last = response.json()[-1]
    assert last["status"] == "at-sorting-hub"
    assert last["details"] == "at sorting hub"


@pytest.mark.asyncio
async def test_delivery_with_unknown_rider_rolls_back(client, fake_gateway, created_parcel, approved_rider):
    await pay_for(client, fake_gateway, created_parcel)
    await assign(client, created_parcel["id"], approved_rider.id)

    response = await set_status(client, created_parcel["id"], "parcel_delivered", rider_id=999)
    assert response.status_code == 404

    response = await client.get(f"/v1/parcels/{created_parcel['id']}")
    assert response.json()["delivery_status"] == "driver_assigned"


@pytest.mark.asyncio
async def test_rider_views(client, fake_gateway, approved_rider):
    """Active jobs hide delivered parcels; the history view shows only them."""
    parcels = []
    for name in ("First", "Second"):
        response = await client.post("/v1/parcels", json=parcel_payload(parcel_name=name))
        parcels.append(response.json())

    for parcel in parcels:
        await pay_for(client, fake_gateway, parcel, payment_intent_id=f"pi_{parcel['id']}")

    # One parcel at a time per rider
    await assign(client, parcels[0]["id"], approved_rider.id)
    await set_status(client, parcels[0]["id"], "parcel_delivered")
    await assign(client, parcels[1]["id"], approved_rider.id)

    response = await client.get("/v1/parcels/rider", params={"rider_email": approved_rider.email})
    assert [p["id"] for p in response.json()] == [parcels[1]["id"]]

    response = await client.get(
        "/v1/parcels/rider",
        params={"rider_email": approved_rider.email, "delivery_status": "parcel_delivered"}
    )
    assert [p["id"] for p in response.json()] == [parcels[0]["id"]]


@pytest.mark.asyncio
async def test_list_parcels_by_sender(client):
    await client.post("/v1/parcels", json=parcel_payload())
    await client.post("/v1/parcels", json=parcel_payload(sender_email="other@example.com"))

    response = await client.get("/v1/parcels", params={"email": SENDER_EMAIL})
    assert response.status_code == 200
    assert [p["sender_email"] for p in response.json()] == [SENDER_EMAIL]

    response = await client.get("/v1/parcels", params={"delivery_status": "parcel_paid"})
    assert response.json() == []


@pytest.mark.asyncio
async def test_get_missing_parcel(client):
    response = await client.get("/v1/parcels/12345")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_sender_deletes_parcel_history_kept(client, created_parcel, db_session):
    response = await client.delete(
        f"/v1/parcels/{created_parcel['id']}", headers=auth_headers(SENDER_EMAIL)
    )
    assert response.status_code == 200
    assert response.json() == {"deleted_count": 1, "parcel_id": created_parcel["id"]}

    response = await client.get(f"/v1/parcels/{created_parcel['id']}")
    assert response.status_code == 404

    result = await db_session.execute(
        select(TrackingLog).where(TrackingLog.tracking_id == created_parcel["tracking_id"])
    )
    assert len(result.scalars().all()) == 1


@pytest.mark.asyncio
async def test_delete_requires_owner_or_admin(client, created_parcel, admin_user):
    response = await client.delete(f"/v1/parcels/{created_parcel['id']}")
    assert response.status_code == 401

    response = await client.delete(
        f"/v1/parcels/{created_parcel['id']}", headers=auth_headers("stranger@example.com")
    )
    assert response.status_code == 403

    response = await client.delete(
        f"/v1/parcels/{created_parcel['id']}", headers=auth_headers(admin_user.email)
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_unknown_tracking_id_has_empty_history(client):
    response = await client.get("/v1/trackings/ZS-20250101-00000000/logs")
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_busy_rider_cannot_take_second_parcel(client, approved_rider):
    parcels = []
    for name in ("First", "Second"):
        response = await client.post("/v1/parcels", json=parcel_payload(parcel_name=name))
        parcels.append(response.json())
        await set_status(client, parcels[-1]["id"], "pending_pickup")

    response = await assign(client, parcels[0]["id"], approved_rider.id)
    assert response.status_code == 200

    response = await assign(client, parcels[1]["id"], approved_rider.id)
    assert response.status_code == 409
    body = response.json()
    assert body["error_code"] == "ERR_RIDER_001"
    assert body["details"]["work_status"] == "in_delivery"

    response = await client.get(f"/v1/parcels/{parcels[1]['id']}")
    assert response.json()["delivery_status"] == "pending_pickup"
    assert response.json()["rider_id"] is None
    assert await tracking_statuses(client, parcels[1]["tracking_id"]) == ["parcel_created", "pending_pickup"]


@pytest.mark.asyncio
async def test_unapproved_rider_cannot_take_parcel(client, created_parcel, db_session):
    rider = Rider(
        name="Pia Pending",
        email="pending@example.com",
        phone="01900000000",
        region="Dhaka",
        district="Dhaka",
        status=RiderStatus.PENDING,
    )
    db_session.add(rider)
    await db_session.commit()
    await db_session.refresh(rider)

    await set_status(client, created_parcel["id"], "pending_pickup")
    response = await assign(client, created_parcel["id"], rider.id)

    assert response.status_code == 409
    assert response.json()["details"]["status"] == "pending"

    await db_session.refresh(rider)
    assert rider.work_status != RiderWorkStatus.IN_DELIVERY
