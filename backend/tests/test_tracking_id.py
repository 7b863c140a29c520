"""
Tracking ID Generation Tests.
"""

import pytest
from datetime import datetime, timezone, timedelta

from backend.app.core.exceptions import TrackingIdGenerationError
from backend.app.domain.lifecycle import tracking_id as tracking_ids
from backend.app.domain.lifecycle.tracking_id import TRACKING_ID_PATTERN, generate_tracking_id


def test_tracking_id_format():
    now = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
    tracking_id = generate_tracking_id(now=now)

    assert TRACKING_ID_PATTERN.match(tracking_id)
    assert tracking_id.startswith("ZS-20250101-")
    assert len(tracking_id.split("-")[2]) == 8


def test_tracking_id_uses_utc_date():
    # 23:30 at UTC-5 is already the next day in UTC
    local = datetime(2025, 3, 9, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    tracking_id = generate_tracking_id(now=local.astimezone(timezone.utc))

    assert tracking_id.startswith("ZS-20250310-")


def test_tracking_id_custom_prefix():
    assert generate_tracking_id(prefix="PD").startswith("PD-")


def test_tracking_ids_are_unique():
    generated = {generate_tracking_id() for _ in range(10_000)}
    assert len(generated) == 10_000


def test_random_source_failure(mocker):
    mocker.patch.object(tracking_ids.secrets, "token_hex", side_effect=OSError("no entropy"))

    with pytest.raises(TrackingIdGenerationError):
        generate_tracking_id()
