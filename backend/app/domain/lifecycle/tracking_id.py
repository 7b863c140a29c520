"""
Tracking id generator.

Tracking ids look like ``ZS-20250101-1A2B3C4D``: a fixed prefix, the UTC
calendar date, and four random bytes hex-encoded in upper case.
"""

import re
import secrets
from datetime import datetime, timezone
from typing import Optional

from backend.app.core.config import settings
from backend.app.core.exceptions import TrackingIdGenerationError

RANDOM_BYTES = 4

TRACKING_ID_PATTERN = re.compile(r"^[A-Z]+-\d{8}-[0-9A-F]{8}$")


def generate_tracking_id(now: Optional[datetime] = None, prefix: Optional[str] = None) -> str:
    """
    Mint a new tracking id.

    Args:
        now: Timestamp to take the date from (defaults to the current UTC time)
        prefix: Domain prefix (defaults to ``settings.tracking_id_prefix``)

    Raises:
        TrackingIdGenerationError: the system random source is unavailable
    """
    now = now or datetime.now(timezone.utc)
    prefix = prefix or settings.tracking_id_prefix

    try:
        random_part = secrets.token_hex(RANDOM_BYTES).upper()
    except (OSError, NotImplementedError) as e:
        raise TrackingIdGenerationError(f"Random source unavailable: {e}") from e

    return f"{prefix}-{now.strftime('%Y%m%d')}-{random_part}"
