"""Timezone-aware UTC helpers.

Model timestamps use ``utc_now`` as their column default; order numbers are
derived from ``epoch_millis``.
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def epoch_millis(moment: Optional[datetime] = None) -> int:
    """Milliseconds since the Unix epoch for ``moment`` (defaults to now)."""
    moment = moment or utc_now()
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)
