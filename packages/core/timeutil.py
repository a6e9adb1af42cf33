from __future__ import annotations

import datetime as dt
from typing import Optional, Union

from dateutil.parser import isoparse


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def as_utc(value: dt.datetime) -> dt.datetime:
    """Normalise to UTC. Naive datetimes are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


def parse_timestamp(value: Union[str, dt.datetime, None]) -> Optional[dt.datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, dt.datetime):
        return as_utc(value)
    return as_utc(isoparse(value))


def format_timestamp(value: Optional[dt.datetime]) -> Optional[str]:
    """Fixed-width UTC ISO string, so stored values sort lexically."""
    if value is None:
        return None
    return as_utc(value).isoformat(timespec="microseconds")
