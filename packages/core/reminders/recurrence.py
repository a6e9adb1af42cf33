"""Next-occurrence arithmetic for recurring reminders.

Monthly and yearly steps are always taken from the original occurrence
(``anchor + relativedelta(months=k)``), never chained from the previous
result. The day of month therefore clamps to the end of shorter months
without drifting: Jan 31 -> Feb 29 -> Mar 31 -> Apr 30.
"""

from __future__ import annotations

import datetime as dt
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

from ..storage.base import RecurrencePattern
from ..timeutil import as_utc

_FIXED_STEPS = {
    RecurrencePattern.DAILY: dt.timedelta(days=1),
    RecurrencePattern.WEEKLY: dt.timedelta(days=7),
}

_CALENDAR_MONTHS = {
    RecurrencePattern.MONTHLY: 1,
    RecurrencePattern.YEARLY: 12,
}

# Fast-forward lands within a step or two of the answer; this only guards
# against a broken estimate.
MAX_STEP_ITERATIONS = 16


def next_occurrence(
    current_time: dt.datetime,
    pattern: Union[RecurrencePattern, str, None],
    now: dt.datetime,
) -> Optional[dt.datetime]:
    """Return the first occurrence strictly after both ``current_time`` and ``now``.

    Returns None for ``none`` and for unrecognised patterns. The clock is
    never read here; callers pass ``now`` in.
    """
    pattern = RecurrencePattern.parse(pattern)
    current_time = as_utc(current_time)
    now = as_utc(now)
    floor = max(current_time, now)

    if pattern in _FIXED_STEPS:
        return _next_fixed(current_time, _FIXED_STEPS[pattern], floor)
    if pattern in _CALENDAR_MONTHS:
        return _next_calendar(current_time, _CALENDAR_MONTHS[pattern], floor)
    return None


def _next_fixed(
    anchor: dt.datetime, step: dt.timedelta, floor: dt.datetime
) -> dt.datetime:
    steps = max((floor - anchor) // step, 1)
    candidate = anchor + step * steps
    for _ in range(MAX_STEP_ITERATIONS):
        if candidate > floor:
            break
        steps += 1
        candidate = anchor + step * steps
    else:
        raise RuntimeError(f"next occurrence did not converge from {anchor.isoformat()}")
    return candidate


def _next_calendar(
    anchor: dt.datetime, months_per_step: int, floor: dt.datetime
) -> dt.datetime:
    elapsed_months = (floor.year - anchor.year) * 12 + (floor.month - anchor.month)
    # Start one step early; clamping can put the estimated step before floor.
    steps = max(elapsed_months // months_per_step - 1, 1)
    candidate = anchor + relativedelta(months=months_per_step * steps)
    for _ in range(MAX_STEP_ITERATIONS):
        if candidate > floor:
            break
        steps += 1
        candidate = anchor + relativedelta(months=months_per_step * steps)
    else:
        raise RuntimeError(f"next occurrence did not converge from {anchor.isoformat()}")
    return candidate
