from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Advanced:
    next_time: dt.datetime


@dataclass(frozen=True)
class Completed:
    pass


AdvanceOutcome = Union[Advanced, Completed]


@dataclass
class ScanResult:
    due: int = 0
    notified: int = 0
    skipped: int = 0
    advanced: int = 0
    completed: int = 0
    failed: int = 0
    query_failed: bool = False
