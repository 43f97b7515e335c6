"""
Day-type bucketing: upstream day encodings -> seven weekday buckets.

IETT sends a three-way tag per scheduled time:
  I (iş günü)   -> monday..friday
  C (cumartesi) -> saturday
  P (pazar)     -> sunday

ESHOT sends a bitmask where the groups below are independent, so one entry can
land in several buckets at once.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import time
from typing import Iterable, Optional

from transit_sync.jobs.sync.types import TimetableRecord
from transit_sync.jobs.sync.utils.time import parse_time_of_day

logger = logging.getLogger(__name__)

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
MON_FRI = WEEKDAYS[:5]

IETT_DAY_TYPES = {
    "I": MON_FRI,
    "C": ("saturday",),
    "P": ("sunday",),
}

WEEKDAY_BITS = 0b001
SATURDAY_BITS = 0b010
SUNDAY_BITS = 0b100


def iett_weekdays(day_type: Optional[str]) -> tuple[str, ...]:
    return IETT_DAY_TYPES.get((day_type or "").strip().upper(), ())


def eshot_weekdays(mask: Optional[int]) -> tuple[str, ...]:
    if not mask:
        return ()
    out: list[str] = []
    if mask & WEEKDAY_BITS:
        out.extend(MON_FRI)
    if mask & SATURDAY_BITS:
        out.append("saturday")
    if mask & SUNDAY_BITS:
        out.append("sunday")
    return tuple(out)


class TimetableBuilder:
    """Accumulates scheduled times per route code, emits one TimetableRecord per route."""

    def __init__(self, city: str):
        self.city = city
        self._buckets: dict[str, dict[str, set[time]]] = {}
        self.dropped = 0

    def add(self, route_code: str, raw_time, weekdays: Iterable[str]) -> bool:
        days = tuple(weekdays)
        if not days:
            self.dropped += 1
            logger.debug("Dropping %s time %r: unknown day type", route_code, raw_time)
            return False

        t = parse_time_of_day(raw_time)
        if t is None:
            self.dropped += 1
            logger.debug("Dropping %s time %r: unparsable", route_code, raw_time)
            return False

        route = self._buckets.setdefault(route_code, defaultdict(set))
        for d in days:
            route[d].add(t)
        return True

    def build(self) -> list[TimetableRecord]:
        return [
            TimetableRecord(
                route_code=code,
                city=self.city,
                buckets={d: tuple(sorted(days.get(d, ()))) for d in WEEKDAYS},
            )
            for code, days in self._buckets.items()
        ]
