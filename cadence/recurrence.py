"""Recurrence rules for sequences: when is this routine due next?

Frequencies
-----------
daily     every *interval* days
weekly    every *interval* weeks, or on explicit weekdays
monthly   every *interval* calendar months (Jan 31 + 1 month = Feb 28/29)
custom    currently behaves exactly like daily

Weekdays use 0 = Sunday … 6 = Saturday.

``next_date`` only gates on the reference date: a computed candidate can
land after ``end_date``.  Callers that care should check the result with
:meth:`RecurrenceRule.is_active_on`.

Datetimes are compared as given, so mix naive and aware values at your
own risk.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from dateutil.relativedelta import relativedelta


class RecurrenceFrequency(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"

    @property
    def description(self) -> str:
        """Unit label shown next to the interval picker."""
        return _FREQUENCY_LABELS[self]


_FREQUENCY_LABELS: dict[RecurrenceFrequency, str] = {
    RecurrenceFrequency.DAILY: "Day(s)",
    RecurrenceFrequency.WEEKLY: "Week(s)",
    RecurrenceFrequency.MONTHLY: "Month(s)",
    RecurrenceFrequency.CUSTOM: "Custom",
}


@dataclass
class RecurrenceRule:
    """How often a sequence comes due."""

    frequency: RecurrenceFrequency
    interval: int = 1
    start_date: datetime | None = None
    end_date: datetime | None = None
    weekdays: frozenset[int] | None = None  # only read for WEEKLY

    def __post_init__(self) -> None:
        if self.interval < 1:
            raise ValueError(f"interval must be >= 1, got {self.interval}")
        if self.weekdays is not None:
            self.weekdays = frozenset(self.weekdays)
            bad = [d for d in self.weekdays if not 0 <= d <= 6]
            if bad:
                raise ValueError(f"weekdays must be in 0..6, got {sorted(bad)}")

    def next_date(self, from_: datetime | None = None) -> datetime | None:
        """Shortcut for :func:`next_date` (defaults to *now*)."""
        return next_date(self, from_ if from_ is not None else datetime.now())

    def is_active_on(self, when: datetime) -> bool:
        """True when *when* falls inside the start/end bounds."""
        if self.start_date is not None and when < self.start_date:
            return False
        if self.end_date is not None and when > self.end_date:
            return False
        return True

    def copy(self) -> RecurrenceRule:
        return dataclasses.replace(self)


# ── calculator ───────────────────────────────────────────────────────────


def sunday_based_weekday(value: datetime) -> int:
    """Weekday with 0 = Sunday (``datetime.weekday`` has 0 = Monday)."""
    return (value.weekday() + 1) % 7


def next_date(rule: RecurrenceRule, from_: datetime) -> datetime | None:
    """The next occurrence of *rule* after *from_*, or None once expired."""
    if rule.start_date is not None and from_ < rule.start_date:
        return rule.start_date  # first occurrence hasn't happened yet

    if rule.end_date is not None and from_ > rule.end_date:
        return None

    freq = rule.frequency
    if freq in (RecurrenceFrequency.DAILY, RecurrenceFrequency.CUSTOM):
        # TODO: give CUSTOM its own cadence once the rule editor can express one
        return from_ + timedelta(days=rule.interval)

    if freq == RecurrenceFrequency.WEEKLY:
        if rule.weekdays and rule.start_date is not None:
            return _next_listed_weekday(rule, from_)
        return from_ + timedelta(days=rule.interval * 7)

    if freq == RecurrenceFrequency.MONTHLY:
        return from_ + relativedelta(months=rule.interval)

    raise ValueError(f"Unknown frequency: {freq!r}")


def _next_listed_weekday(rule: RecurrenceRule, from_: datetime) -> datetime:
    """First listed weekday strictly after *from_*'s, at start_date's time."""
    current = sunday_based_weekday(from_)
    days = sorted(rule.weekdays)

    later = [d for d in days if d > current]
    if later:
        days_ahead = later[0] - current
    else:
        days_ahead = (7 - current) + days[0]

    candidate = from_ + timedelta(days=days_ahead)
    start = rule.start_date
    return candidate.replace(
        hour=start.hour,
        minute=start.minute,
        second=start.second,
        microsecond=0,
    )
