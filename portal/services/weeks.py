"""
Week label parsing and active-week resolution.

A roster week is published as a label such as ``"01/01/24 au 07/01/24"``.
Labels come from uploaded documents, so a malformed one is ordinary input:
:func:`parse_week_label` answers ``None`` instead of raising and the label
is simply never selected as the active week.

This module has no Django dependency; the client engine uses it as well.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from portal.constants import DEFAULT_CUTOVER_HOUR, WEEK_LABEL_DATE_FORMAT, WEEK_LABEL_SEPARATOR

NO_ACTIVE_WEEK = -1


@dataclass(frozen=True)
class WeekInterval:
    """Closed interval from the start of the first day to the end of the last."""
    start: datetime
    end: datetime

    @property
    def first_day(self) -> date:
        return self.start.date()

    @property
    def last_day(self) -> date:
        return self.end.date()

    def contains(self, moment: datetime) -> bool:
        return self.first_day <= moment.date() <= self.last_day


def _parse_day(text: str) -> Optional[date]:
    try:
        return datetime.strptime(text, WEEK_LABEL_DATE_FORMAT).date()
    except ValueError:
        # wrong shape, or an impossible day such as 31/04
        return None


def parse_week_label(label: str) -> Optional[WeekInterval]:
    """Parse ``"<start> au <end>"`` into a :class:`WeekInterval`.

    Returns ``None`` when the separator is missing or repeated, when either
    side is not a ``DD/MM/YY`` calendar date, or when the end precedes the
    start.
    """
    if not isinstance(label, str):
        return None
    parts = label.split(WEEK_LABEL_SEPARATOR)
    if len(parts) != 2:
        return None
    first, last = (_parse_day(p) for p in parts)
    if first is None or last is None or last < first:
        return None
    return WeekInterval(
        start=datetime.combine(first, time.min),
        end=datetime.combine(last, time.max),
    )


def effective_moment(now: datetime, cutover_hour: int = DEFAULT_CUTOVER_HOUR) -> datetime:
    """Shift ``now`` back one day while it is earlier than the cutover hour."""
    if now.time() < time(hour=cutover_hour):
        return now - timedelta(days=1)
    return now


def resolve_active_week(labels: Iterable[str], now: datetime,
                        cutover_hour: int = DEFAULT_CUTOVER_HOUR) -> int:
    """Return the index of the week that should be displayed at ``now``.

    ``now`` is a local wall-clock time.  The first label, in list order,
    whose interval contains the effective moment wins.  When nothing
    matches the result is ``NO_ACTIVE_WEEK`` (-1); callers show an explicit
    "no roster for today" state rather than falling back to the first week.
    """
    moment = effective_moment(now, cutover_hour)
    for index, label in enumerate(labels):
        interval = parse_week_label(label)
        if interval is not None and interval.contains(moment):
            return index
    return NO_ACTIVE_WEEK
