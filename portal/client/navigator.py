"""
Cursor over the ordered list of weekly rosters.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from portal.constants import DEFAULT_CUTOVER_HOUR
from portal.services.weeks import NO_ACTIVE_WEEK, resolve_active_week

from .local_store import LocalStore, load_cached_roster, save_cached_roster
from .remote import PortalStore
from .types import REMOTE, Outcome, WeekSchedule

logger = logging.getLogger(__name__)


class ScheduleNavigator:
    """Bounds-checked navigation over ``schedules``.

    ``cursor`` is either ``NO_ACTIVE_WEEK`` (-1) or a valid index.  The
    navigator never changes the list; after a bulk replace call
    :meth:`reset` with the new list so the cursor is recomputed.
    """

    def __init__(self, schedules: Sequence[WeekSchedule] = (), now: Optional[datetime] = None,
                 cutover_hour: int = DEFAULT_CUTOVER_HOUR):
        self.cutover_hour = cutover_hour
        self.schedules: tuple[WeekSchedule, ...] = ()
        self.cursor = NO_ACTIVE_WEEK
        self.reset(schedules, now)

    def reset(self, schedules: Sequence[WeekSchedule], now: Optional[datetime] = None) -> int:
        self.schedules = tuple(schedules)
        now = now or datetime.now()
        self.cursor = resolve_active_week([w.label for w in self.schedules], now, self.cutover_hour)
        return self.cursor

    def __len__(self) -> int:
        return len(self.schedules)

    @property
    def current(self) -> Optional[WeekSchedule]:
        if self.cursor == NO_ACTIVE_WEEK:
            return None
        return self.schedules[self.cursor]

    @property
    def has_active_week(self) -> bool:
        return self.cursor != NO_ACTIVE_WEEK

    def jump_to(self, index: int) -> bool:
        if 0 <= index < len(self.schedules):
            self.cursor = index
            return True
        return False

    def next(self) -> bool:
        # from "no active week" the first step lands on the first week
        return self.jump_to(self.cursor + 1)

    def prev(self) -> bool:
        if self.cursor <= 0:
            return False
        return self.jump_to(self.cursor - 1)

    @property
    def is_first(self) -> bool:
        return self.cursor <= 0

    @property
    def is_last(self) -> bool:
        return self.cursor == len(self.schedules) - 1

    @classmethod
    async def load(cls, remote: PortalStore, local: LocalStore, now: Optional[datetime] = None,
                   cutover_hour: int = DEFAULT_CUTOVER_HOUR) -> tuple['ScheduleNavigator', Outcome]:
        """Build a navigator from the server, falling back to the device cache.

        The returned outcome is the server's: a failure still comes with a
        usable navigator over whatever the cache held.
        """
        try:
            res = await remote.list_weeks()
        except Exception as e:
            logger.exception('Remote store raised instead of returning an outcome')
            res = Outcome.failure(REMOTE, str(e) or 'Erreur inattendue.')
        if res.ok:
            save_cached_roster(local, res.data)
            return cls(res.data, now, cutover_hour), res
        cached = load_cached_roster(local)
        logger.info('Roster unavailable (%s), showing %d cached weeks', res.code, len(cached))
        return cls(cached, now, cutover_hour), res
