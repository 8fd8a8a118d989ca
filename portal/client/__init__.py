"""Client engine: roster navigation and optimistic engagement over the portal API.

Framework-free; only needs ``httpx`` for :class:`HttpPortalStore`.
"""
from .ledger import EngagementLedger, LikeState, PendingState
from .local_store import JsonFileStore, LikedPostSet, LocalStore, MemoryStore
from .navigator import ScheduleNavigator
from .remote import HttpPortalStore, PortalStore
from .types import Comment, HealthPost, Outcome, Pharmacy, WeekSchedule

__all__ = [
    'Comment',
    'EngagementLedger',
    'HealthPost',
    'HttpPortalStore',
    'JsonFileStore',
    'LikeState',
    'LikedPostSet',
    'LocalStore',
    'MemoryStore',
    'Outcome',
    'PendingState',
    'Pharmacy',
    'PortalStore',
    'ScheduleNavigator',
    'WeekSchedule',
]
