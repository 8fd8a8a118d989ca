"""
Device-local key-value storage.

Two things live here: a cached copy of the roster for offline display and
the set of post ids this device has liked.  Both are per device, not per
person.  A missing key is an empty value, never an error; a value that
cannot be decoded is logged, reset and treated as empty.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, Optional

from portal.constants import LIKED_POSTS_KEY, LOCAL_ROSTER_KEY

from .types import WeekSchedule

logger = logging.getLogger(__name__)


class LocalStore:
    """Interface: string keys, JSON-serialisable values."""

    def get(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryStore(LocalStore):
    def __init__(self, initial: Optional[dict] = None):
        # values are kept encoded so callers never share mutable state with the store
        self._data = {k: json.dumps(v) for k, v in (initial or {}).items()}

    def get(self, key, default=None):
        raw = self._data.get(key)
        return default if raw is None else json.loads(raw)

    def set(self, key, value):
        self._data[key] = json.dumps(value)

    def delete(self, key):
        self._data.pop(key, None)


class JsonFileStore(LocalStore):
    """All keys in one JSON object on disk, rewritten atomically on each set."""

    def __init__(self, path):
        self.path = Path(path)
        self._data = self._load()

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            logger.warning('Unreadable local store %s, starting empty: %s', self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning('Local store %s does not hold an object, starting empty', self.path)
            return {}
        return data

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix='.tmp')
        with os.fdopen(fd, 'w', encoding='utf-8') as fh:
            json.dump(self._data, fh, ensure_ascii=False)
        os.replace(tmp, self.path)

    def get(self, key, default=None):
        value = self._data.get(key)
        return default if value is None else json.loads(json.dumps(value))

    def set(self, key, value):
        self._data[key] = value
        self._flush()

    def delete(self, key):
        if self._data.pop(key, None) is not None:
            self._flush()


class LikedPostSet:
    """Post ids liked on this device, persisted on every change."""

    def __init__(self, store: LocalStore):
        self._store = store
        self._ids = self._load()

    def _load(self) -> set[int]:
        raw = self._store.get(LIKED_POSTS_KEY, [])
        try:
            return {int(i) for i in raw}
        except (TypeError, ValueError):
            logger.warning('Failed to parse liked posts from local storage, resetting')
            self._store.set(LIKED_POSTS_KEY, [])
            return set()

    def __contains__(self, post_id: int) -> bool:
        return post_id in self._ids

    def __iter__(self):
        return iter(sorted(self._ids))

    def __len__(self) -> int:
        return len(self._ids)

    def set(self, post_id: int, liked: bool) -> None:
        if liked:
            self._ids.add(post_id)
        else:
            self._ids.discard(post_id)
        self._store.set(LIKED_POSTS_KEY, sorted(self._ids))


def load_cached_roster(store: LocalStore) -> list[WeekSchedule]:
    raw = store.get(LOCAL_ROSTER_KEY, [])
    try:
        return [WeekSchedule.from_dict(w) for w in raw]
    except (TypeError, KeyError, AttributeError):
        logger.warning('Cached roster is unreadable, discarding it')
        store.delete(LOCAL_ROSTER_KEY)
        return []


def save_cached_roster(store: LocalStore, schedules: Iterable[WeekSchedule]) -> None:
    store.set(LOCAL_ROSTER_KEY, [w.to_dict() for w in schedules])
