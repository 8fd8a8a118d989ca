import json

from portal.client.local_store import (
    JsonFileStore,
    LikedPostSet,
    MemoryStore,
    load_cached_roster,
    save_cached_roster,
)
from portal.client.types import Pharmacy, WeekSchedule
from portal.constants import LIKED_POSTS_KEY, LOCAL_ROSTER_KEY


def test_missing_keys_are_empty():
    store = MemoryStore()
    assert len(LikedPostSet(store)) == 0
    assert load_cached_roster(store) == []


def test_liked_set_persists_every_change():
    store = MemoryStore()
    liked = LikedPostSet(store)
    liked.set(3, True)
    liked.set(1, True)
    liked.set(3, False)
    assert store.get(LIKED_POSTS_KEY) == [1]
    assert 1 in LikedPostSet(store)


def test_corrupt_liked_set_is_reset():
    store = MemoryStore({LIKED_POSTS_KEY: ['a', 'b']})
    liked = LikedPostSet(store)
    assert len(liked) == 0
    assert store.get(LIKED_POSTS_KEY) == []


def test_corrupt_roster_cache_is_discarded():
    store = MemoryStore({LOCAL_ROSTER_KEY: [{'pas': 'une semaine'}]})
    assert load_cached_roster(store) == []
    assert store.get(LOCAL_ROSTER_KEY) is None


def test_json_file_store_survives_reopen(tmp_path):
    path = tmp_path / 'device.json'
    store = JsonFileStore(path)
    weeks = [WeekSchedule('01/01/24 au 07/01/24', [Pharmacy('Pharmacie A', contact1='01')])]
    save_cached_roster(store, weeks)
    LikedPostSet(store).set(7, True)

    reopened = JsonFileStore(path)
    assert load_cached_roster(reopened) == weeks
    assert 7 in LikedPostSet(reopened)
    assert json.loads(path.read_text(encoding='utf-8'))[LOCAL_ROSTER_KEY][0]['semaine'] == '01/01/24 au 07/01/24'


def test_unreadable_file_starts_empty(tmp_path):
    path = tmp_path / 'device.json'
    path.write_text('{not json', encoding='utf-8')
    store = JsonFileStore(path)
    assert store.get(LIKED_POSTS_KEY) is None
    store.set(LIKED_POSTS_KEY, [2])
    assert JsonFileStore(path).get(LIKED_POSTS_KEY) == [2]
