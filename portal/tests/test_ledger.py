import asyncio
from datetime import datetime, timezone

import pytest

from portal.client.ledger import EngagementLedger, PendingState
from portal.client.local_store import MemoryStore
from portal.client.remote import PortalStore
from portal.client.types import Comment, HealthPost, Outcome
from portal.constants import LIKED_POSTS_KEY

pytestmark = pytest.mark.asyncio


class FakeStore(PortalStore):
    """Remote store whose calls block until the test releases them."""

    def __init__(self):
        self.calls = []
        self.gate = asyncio.Event()
        self.result = Outcome.success()
        self.comments = {}

    async def _wait(self, name, *args):
        self.calls.append((name, *args))
        await self.gate.wait()
        return self.result

    async def increment_likes(self, post_id):
        return await self._wait('increment', post_id)

    async def decrement_likes(self, post_id):
        return await self._wait('decrement', post_id)

    async def insert_comment(self, post_id, body):
        return await self._wait('insert', post_id, body)

    async def list_comments(self, post_id):
        self.calls.append(('list', post_id))
        return Outcome.success(list(self.comments.get(post_id, [])))


def _post(post_id=1, likes=5, comment_count=0):
    return HealthPost(id=post_id, title='t', content='c', created_at=datetime.now(timezone.utc),
                      likes=likes, comment_count=comment_count)


async def _started(coro):
    task = asyncio.ensure_future(coro)
    await asyncio.sleep(0)
    return task


async def test_like_is_applied_before_remote_answers():
    remote, local = FakeStore(), MemoryStore()
    ledger = EngagementLedger(remote, local)
    state = ledger.track_post(_post(likes=5))

    task = await _started(ledger.toggle_like(1))
    assert (state.likes, state.liked_by_me) == (6, True)
    assert state.state is PendingState.PENDING
    assert local.get(LIKED_POSTS_KEY) == [1]
    assert remote.calls == [('increment', 1)]

    remote.gate.set()
    res = await task
    assert res.ok
    assert state.state is PendingState.IDLE
    assert (state.likes, state.liked_by_me) == (6, True)


async def test_failed_like_rolls_back():
    remote, local = FakeStore(), MemoryStore()
    remote.result = Outcome.failure('remote', 'Erreur réseau')
    ledger = EngagementLedger(remote, local)
    state = ledger.track_post(_post(likes=5))
    seen = []
    ledger.on_like_change(lambda s: seen.append((s.likes, s.liked_by_me, s.state)))

    task = await _started(ledger.toggle_like(1))
    assert state.likes == 6
    remote.gate.set()
    res = await task

    assert not res.ok and res.message == 'Erreur réseau'
    assert (state.likes, state.liked_by_me) == (5, False)
    assert state.state is PendingState.IDLE
    assert local.get(LIKED_POSTS_KEY) == []
    assert seen == [(6, True, PendingState.PENDING), (5, False, PendingState.ROLLED_BACK)]


async def test_unlike_decrements_and_uses_server_count():
    remote, local = FakeStore(), MemoryStore({LIKED_POSTS_KEY: [1]})
    remote.result = Outcome.success(2)
    remote.gate.set()
    ledger = EngagementLedger(remote, local)
    state = ledger.track_post(_post(likes=5))
    assert state.liked_by_me

    res = await ledger.toggle_like(1)
    assert res.ok
    assert remote.calls == [('decrement', 1)]
    assert (state.likes, state.liked_by_me) == (2, False)


async def test_unlike_never_goes_negative():
    remote = FakeStore()
    remote.result = Outcome.failure('remote', 'x')
    ledger = EngagementLedger(remote, MemoryStore({LIKED_POSTS_KEY: [1]}))
    state = ledger.track_post(_post(likes=0))

    task = await _started(ledger.toggle_like(1))
    assert state.likes == 0
    remote.gate.set()
    await task
    assert (state.likes, state.liked_by_me) == (0, True)


async def test_toggle_in_flight_blocks_second_toggle():
    remote = FakeStore()
    ledger = EngagementLedger(remote, MemoryStore())
    state = ledger.track_post(_post(likes=5))

    first = await _started(ledger.toggle_like(1))
    second = await ledger.toggle_like(1)
    assert not second.ok and second.code == 'pending'
    assert state.likes == 6
    assert len(remote.calls) == 1

    remote.gate.set()
    assert (await first).ok


async def test_late_like_response_after_close_is_discarded():
    remote = FakeStore()
    remote.result = Outcome.failure('remote', 'x')
    ledger = EngagementLedger(remote, MemoryStore())
    state = ledger.track_post(_post(likes=5))

    task = await _started(ledger.toggle_like(1))
    ledger.close()
    remote.gate.set()
    res = await task
    assert res.code == 'discarded'
    # no rollback on torn-down state
    assert state.likes == 6


async def test_oversized_comment_rejected_locally():
    remote = FakeStore()
    ledger = EngagementLedger(remote, MemoryStore())
    counts = []
    ledger.on_comment_count(lambda pid, n: counts.append(n))

    res = await ledger.add_comment(1, 'x' * 301)
    assert not res.ok and res.code == 'validation'
    assert remote.calls == []
    assert ledger.thread(1).comments == []
    assert counts == []

    res = await ledger.add_comment(1, '')
    assert res.code == 'validation'
    assert remote.calls == []


async def test_comment_appended_then_removed_on_failure():
    remote = FakeStore()
    remote.result = Outcome.failure('remote', 'Impossible')
    ledger = EngagementLedger(remote, MemoryStore())
    ledger.track_post(_post(comment_count=2))
    counts = []
    ledger.on_comment_count(lambda pid, n: counts.append((pid, n)))

    task = await _started(ledger.add_comment(1, 'x' * 300))
    thread = ledger.thread(1)
    assert [c.content for c in thread.comments] == ['x' * 300]
    assert thread.comments[0].id < 0
    assert counts == [(1, 3)]

    remote.gate.set()
    res = await task
    assert not res.ok
    assert thread.comments == []
    assert counts == [(1, 3), (1, 2)]


async def test_confirmed_comment_stays_in_place():
    remote = FakeStore()
    now = datetime.now(timezone.utc)
    remote.result = Outcome.success(Comment(id=42, post_id=1, content='Merci', created_at=now))
    remote.gate.set()
    ledger = EngagementLedger(remote, MemoryStore())

    res = await ledger.add_comment(1, 'Merci')
    assert res.ok
    assert [(c.id, c.content) for c in ledger.thread(1).comments] == [(42, 'Merci')]
    assert ledger.comment_count(1) == 1


async def test_comments_load_once_oldest_first():
    remote = FakeStore()
    older = Comment(1, 1, 'premier', datetime(2024, 1, 1, tzinfo=timezone.utc))
    newer = Comment(2, 1, 'second', datetime(2024, 1, 2, tzinfo=timezone.utc))
    remote.comments[1] = [newer, older]
    ledger = EngagementLedger(remote, MemoryStore())

    res = await ledger.load_comments(1)
    assert [c.content for c in res.data] == ['premier', 'second']
    await ledger.load_comments(1)
    assert remote.calls == [('list', 1)]
    assert ledger.comment_count(1) == 2


async def test_pending_comment_survives_load():
    remote = FakeStore()
    remote.comments[1] = [Comment(1, 1, 'ancien', datetime(2024, 1, 1, tzinfo=timezone.utc))]
    ledger = EngagementLedger(remote, MemoryStore())

    task = await _started(ledger.add_comment(1, 'nouveau'))
    await ledger.load_comments(1)
    assert [c.content for c in ledger.thread(1).comments] == ['ancien', 'nouveau']

    remote.gate.set()
    assert (await task).ok
    assert ledger.comment_count(1) == 2


async def test_raising_store_becomes_failure():
    class Broken(FakeStore):
        async def increment_likes(self, post_id):
            raise RuntimeError('boom')

    ledger = EngagementLedger(Broken(), MemoryStore())
    state = ledger.track_post(_post(likes=1))
    res = await ledger.toggle_like(1)
    assert not res.ok and res.code == 'remote'
    assert (state.likes, state.liked_by_me) == (1, False)
