"""
Optimistic likes and comments.

Every user action is applied to local state first, then confirmed with the
server; a refused or failed confirmation restores the saved snapshot.  Each
like counter follows a small state machine::

    IDLE -> PENDING(snapshot) -> IDLE             (server confirmed)
                              -> ROLLED_BACK -> IDLE   (server refused)

While a toggle is PENDING further toggles on the same post are refused, so
optimistic changes never stack.  After :meth:`EngagementLedger.close` late
responses are dropped without touching any state.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from portal.constants import COMMENT_MAX_LENGTH, COMMENT_MIN_LENGTH

from .local_store import LikedPostSet, LocalStore
from .remote import PortalStore
from .types import DISCARDED, PENDING, REMOTE, VALIDATION, Comment, HealthPost, Outcome

logger = logging.getLogger(__name__)

LikeListener = Callable[['LikeState'], None]
CountListener = Callable[[int, int], None]


class PendingState(enum.Enum):
    IDLE = 'idle'
    PENDING = 'pending'
    ROLLED_BACK = 'rolled_back'


@dataclass
class LikeState:
    post_id: int
    likes: int = 0
    liked_by_me: bool = False
    state: PendingState = PendingState.IDLE
    _snapshot: Optional[tuple[int, bool]] = field(default=None, repr=False)

    @property
    def pending(self) -> bool:
        return self.state is PendingState.PENDING

    def begin(self) -> None:
        self._snapshot = (self.likes, self.liked_by_me)
        self.liked_by_me = not self.liked_by_me
        self.likes = max(0, self.likes + (1 if self.liked_by_me else -1))
        self.state = PendingState.PENDING

    def commit(self, server_likes: Optional[int] = None) -> None:
        if server_likes is not None:
            self.likes = max(0, int(server_likes))
        self._snapshot = None
        self.state = PendingState.IDLE

    def rollback(self) -> None:
        self.likes, self.liked_by_me = self._snapshot
        self._snapshot = None
        self.state = PendingState.ROLLED_BACK

    def settle(self) -> None:
        self.state = PendingState.IDLE


class CommentThread:
    """Comments of one post as shown on this device, oldest first."""

    def __init__(self, post_id: int, count: int = 0):
        self.post_id = post_id
        self.comments: list[Comment] = []
        self.loaded = False
        self.count = count
        self._next_temp_id = -1
        # ids confirmed by the server during this session
        self._confirmed: set[int] = set()

    def synthesize(self, body: str) -> Comment:
        comment = Comment(
            id=self._next_temp_id,
            post_id=self.post_id,
            content=body,
            created_at=datetime.now(timezone.utc),
        )
        self._next_temp_id -= 1
        self.comments.append(comment)
        self.count += 1
        return comment

    def discard(self, comment: Comment) -> None:
        self.comments = [c for c in self.comments if c is not comment]
        self.count = max(0, self.count - 1)

    def confirm(self, comment: Comment, echo: Optional[Comment]) -> None:
        if echo is not None:
            comment.id = echo.id
            comment.created_at = echo.created_at
        self._confirmed.add(comment.id)

    def merge(self, server_comments: Iterable[Comment]) -> None:
        """Adopt a server listing, keeping local comments it does not know yet."""
        fetched = sorted(server_comments, key=lambda c: (c.created_at, c.id))
        known = {c.id for c in fetched}
        local = [c for c in self.comments if (c.id < 0 or c.id in self._confirmed) and c.id not in known]
        self.comments = fetched + local
        self.count = len(self.comments)
        self.loaded = True


class EngagementLedger:
    def __init__(self, remote: PortalStore, local: LocalStore):
        self.remote = remote
        self.liked = LikedPostSet(local)
        self._likes: dict[int, LikeState] = {}
        self._threads: dict[int, CommentThread] = {}
        self._like_listeners: list[LikeListener] = []
        self._count_listeners: list[CountListener] = []
        self._closed = False

    # -----------------------------------------------------------------
    # Tracking
    # -----------------------------------------------------------------
    def track_post(self, post: HealthPost) -> LikeState:
        """Register (or refresh) a post received from the server."""
        state = self._likes.get(post.id)
        if state is None:
            state = LikeState(post.id, max(0, post.likes), post.id in self.liked)
            self._likes[post.id] = state
        elif not state.pending:
            state.likes = max(0, post.likes)
            state.liked_by_me = post.id in self.liked
        thread = self._threads.get(post.id)
        if thread is None:
            self._threads[post.id] = CommentThread(post.id, post.comment_count)
        elif not thread.loaded:
            thread.count = post.comment_count
        return state

    def like_state(self, post_id: int) -> Optional[LikeState]:
        return self._likes.get(post_id)

    def thread(self, post_id: int) -> CommentThread:
        thread = self._threads.get(post_id)
        if thread is None:
            thread = self._threads[post_id] = CommentThread(post_id)
        return thread

    def comment_count(self, post_id: int) -> int:
        return self.thread(post_id).count

    async def load_posts(self) -> Outcome:
        res = await self._await(self.remote.list_posts())
        if res.ok:
            for post in res.data:
                self.track_post(post)
        return res

    # -----------------------------------------------------------------
    # Listeners
    # -----------------------------------------------------------------
    def on_like_change(self, listener: LikeListener) -> None:
        self._like_listeners.append(listener)

    def on_comment_count(self, listener: CountListener) -> None:
        self._count_listeners.append(listener)

    def _emit(self, listeners, *args) -> None:
        for listener in list(listeners):
            try:
                listener(*args)
            except Exception:
                logger.exception('Listener %r failed', listener)

    # -----------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------
    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Stop acting on responses; anything still in flight is discarded."""
        self._closed = True
        self._like_listeners.clear()
        self._count_listeners.clear()

    def _discarded(self, what: str, post_id: int) -> Outcome:
        logger.debug('Ledger closed, discarding late %s response for post %s', what, post_id)
        return Outcome.failure(DISCARDED, 'Réponse ignorée.')

    async def _await(self, call) -> Outcome:
        try:
            return await call
        except Exception as e:
            logger.exception('Remote store raised instead of returning an outcome')
            return Outcome.failure(REMOTE, str(e) or 'Erreur inattendue.')

    # -----------------------------------------------------------------
    # Likes
    # -----------------------------------------------------------------
    async def toggle_like(self, post_id: int) -> Outcome:
        if self._closed:
            return self._discarded('like', post_id)
        state = self._likes.get(post_id)
        if state is None:
            state = self._likes[post_id] = LikeState(post_id, 0, post_id in self.liked)
        if state.pending:
            return Outcome.failure(PENDING, 'Action déjà en cours, veuillez patienter.')

        state.begin()
        self.liked.set(post_id, state.liked_by_me)
        self._emit(self._like_listeners, state)

        if state.liked_by_me:
            res = await self._await(self.remote.increment_likes(post_id))
        else:
            res = await self._await(self.remote.decrement_likes(post_id))

        if self._closed:
            return self._discarded('like', post_id)
        if res.ok:
            state.commit(res.data if isinstance(res.data, int) else None)
            self._emit(self._like_listeners, state)
            return Outcome.success(state)

        state.rollback()
        self.liked.set(post_id, state.liked_by_me)
        logger.info('Like on post %s rolled back: %s', post_id, res.message)
        self._emit(self._like_listeners, state)
        state.settle()
        return res

    # -----------------------------------------------------------------
    # Comments
    # -----------------------------------------------------------------
    async def load_comments(self, post_id: int) -> Outcome:
        """Fetch a post's comments the first time its comment view opens."""
        thread = self.thread(post_id)
        if thread.loaded:
            return Outcome.success(thread.comments)
        if self._closed:
            return self._discarded('comments', post_id)
        res = await self._await(self.remote.list_comments(post_id))
        if self._closed:
            return self._discarded('comments', post_id)
        if not res.ok:
            return res
        thread.merge(res.data)
        self._emit(self._count_listeners, post_id, thread.count)
        return Outcome.success(thread.comments)

    async def add_comment(self, post_id: int, body: str) -> Outcome:
        if not isinstance(body, str) or len(body) < COMMENT_MIN_LENGTH:
            return Outcome.failure(VALIDATION, 'Le commentaire ne peut pas être vide.')
        if len(body) > COMMENT_MAX_LENGTH:
            return Outcome.failure(
                VALIDATION, f'Le commentaire est trop long ({COMMENT_MAX_LENGTH} caractères maximum).'
            )
        if self._closed:
            return self._discarded('comment', post_id)

        thread = self.thread(post_id)
        comment = thread.synthesize(body)
        self._emit(self._count_listeners, post_id, thread.count)

        res = await self._await(self.remote.insert_comment(post_id, body))

        if self._closed:
            return self._discarded('comment', post_id)
        if not res.ok:
            thread.discard(comment)
            logger.info('Comment on post %s removed: %s', post_id, res.message)
            self._emit(self._count_listeners, post_id, thread.count)
            return res
        thread.confirm(comment, res.data if isinstance(res.data, Comment) else None)
        return Outcome.success(comment)
