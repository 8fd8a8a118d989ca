"""
Remote store used by the client engine.

:class:`PortalStore` is the collaborator interface; :class:`HttpPortalStore`
talks to the portal API over ``httpx``.  Every method returns an
:class:`~portal.client.types.Outcome` and never raises: transport errors,
error envelopes and undecodable bodies all become failures carrying a
message that can be shown as is.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

import httpx

from portal.constants import ADMIN_PASSWORD_HEADER

from .types import REMOTE, Comment, HealthPost, Outcome, WeekSchedule

logger = logging.getLogger(__name__)

HTTP_TIMEOUT = 15.0

NETWORK_ERROR_MESSAGE = 'Impossible de joindre le serveur. Vérifiez votre connexion.'


class PortalStore:
    """Operations the client engine needs from the server."""

    async def list_weeks(self) -> Outcome:
        raise NotImplementedError

    async def replace_all_weeks(self, credential: str, weeks: Iterable[WeekSchedule]) -> Outcome:
        raise NotImplementedError

    async def increment_likes(self, post_id: int) -> Outcome:
        raise NotImplementedError

    async def decrement_likes(self, post_id: int) -> Outcome:
        raise NotImplementedError

    async def list_comments(self, post_id: int) -> Outcome:
        raise NotImplementedError

    async def insert_comment(self, post_id: int, body: str) -> Outcome:
        raise NotImplementedError

    async def list_posts(self) -> Outcome:
        raise NotImplementedError


class HttpPortalStore(PortalStore):
    def __init__(self, base_url: str, client: Optional[httpx.AsyncClient] = None, timeout: float = HTTP_TIMEOUT):
        self.base_url = base_url.rstrip('/')
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    async def _call(self, method: str, path: str, **kwargs) -> Outcome:
        url = f'{self.base_url}{path}'
        try:
            resp = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.warning('Request %s %s failed: %s', method, path, e)
            return Outcome.failure(REMOTE, NETWORK_ERROR_MESSAGE)
        try:
            body: Any = resp.json()
        except ValueError:
            body = None
        if resp.is_success and isinstance(body, dict) and body.get('ok'):
            return Outcome.success(body)
        return self._failure_from(resp, body)

    @staticmethod
    def _failure_from(resp: httpx.Response, body: Any) -> Outcome:
        error = body.get('error') if isinstance(body, dict) else None
        if isinstance(error, dict):
            code = str(error.get('code') or REMOTE)
            message = error.get('message')
            if not isinstance(message, str):
                message = str(message)
        else:
            code = REMOTE
            message = f'Réponse inattendue du serveur (HTTP {resp.status_code}).'
        logger.info('Server refused %s %s: %s %s', resp.request.method, resp.request.url.path, resp.status_code, code)
        return Outcome.failure(code, message)

    async def list_weeks(self) -> Outcome:
        res = await self._call('GET', '/api/weeks')
        if not res.ok:
            return res
        try:
            weeks = [WeekSchedule.from_dict(w) for w in res.data.get('data') or []]
        except (TypeError, KeyError, AttributeError):
            return Outcome.failure(REMOTE, 'Planning reçu illisible.')
        return Outcome.success(weeks)

    async def replace_all_weeks(self, credential, weeks):
        document = [w.to_dict() for w in weeks]
        res = await self._call(
            'POST', '/api/weeks/replace',
            json=document,
            headers={ADMIN_PASSWORD_HEADER: credential},
        )
        if not res.ok:
            return res
        return Outcome.success(res.data.get('revision'), message=res.data.get('message', ''))

    async def _likes(self, post_id: int, verb: str) -> Outcome:
        res = await self._call('POST', f'/api/posts/{post_id}/{verb}')
        if not res.ok:
            return res
        return Outcome.success(res.data.get('likes'))

    async def increment_likes(self, post_id):
        return await self._likes(post_id, 'like')

    async def decrement_likes(self, post_id):
        return await self._likes(post_id, 'unlike')

    async def list_comments(self, post_id):
        res = await self._call('GET', f'/api/posts/{post_id}/comments')
        if not res.ok:
            return res
        try:
            comments = [Comment.from_dict(c) for c in res.data.get('data') or []]
        except (TypeError, KeyError, ValueError):
            return Outcome.failure(REMOTE, 'Commentaires reçus illisibles.')
        return Outcome.success(comments)

    async def insert_comment(self, post_id, body):
        res = await self._call('POST', f'/api/posts/{post_id}/comments/add', json={'content': body})
        if not res.ok:
            return res
        try:
            return Outcome.success(Comment.from_dict(res.data['data']))
        except (TypeError, KeyError, ValueError):
            # the insert went through; only the echo is unreadable
            return Outcome.success(None)

    async def list_posts(self):
        res = await self._call('GET', '/api/posts')
        if not res.ok:
            return res
        try:
            posts = [HealthPost.from_dict(p) for p in res.data.get('data') or []]
        except (TypeError, KeyError, ValueError):
            return Outcome.failure(REMOTE, 'Fiches santé reçues illisibles.')
        return Outcome.success(posts)
