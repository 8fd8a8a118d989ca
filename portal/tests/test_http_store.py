import json

import httpx
import pytest

from portal.client.remote import NETWORK_ERROR_MESSAGE, HttpPortalStore
from portal.client.types import Pharmacy, WeekSchedule

pytestmark = pytest.mark.asyncio

BASE = 'http://portal.test'


def _store(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpPortalStore(BASE + '/', client=client)


async def test_list_weeks_parses_wire_format():
    def handler(request):
        assert request.url.path == '/api/weeks'
        return httpx.Response(200, json={
            'ok': True,
            'activeIndex': 0,
            'data': [{'semaine': '01/01/24 au 07/01/24',
                      'pharmacies': [{'nom': 'Pharmacie A', 'localisation': 'Plateau', 'contact1': '01',
                                      'contact2': '', 'latitude': 5.3, 'longitude': -4.0}]}],
        })

    res = await _store(handler).list_weeks()
    assert res.ok
    week = res.data[0]
    assert week.label == '01/01/24 au 07/01/24'
    assert week.pharmacies[0] == Pharmacy('Pharmacie A', 'Plateau', '01', '', 5.3, -4.0)


async def test_replace_sends_document_and_credential():
    seen = {}

    def handler(request):
        seen['password'] = request.headers.get('X-Admin-Password')
        seen['body'] = json.loads(request.content)
        return httpx.Response(200, json={'ok': True, 'revision': 4, 'message': 'ok'})

    weeks = [WeekSchedule('01/01/24 au 07/01/24', [Pharmacy('Pharmacie A')])]
    res = await _store(handler).replace_all_weeks('secret', weeks)
    assert res.ok and res.data == 4
    assert seen['password'] == 'secret'
    assert seen['body'][0]['semaine'] == '01/01/24 au 07/01/24'
    assert seen['body'][0]['pharmacies'][0]['nom'] == 'Pharmacie A'


async def test_error_envelope_becomes_failure_with_server_message():
    def handler(request):
        return httpx.Response(403, json={'ok': False, 'error': {'code': 'authorization',
                                                                'message': 'Mot de passe incorrect.'}})

    res = await _store(handler).replace_all_weeks('bad', [])
    assert not res.ok
    assert res.code == 'authorization'
    assert res.message == 'Mot de passe incorrect.'


async def test_non_json_error_is_reported():
    res = await _store(lambda request: httpx.Response(502, text='Bad Gateway')).list_posts()
    assert not res.ok
    assert res.code == 'remote'
    assert '502' in res.message


async def test_transport_error_becomes_failure():
    def handler(request):
        raise httpx.ConnectError('refused', request=request)

    res = await _store(handler).increment_likes(1)
    assert not res.ok
    assert res.code == 'remote'
    assert res.message == NETWORK_ERROR_MESSAGE


async def test_like_unlike_and_comments_paths():
    paths = []

    def handler(request):
        paths.append((request.method, request.url.path))
        if request.url.path.endswith('/comments/add'):
            body = json.loads(request.content)
            return httpx.Response(201, json={'ok': True, 'data': {
                'id': 9, 'post_id': 3, 'content': body['content'], 'created_at': '2024-01-02T10:00:00Z'}})
        if request.url.path.endswith('/comments'):
            return httpx.Response(200, json={'ok': True, 'data': []})
        return httpx.Response(200, json={'ok': True, 'postId': 3, 'likes': 1})

    store = _store(handler)
    assert (await store.increment_likes(3)).data == 1
    assert (await store.decrement_likes(3)).ok
    assert (await store.list_comments(3)).data == []
    comment = (await store.insert_comment(3, 'Merci')).data
    assert (comment.id, comment.content) == (9, 'Merci')
    assert paths == [
        ('POST', '/api/posts/3/like'),
        ('POST', '/api/posts/3/unlike'),
        ('GET', '/api/posts/3/comments'),
        ('POST', '/api/posts/3/comments/add'),
    ]


async def test_list_posts_clamps_negative_likes():
    def handler(request):
        return httpx.Response(200, json={'ok': True, 'data': [{
            'id': 1, 'title': 't', 'content': 'c', 'image_url': None,
            'created_at': '2024-01-01T08:00:00Z', 'publish_at': None, 'likes': -3, 'comment_count': 2}]})

    res = await _store(handler).list_posts()
    assert res.data[0].likes == 0
    assert res.data[0].comment_count == 2
