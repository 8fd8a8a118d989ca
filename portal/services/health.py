"""
Health feed: posts, atomic like counters and append-only comments.

Like counters are shared by every visitor, so they are only ever changed
with a single ``UPDATE ... SET likes = likes +/- 1`` statement; concurrent
likes commute and none is lost.
"""
from __future__ import annotations

import logging
from typing import Optional

import bleach
from django.db import DatabaseError, transaction
from django.db.models import Count, F
from rest_framework.exceptions import NotFound

from portal.constants import COMMENT_MAX_LENGTH, COMMENT_MIN_LENGTH
from portal.exceptions import InvalidInput, StoreUnavailable
from portal.models import HealthPost, HealthPostComment
from portal.services.audit import log_action

logger = logging.getLogger(__name__)

ALLOWED_TAGS = ['b', 'strong', 'i', 'em', 'u', 'br', 'p', 'ul', 'ol', 'li', 'a']
ALLOWED_ATTRIBUTES = {'a': ['href', 'title']}

_UNSET = object()


def visible_posts(now=None):
    return HealthPost.objects.visible(now).annotate(comment_count=Count('comments')).order_by('-created_at', '-id')


def all_posts():
    return HealthPost.objects.annotate(comment_count=Count('comments')).order_by('-created_at', '-id')


def get_visible_post(post_id: int, now=None) -> HealthPost:
    post = HealthPost.objects.visible(now).filter(pk=post_id).first()
    if not post:
        raise NotFound('Fiche santé introuvable.')
    return post


def _clean(text: str) -> str:
    return bleach.clean((text or '').strip(), tags=ALLOWED_TAGS, attributes=ALLOWED_ATTRIBUTES, strip=True)


def create_post(*, title: str, content: str, image_url: Optional[str]=None, publish_at=None) -> HealthPost:
    title, content = _clean(title), _clean(content)
    if not title or not content:
        raise InvalidInput('Le titre et le contenu sont requis.')
    post = HealthPost.objects.create(title=title, content=content, image_url=image_url or None, publish_at=publish_at)
    log_action(action='post_create', object_type='health_post', object_id=post.id,
               detail={'scheduled': publish_at is not None})
    logger.info('Health post %s created', post.id)
    return post


def update_post(post_id: int, *, title: str, content: str, image_url=_UNSET, publish_at=_UNSET) -> HealthPost:
    """Update a post.  Omitted ``image_url``/``publish_at`` keep their value;
    an explicit ``None`` clears them."""
    title, content = _clean(title), _clean(content)
    if not title or not content:
        raise InvalidInput('Le titre et le contenu sont requis.')
    with transaction.atomic():
        post = HealthPost.objects.select_for_update().filter(pk=post_id).first()
        if not post:
            raise NotFound('Impossible de trouver la fiche à mettre à jour.')
        post.title = title
        post.content = content
        fields = ['title', 'content']
        if image_url is not _UNSET:
            post.image_url = image_url or None
            fields.append('image_url')
        if publish_at is not _UNSET:
            post.publish_at = publish_at
            fields.append('publish_at')
        post.save(update_fields=fields)
    log_action(action='post_update', object_type='health_post', object_id=post.id, detail={'fields': fields})
    return post


def delete_post(post_id: int) -> bool:
    """Delete a post and its comments.  Returns False when it was already gone."""
    deleted, _ = HealthPost.objects.filter(pk=post_id).delete()
    if not deleted:
        return False
    log_action(action='post_delete', object_type='health_post', object_id=post_id)
    logger.info('Health post %s deleted', post_id)
    return True


def _current_likes(post_id: int) -> int:
    return HealthPost.objects.filter(pk=post_id).values_list('likes', flat=True).get()


def increment_likes(post_id: int, now=None) -> int:
    get_visible_post(post_id, now)
    try:
        HealthPost.objects.filter(pk=post_id).update(likes=F('likes') + 1)
        return _current_likes(post_id)
    except DatabaseError as e:
        logger.exception('increment_likes failed for post %s', post_id)
        raise StoreUnavailable('Erreur lors de la mise à jour du like.') from e


def decrement_likes(post_id: int, now=None) -> int:
    """Atomically remove one like; a counter already at zero stays at zero."""
    get_visible_post(post_id, now)
    try:
        HealthPost.objects.filter(pk=post_id, likes__gt=0).update(likes=F('likes') - 1)
        return _current_likes(post_id)
    except DatabaseError as e:
        logger.exception('decrement_likes failed for post %s', post_id)
        raise StoreUnavailable('Erreur lors de la mise à jour du like.') from e


def list_comments(post_id: int, now=None):
    get_visible_post(post_id, now)
    return HealthPostComment.objects.filter(post_id=post_id).order_by('created_at', 'id')


def add_comment(post_id: int, content: str, now=None) -> HealthPostComment:
    if not isinstance(content, str) or not (COMMENT_MIN_LENGTH <= len(content) <= COMMENT_MAX_LENGTH):
        raise InvalidInput('Le commentaire doit contenir entre 1 et 300 caractères.')
    post = get_visible_post(post_id, now)
    try:
        return HealthPostComment.objects.create(post=post, content=content)
    except DatabaseError as e:
        logger.exception('add_comment failed for post %s', post_id)
        raise StoreUnavailable("Impossible d'ajouter le commentaire.") from e
