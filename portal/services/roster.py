"""
Roster listing and the administrative bulk replace.

``replace_roster`` discards every week and pharmacy and re-populates the
tables from an uploaded document.  On a transactional database the whole
sequence runs inside one ``transaction.atomic()`` block with the
:class:`RosterRevision` row locked, so readers only ever observe the old
roster or the new one, and concurrent replaces are serialized.  Without
transaction support the steps run one after another and a failure after
the first mutation is reported as :class:`PartialReplace`.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings
from django.core.cache import cache
from django.db import DatabaseError, connection, transaction
from django.db.models import F
from django.utils import timezone

from portal.exceptions import BadCredential, InvalidInput, PartialReplace, StoreUnavailable, first_error_message
from portal.models import Pharmacy, RosterRevision, Week
from portal.permissions import credential_matches
from portal.serializers.roster import RosterDocumentSerializer, WeekScheduleSerializer
from portal.services.audit import log_action
from portal.services.weeks import resolve_active_week

logger = logging.getLogger(__name__)

ROSTER_CACHE_PREFIX = 'roster:weeks'
UPDATES_GROUP = 'updates'


def roster_cache_key(revision: int) -> str:
    return f'{ROSTER_CACHE_PREFIX}:{revision}'


def list_weeks() -> list[dict]:
    """Return the roster in document order, read through the cache.

    The cache key carries the revision read *before* the rows, so a listing
    built from rows a concurrent replace has since superseded is stored
    under a key nobody asks for any more.
    """
    key = roster_cache_key(roster_revision())
    cached = cache.get(key)
    if cached is not None:
        return cached
    weeks = Week.objects.prefetch_related('pharmacies').order_by('position', 'id')
    data = WeekScheduleSerializer(weeks, many=True).data
    data = [dict(w, pharmacies=[dict(p) for p in w['pharmacies']]) for w in data]
    cache.set(key, data, settings.ROSTER_CACHE_TTL)
    return data


def roster_revision() -> int:
    rev = RosterRevision.objects.filter(pk=RosterRevision.SINGLETON_ID).values_list('number', flat=True).first()
    return rev or 0


def active_week_index(weeks: list[dict], now=None) -> int:
    now = timezone.localtime(now) if now is not None else timezone.localtime()
    return resolve_active_week([w['semaine'] for w in weeks], now, settings.ROSTER_CUTOVER_HOUR)


def validate_document(document: Any) -> list[dict]:
    """Validate the upload shape; the whole document is rejected on any error."""
    if not isinstance(document, list):
        raise InvalidInput('Le document doit être une liste de semaines.')
    s = RosterDocumentSerializer(data={'weeks': document})
    if not s.is_valid():
        raise InvalidInput(first_error_message(s.errors.get('weeks', s.errors)))
    return s.validated_data['weeks']


def _insert_week(position: int, week: dict) -> Week:
    row = Week.objects.create(label=week['label'], position=position)
    pharmacies = [
        Pharmacy(week=row, position=i, **p)
        for i, p in enumerate(week.get('pharmacies') or [])
    ]
    if pharmacies:
        Pharmacy.objects.bulk_create(pharmacies)
    return row


def _wipe() -> None:
    Pharmacy.objects.all().delete()
    Week.objects.all().delete()


def _bump_revision(locked: Optional[RosterRevision]) -> int:
    if locked is None:
        locked, _ = RosterRevision.objects.get_or_create(pk=RosterRevision.SINGLETON_ID)
    RosterRevision.objects.filter(pk=locked.pk).update(number=F('number') + 1, updated_at=timezone.now())
    locked.refresh_from_db(fields=['number'])
    return locked.number


def _replace_atomically(weeks: list[dict]) -> int:
    with transaction.atomic():
        RosterRevision.objects.get_or_create(pk=RosterRevision.SINGLETON_ID)
        locked = RosterRevision.objects.select_for_update().get(pk=RosterRevision.SINGLETON_ID)
        _wipe()
        for position, week in enumerate(weeks):
            _insert_week(position, week)
        return _bump_revision(locked)


def _replace_step_by_step(weeks: list[dict]) -> int:
    mutated = False
    current = 'suppression'
    try:
        Pharmacy.objects.all().delete()
        mutated = True
        Week.objects.all().delete()
        for position, week in enumerate(weeks):
            current = week['label']
            _insert_week(position, week)
        return _bump_revision(None)
    except DatabaseError as e:
        if mutated:
            raise PartialReplace(
                f"Mise à jour partielle (arrêt sur '{current}') : le planning doit être réimporté. [{e}]"
            ) from e
        raise


def invalidate_roster_cache(revision: int) -> None:
    """Drop the superseded listing and tell connected clients to reload."""
    if revision > 0:
        cache.delete(roster_cache_key(revision - 1))
    channel_layer = get_channel_layer()
    if channel_layer is not None:
        now = timezone.now()
        event = {"type": "broadcast.refresh", "version": revision, "ts": now.isoformat(),
                 "keys": [roster_cache_key(revision)]}
        async_to_sync(channel_layer.group_send)(UPDATES_GROUP, event)


def replace_roster(credential: str, document: Any) -> dict:
    """Replace the whole roster with ``document``.

    Raises :class:`BadCredential`, :class:`InvalidInput`,
    :class:`StoreUnavailable` or :class:`PartialReplace`; on the first three
    the store is unchanged.
    """
    if not credential_matches(credential):
        logger.warning('Roster replace rejected: bad credential')
        raise BadCredential()
    try:
        weeks = validate_document(document)
    except InvalidInput as e:
        logger.info('Roster replace rejected: %s', e.detail)
        raise

    try:
        if connection.features.supports_transactions:
            revision = _replace_atomically(weeks)
        else:
            revision = _replace_step_by_step(weeks)
    except PartialReplace:
        logger.error('Roster replace left the store partially populated')
        # the revision was not bumped, so drop its listing explicitly
        try:
            cache.delete(roster_cache_key(roster_revision()))
        except Exception:
            logger.warning('Could not drop cached roster after partial replace', exc_info=True)
        raise
    except DatabaseError as e:
        logger.exception('Roster replace failed, store unchanged')
        raise StoreUnavailable(f"Échec de la mise à jour : {e}") from e

    try:
        invalidate_roster_cache(revision)
    except Exception:
        # the replace is committed; clients pick it up on their next read
        logger.warning('Roster refresh broadcast failed for revision %s', revision, exc_info=True)
    pharmacy_count = sum(len(w.get('pharmacies') or []) for w in weeks)
    logger.info('Roster replaced: revision=%s weeks=%s pharmacies=%s', revision, len(weeks), pharmacy_count)
    try:
        log_action(action='roster_replace', object_type='roster', object_id=revision,
                   detail={'weeks': len(weeks), 'pharmacies': pharmacy_count})
    except DatabaseError:
        logger.warning('Could not record audit event for roster revision %s', revision)
    return {'revision': revision, 'weeks': len(weeks), 'pharmacies': pharmacy_count}
