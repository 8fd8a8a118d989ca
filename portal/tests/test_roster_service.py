import json

import pytest
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.management import call_command
from django.core.management.base import CommandError
from django.db import DatabaseError, connection

from portal.exceptions import BadCredential, InvalidInput, PartialReplace, StoreUnavailable
from portal.models import AuditEvent, HealthPost, Pharmacy, Week
from portal.services import roster

pytestmark = pytest.mark.django_db

OLD = [{'semaine': '01/01/24 au 07/01/24', 'pharmacies': [{'nom': 'Ancienne'}]}]
NEW = [
    {'semaine': '08/01/24 au 14/01/24', 'pharmacies': [{'nom': 'A'}, {'nom': 'B'}]},
    {'semaine': '15/01/24 au 21/01/24', 'pharmacies': [{'nom': 'C'}]},
]


def _labels():
    return list(Week.objects.order_by('position').values_list('label', flat=True))


def _fail_on_second_week(monkeypatch):
    real = roster._insert_week

    def insert(position, week):
        if position == 1:
            raise DatabaseError('disk full')
        return real(position, week)

    monkeypatch.setattr(roster, '_insert_week', insert)


def test_bad_credential_has_no_effect(admin_password):
    roster.replace_roster(admin_password, OLD)
    with pytest.raises(BadCredential):
        roster.replace_roster('nope', NEW)
    with pytest.raises(BadCredential):
        roster.replace_roster(None, NEW)
    assert _labels() == ['01/01/24 au 07/01/24']


def test_non_list_document_is_invalid(admin_password):
    with pytest.raises(InvalidInput):
        roster.replace_roster(admin_password, {'weeks': NEW})


def test_failed_insert_rolls_back_everything(admin_password, monkeypatch):
    roster.replace_roster(admin_password, OLD)
    revision = roster.roster_revision()
    _fail_on_second_week(monkeypatch)

    with pytest.raises(StoreUnavailable):
        roster.replace_roster(admin_password, NEW)

    assert _labels() == ['01/01/24 au 07/01/24']
    assert list(Pharmacy.objects.values_list('name', flat=True)) == ['Ancienne']
    assert roster.roster_revision() == revision


def test_non_transactional_store_reports_partial_replace(admin_password, monkeypatch):
    roster.replace_roster(admin_password, OLD)
    assert len(roster.list_weeks()) == 1
    monkeypatch.setattr(connection.features, 'supports_transactions', False)
    _fail_on_second_week(monkeypatch)

    with pytest.raises(PartialReplace) as exc:
        roster.replace_roster(admin_password, NEW)

    assert '15/01/24 au 21/01/24' in str(exc.value.detail)
    # the store is left half-written and the caller knows it
    assert _labels() == ['08/01/24 au 14/01/24']
    # the cached listing of the old roster is not served any more
    assert [w['semaine'] for w in roster.list_weeks()] == ['08/01/24 au 14/01/24']


def test_non_transactional_store_success(admin_password, monkeypatch):
    monkeypatch.setattr(connection.features, 'supports_transactions', False)
    result = roster.replace_roster(admin_password, NEW)
    assert result == {'revision': 1, 'weeks': 2, 'pharmacies': 3}
    assert _labels() == ['08/01/24 au 14/01/24', '15/01/24 au 21/01/24']


def test_pharmacy_order_within_week_is_kept(admin_password):
    doc = [{'semaine': '08/01/24 au 14/01/24', 'pharmacies': [{'nom': n} for n in ('Zeta', 'Alpha', 'Mu')]}]
    roster.replace_roster(admin_password, doc)
    assert [p['nom'] for p in roster.list_weeks()[0]['pharmacies']] == ['Zeta', 'Alpha', 'Mu']


def test_replace_broadcasts_refresh(admin_password):
    layer = get_channel_layer()
    channel = async_to_sync(layer.new_channel)()
    async_to_sync(layer.group_add)(roster.UPDATES_GROUP, channel)

    result = roster.replace_roster(admin_password, NEW)

    event = async_to_sync(layer.receive)(channel)
    assert event['type'] == 'broadcast.refresh'
    assert event['version'] == result['revision']


def test_import_roster_command(admin_password, tmp_path):
    path = tmp_path / 'roster.json'
    path.write_text(json.dumps({'weeks': NEW}), encoding='utf-8')
    call_command('import_roster', str(path), password=admin_password)
    assert _labels() == ['08/01/24 au 14/01/24', '15/01/24 au 21/01/24']


def test_import_roster_command_rejects_bad_password(admin_password, tmp_path):
    path = tmp_path / 'roster.json'
    path.write_text(json.dumps(NEW), encoding='utf-8')
    with pytest.raises(CommandError, match='authorization'):
        call_command('import_roster', str(path), password='wrong')
    assert _labels() == []


def test_import_roster_command_rejects_invalid_json(admin_password, tmp_path):
    path = tmp_path / 'roster.json'
    path.write_text('[{', encoding='utf-8')
    with pytest.raises(CommandError):
        call_command('import_roster', str(path), password=admin_password)


def test_refresh_caches_command(admin_password):
    roster.replace_roster(admin_password, NEW)
    call_command('refresh_caches')
    assert len(roster.list_weeks()) == 2


def test_populate_data_command(admin_password):
    call_command('populate_data', weeks=3)
    assert Week.objects.count() == 3
    assert HealthPost.objects.exists()
    # the seeded range starts a week before today
    assert roster.active_week_index(roster.list_weeks()) in (0, 1)


class _UnreachableLayer:
    async def group_send(self, group, message):
        raise ConnectionError('redis down')


def test_replace_succeeds_when_refresh_broadcast_fails(admin_password, monkeypatch):
    monkeypatch.setattr(roster, 'get_channel_layer', lambda: _UnreachableLayer())

    result = roster.replace_roster(admin_password, NEW)

    assert result == {'revision': 1, 'weeks': 2, 'pharmacies': 3}
    assert _labels() == ['08/01/24 au 14/01/24', '15/01/24 au 21/01/24']
    assert AuditEvent.objects.filter(action='roster_replace', object_id=1).exists()


def test_listing_built_before_a_replace_is_not_served_after_it(admin_password, monkeypatch):
    roster.replace_roster(admin_password, OLD)
    real = roster.cache

    class _ReplaceBeforeSet:
        """Commits a replace between the reader's query and its cache write."""

        def __init__(self):
            self.replaced = False

        def get(self, *args, **kwargs):
            return real.get(*args, **kwargs)

        def delete(self, *args, **kwargs):
            return real.delete(*args, **kwargs)

        def set(self, *args, **kwargs):
            if not self.replaced:
                self.replaced = True
                roster.replace_roster(admin_password, NEW)
            return real.set(*args, **kwargs)

    monkeypatch.setattr(roster, 'cache', _ReplaceBeforeSet())

    assert [w['semaine'] for w in roster.list_weeks()] == ['01/01/24 au 07/01/24']
    assert [w['semaine'] for w in roster.list_weeks()] == ['08/01/24 au 14/01/24', '15/01/24 au 21/01/24']
