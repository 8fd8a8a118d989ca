"""
Replace the duty roster from a JSON document on disk.

The document has the same shape as the ``/api/weeks/replace`` upload::

    [{"semaine": "01/01/24 au 07/01/24",
      "pharmacies": [{"nom": "...", "localisation": "...", "contact1": "..."}]}]
"""
import json
import os

from django.core.management.base import BaseCommand, CommandError

from portal.exceptions import PortalError
from portal.services.roster import replace_roster


class Command(BaseCommand):
    help = 'Replace the whole pharmacy duty roster from a JSON file'

    def add_arguments(self, parser):
        parser.add_argument('path', help='JSON roster document')
        parser.add_argument(
            '--password',
            default=os.getenv('PORTAL_ADMIN_PASSWORD'),
            help='Administrative password (defaults to $PORTAL_ADMIN_PASSWORD)',
        )

    def handle(self, *args, **options):
        path = options['path']
        try:
            with open(path, encoding='utf-8') as fh:
                document = json.load(fh)
        except OSError as e:
            raise CommandError(f'Cannot read {path}: {e}')
        except ValueError as e:
            raise CommandError(f'{path} is not valid JSON: {e}')

        # accept both a bare list and the {"weeks": [...]} upload envelope
        if isinstance(document, dict) and 'weeks' in document:
            document = document['weeks']

        try:
            result = replace_roster(options['password'] or '', document)
        except PortalError as e:
            raise CommandError(f'[{e.default_code}] {e.detail}')

        self.stdout.write(self.style.SUCCESS(
            f"Roster replaced: revision {result['revision']}, "
            f"{result['weeks']} weeks, {result['pharmacies']} pharmacies"
        ))
