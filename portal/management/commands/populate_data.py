"""
Management command to populate the database with demo data.
"""
from datetime import timedelta

from django.conf import settings
from django.core.management.base import BaseCommand
from django.utils import timezone

from portal.constants import WEEK_LABEL_DATE_FORMAT, WEEK_LABEL_SEPARATOR
from portal.models import HealthPost, HealthPostComment
from portal.services.roster import replace_roster


PHARMACIES = [
    {'nom': 'Pharmacie du Plateau', 'localisation': 'Plateau, Avenue Chardy', 'contact1': '27 20 21 00 00',
     'latitude': 5.3236, 'longitude': -4.0197},
    {'nom': 'Pharmacie Saint Jean', 'localisation': 'Cocody, Boulevard Latrille', 'contact1': '27 22 44 00 00',
     'contact2': '07 07 00 00 00', 'latitude': 5.3560, 'longitude': -3.9868},
    {'nom': 'Pharmacie des Lagunes', 'localisation': 'Marcory, Zone 4', 'contact1': '27 21 35 00 00'},
    {'nom': 'Pharmacie Belle Ville', 'localisation': 'Yopougon, Siporex', 'contact1': '27 23 45 00 00',
     'latitude': 5.3420, 'longitude': -4.0760},
]

POSTS = [
    {
        'title': 'Bien se protéger du paludisme',
        'content': "Dormez sous une moustiquaire imprégnée et consultez dès les premiers signes de fièvre.",
        'comments': ['Merci pour le rappel !', 'Très utile pour la saison des pluies.'],
    },
    {
        'title': "L'hydratation en période de chaleur",
        'content': "Buvez au moins 1,5 litre d'eau par jour, davantage en cas d'effort ou de fièvre.",
        'comments': [],
    },
]


class Command(BaseCommand):
    help = 'Populate database with a demo roster and health posts'

    def add_arguments(self, parser):
        parser.add_argument('--weeks', type=int, default=4, help='Number of roster weeks around today')

    def handle(self, *args, **options):
        self.stdout.write('Création des données de démonstration...')

        self.create_roster(options['weeks'])
        self.create_posts()

        self.stdout.write(self.style.SUCCESS('Données de démonstration créées !'))

    def week_label(self, start):
        end = start + timedelta(days=6)
        return f'{start.strftime(WEEK_LABEL_DATE_FORMAT)}{WEEK_LABEL_SEPARATOR}{end.strftime(WEEK_LABEL_DATE_FORMAT)}'

    def create_roster(self, count):
        today = timezone.localdate()
        monday = today - timedelta(days=today.weekday())
        first = monday - timedelta(weeks=1)
        document = []
        for i in range(max(count, 1)):
            start = first + timedelta(weeks=i)
            # rotate so each week has a different pair on duty
            on_duty = [PHARMACIES[(i + k) % len(PHARMACIES)] for k in range(2)]
            document.append({'semaine': self.week_label(start), 'pharmacies': on_duty})
            self.stdout.write(f"Semaine: {document[-1]['semaine']}")
        result = replace_roster(settings.PORTAL_ADMIN_PASSWORD, document)
        self.stdout.write(f"Planning importé (révision {result['revision']})")

    def create_posts(self):
        for data in POSTS:
            post, created = HealthPost.objects.get_or_create(
                title=data['title'],
                defaults={'content': data['content']},
            )
            if created:
                for body in data['comments']:
                    HealthPostComment.objects.create(post=post, content=body)
            self.stdout.write(f'Fiche santé: {post.title}')
