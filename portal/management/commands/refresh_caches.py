from django.core.management.base import BaseCommand
from django.core.cache import cache
from django.utils import timezone

from portal.services.roster import invalidate_roster_cache, list_weeks, roster_cache_key, roster_revision


class Command(BaseCommand):
    help = "Rebuild the cached roster listing and broadcast a WebSocket refresh event."

    def handle(self, *args, **options):
        now = timezone.now()
        revision = roster_revision()

        # drop the listing and notify clients, then warm the cache again
        cache.delete(roster_cache_key(revision))
        invalidate_roster_cache(revision)
        weeks = list_weeks()
        warmed = cache.get(roster_cache_key(revision)) is not None

        self.stdout.write(self.style.SUCCESS(
            f"Roster revision {revision}: {len(weeks)} weeks cached={warmed} at {now}"
        ))
