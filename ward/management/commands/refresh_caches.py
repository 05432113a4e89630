from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.management.base import BaseCommand
from django.utils import timezone

from ward.services.roster import ADMISSIONS_KEY, CONSULTATIONS_KEY, fetch_active_admissions, fetch_active_consultations


class Command(BaseCommand):
    help = "Warm the active roster caches; broadcast WebSocket refresh event."

    def handle(self, *args, **options):
        now = timezone.now()
        admissions = fetch_active_admissions(use_cache=False)
        consultations = fetch_active_consultations(use_cache=False)
        keys_refreshed = [ADMISSIONS_KEY, CONSULTATIONS_KEY]

        channel_layer = get_channel_layer()
        if channel_layer is not None:
            event = {"type": "broadcast.refresh", "version": int(now.timestamp()), "ts": now.isoformat(),
                     "keys": keys_refreshed}
            async_to_sync(channel_layer.group_send)("updates", event)

        self.stdout.write(self.style.SUCCESS(
            f"Refreshed {len(keys_refreshed)} keys ({len(admissions)} admissions, "
            f"{len(consultations)} consultations) at {now}"
        ))
