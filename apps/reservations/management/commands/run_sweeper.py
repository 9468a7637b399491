"""Run the hold sweeper in the foreground until interrupted."""

from django.conf import settings
from django.core.management.base import BaseCommand

from apps.reservations.sweeper import HoldSweeper


class Command(BaseCommand):
    help = "Expire unpaid holds every RESERVATION_SWEEP_INTERVAL_SECONDS (Ctrl+C to stop)"

    def add_arguments(self, parser):
        parser.add_argument(
            "--interval",
            type=float,
            default=None,
            help="Seconds between sweeps (default: settings.RESERVATION_SWEEP_INTERVAL_SECONDS)",
        )
        parser.add_argument(
            "--once",
            action="store_true",
            help="Run a single sweep and exit",
        )

    def handle(self, *args, **options):
        interval = options["interval"]
        if interval is None:
            interval = settings.RESERVATION_SWEEP_INTERVAL_SECONDS
        sweeper = HoldSweeper(interval=interval)

        if options["once"]:
            result = sweeper.tick()
            self.stdout.write(self.style.SUCCESS(f"Expired {result['expired']} holds ({result['failed']} failed)"))
            return

        self.stdout.write(self.style.SUCCESS(f"Sweeping expired holds every {interval}s"))
        sweeper.start()
        try:
            while sweeper.running:
                sweeper.join(timeout=1.0)
        except KeyboardInterrupt:
            self.stdout.write("Stopping sweeper...")
        finally:
            sweeper.stop()
