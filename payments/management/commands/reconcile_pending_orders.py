from django.conf import settings
from django.core.management.base import BaseCommand

from payments.reconciliation import reconcile_pending_orders


class Command(BaseCommand):
    help = "Poll Stripe for pending package orders and update local state"

    def add_arguments(self, parser):
        parser.add_argument("--max", type=int, default=50)
        parser.add_argument(
            "--older-than-minutes",
            type=int,
            default=None,
            help="Defaults to PENDING_CHECKOUT_TTL_MINUTES",
        )

    def handle(self, *args, **opts):
        minutes = opts["older_than_minutes"]
        if minutes is None:
            minutes = settings.PENDING_CHECKOUT_TTL_MINUTES
        stats = reconcile_pending_orders(minutes, limit=opts["max"])

        if not stats["checked"]:
            self.stdout.write(self.style.SUCCESS("No pending orders to reconcile."))
            return
        self.stdout.write(self.style.SUCCESS(
            f"Checked {stats['checked']}: {stats['paid']} paid, {stats['failed']} failed, "
            f"{stats['open']} still open"
        ))
        if stats["errors"]:
            self.stdout.write(self.style.WARNING(f"{stats['errors']} order(s) could not be checked"))
