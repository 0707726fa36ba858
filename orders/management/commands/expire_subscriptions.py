from django.core.management.base import BaseCommand

from orders.models import PackageOrder
from orders.services import expire_subscriptions


class Command(BaseCommand):
    help = "Mark active package subscriptions whose end date has passed as expired"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List the orders that would expire without changing them",
        )

    def handle(self, *args, **options):
        if options.get("dry_run"):
            numbers = list(PackageOrder.objects.lapsed().values_list("order_number", flat=True))
            if not numbers:
                self.stdout.write(self.style.SUCCESS("No lapsed subscriptions."))
                return
            self.stdout.write(self.style.WARNING("DRY RUN MODE - No changes will be made"))
            for number in numbers:
                self.stdout.write(f"Would expire {number}")
            return

        count = expire_subscriptions()
        self.stdout.write(self.style.SUCCESS(f"Expired {count} subscription(s)."))
