from django.core.management.base import BaseCommand

from cart.services import CartService


class Command(BaseCommand):
    help = "Delete carts whose expiry time has passed"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be cleaned up without making changes",
        )

    def handle(self, *args, **options):
        dry_run = options["dry_run"]

        if dry_run:
            self.stdout.write(
                self.style.WARNING("DRY RUN MODE - No changes will be made")
            )

        count = CartService.cleanup_expired(dry_run=dry_run)

        if dry_run:
            self.stdout.write(f"Would delete {count} expired cart(s)")
        else:
            self.stdout.write(self.style.SUCCESS(f"Deleted {count} expired cart(s)"))
