"""
Django management command to check and mark expired licenses.

This command should be run periodically (e.g., via cron or scheduled task).
Reads already report overdue licenses as expired; this keeps the stored
status in line for reporting and the admin site.
"""

import logging

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand
from django.utils import timezone

from licenses.infrastructure.container import build_lifecycle_manager
from licenses.infrastructure.models import License as LicenseModel

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Command to check and mark expired licenses."""

    help = "Check and mark expired licenses"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Dry run mode - don't actually update licenses",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        overdue = LicenseModel.objects.overdue(timezone.now())
        count = overdue.count()
        self.stdout.write(f"Found {count} expired license(s)")

        if options["dry_run"]:
            self.stdout.write(self.style.WARNING("DRY RUN - No changes will be made"))
            for license in overdue.order_by("expires_at")[:10]:  # Show first 10
                self.stdout.write(
                    f"  - License {license.license_key} expired at {license.expires_at}"
                )
            return

        if not count:
            self.stdout.write(self.style.SUCCESS("No expired licenses to update"))
            return

        updated = async_to_sync(build_lifecycle_manager().expire_overdue)()
        logger.info("Expiration check finished", extra={"expired": updated})
        self.stdout.write(
            self.style.SUCCESS(f"Successfully marked {updated} license(s) as expired")
        )
