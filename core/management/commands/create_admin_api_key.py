"""
Django management command to create an admin API key.

The raw key is printed once; only its hash is stored.
"""

from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from accounts.infrastructure.models import AdminApiKey


class Command(BaseCommand):
    """Command to create an admin API key."""

    help = "Create an API key for the administrative API"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument("name", type=str, help="Who or what uses this key")
        parser.add_argument(
            "--expires-in-days",
            type=int,
            default=None,
            help="Expire the key after this many days (default: never)",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        expires_at = None
        if options["expires_in_days"]:
            expires_at = timezone.now() + timedelta(days=options["expires_in_days"])

        api_key = AdminApiKey(name=options["name"], expires_at=expires_at)
        api_key.save()

        # pylint: disable=no-member
        self.stdout.write(self.style.SUCCESS(f"Created admin API key '{api_key.name}'"))
        self.stdout.write(f"   {api_key._raw_key}")  # pylint: disable=protected-access
        self.stdout.write(self.style.WARNING("   Save this - it cannot be retrieved later!"))
