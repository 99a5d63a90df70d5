"""
Django management command to mint license keys from the shell.

Usage:
    python manage.py mint_keys --count 10 --duration 1m
"""

import asyncio

from django.core.management.base import BaseCommand, CommandError

from core.domain.exceptions import DomainException
from core.domain.value_objects import KeyDuration
from licenses.application.commands.mint_keys import MintKeysCommand
from licenses.application.handlers.mint_keys_handler import MintKeysHandler
from licenses.infrastructure.repositories.django_license_key_repository import (
    DjangoLicenseKeyRepository,
)


class Command(BaseCommand):
    """Command to mint a batch of Available keys."""

    help = "Mint a batch of Available license keys of one duration"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument("--count", type=int, default=1, help="Number of keys (default: 1)")
        parser.add_argument(
            "--duration",
            type=str,
            required=True,
            help="Key duration: " + ", ".join(duration.value for duration in KeyDuration),
        )

    def handle(self, *args, **options):
        """Execute the command."""
        try:
            duration = KeyDuration.from_label(options["duration"])
        except ValueError as e:
            raise CommandError(str(e)) from e

        handler = MintKeysHandler(license_key_repository=DjangoLicenseKeyRepository())
        try:
            result = asyncio.run(
                handler.handle(MintKeysCommand(count=options["count"], duration=duration))
            )
        except DomainException as e:
            raise CommandError(f"{e.code}: {e.message}") from e

        for key in result.keys:
            self.stdout.write(key.key)
        for error in result.errors:
            # pylint: disable=no-member
            self.stderr.write(self.style.ERROR(f"#{error.index}: {error.code} {error.message}"))

        # pylint: disable=no-member
        self.stdout.write(
            self.style.SUCCESS(f"Minted {len(result.keys)} {duration.label} key(s)")
        )
